"""
Verification Workflow Orchestrator
----------------------------------
Composes the session store, remote client, poller, state machine, presenter
and submission coordinator into one explicit object. No module-level state:
each workflow owns its collaborators and their lifecycle.

Status responses go through the request sequencer before they reach the
presenter, so an older poll can never overwrite what a newer one showed.
"""
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool

from kycflow.client.errors import RemoteError, SessionInvalidError
from kycflow.client.remote import RemoteClient
from kycflow.core.poller import StatusPoller
from kycflow.core.presenter import ModulePresenter, ViewState
from kycflow.core.state_machine import TERMINAL_STATUSES, decide
from kycflow.core.submission import SubmissionCoordinator, is_blank
from kycflow.store.models import Module, Page
from kycflow.store.session_store import SessionStore
from kycflow.utils.sequence import RequestSequencer
from kycflow.observability.logging import log

SIGNUP_REQUIRED_FIELDS = ("fullName", "address", "birthDate", "email", "password")
LOGIN_FAILED = "Login failed. Please check your credentials or sign up."
DEFAULT_DISPLAY_NAME = "User"


class VerificationWorkflow:
    def __init__(
        self,
        *,
        store: Optional[SessionStore] = None,
        client: Optional[RemoteClient] = None,
        target=None,
        poll_interval_sec: Optional[float] = None,
    ):
        self.store = store if store is not None else SessionStore()
        self.client = client if client is not None else RemoteClient(self.store)
        self.view = target if target is not None else ViewState()
        self.presenter = ModulePresenter(self.view)
        self.sequencer = RequestSequencer()
        self.poller = StatusPoller(self.refresh_status, interval_sec=poll_interval_sec)
        # Session id for which a terminal status has been applied
        self._terminal_session_id: Optional[str] = None

        self.store.on_clear(self.poller.stop)
        self.store.on_clear(self.sequencer.invalidate)

        self.submissions = SubmissionCoordinator(
            client=self.client,
            presenter=self.presenter,
            sequencer=self.sequencer,
            session_store=self.store,
            refresh=lambda: self.refresh_status(source="submission"),
            on_session_invalid=self.logout,
        )

    # --- lifecycle ---------------------------------------------------------

    async def startup(self) -> None:
        """Resume the dashboard for a stored session, otherwise show the auth page."""
        session = await run_in_threadpool(self.store.load)
        if session is not None and session.display_name:
            log(event="session_resumed", sessionId=session.id)
            self.navigate_to_dashboard()
        else:
            self.presenter.show_page(Page.AUTH)

    def navigate_to_dashboard(self) -> None:
        session = self.store.current()
        if session is None:
            self.logout(reason="missing_session")
            return
        self._terminal_session_id = None
        self.presenter.show_page(Page.DASHBOARD)
        self.presenter.set_display_name(session.display_name or DEFAULT_DISPLAY_NAME)
        self.presenter.reset_modules()
        self.poller.start(session)

    def logout(self, reason: str = "user") -> None:
        session = self.store.current()
        # Stops the poller and invalidates in-flight tickets through the store hooks
        self.store.clear()
        self._terminal_session_id = None
        self.presenter.reset()
        self.presenter.show_page(Page.AUTH)
        log(event="logout", sessionId=session.id if session else None, reason=reason)

    async def aclose(self) -> None:
        self.poller.stop()
        await self.client.aclose()

    # --- authentication ----------------------------------------------------

    async def signup(self, fields: Dict[str, Any]) -> bool:
        self.presenter.clear_message("signup")
        # Presence is judged on trimmed text, but values go out exactly as typed
        data = dict(fields or {})
        missing = [k for k in SIGNUP_REQUIRED_FIELDS if is_blank(data.get(k))]
        if missing:
            self.presenter.show_message("signup", f"Please fill in: {', '.join(missing)}", is_error=True)
            return False
        try:
            with self.presenter.busy():
                result = await self.client.signup(data)
        except RemoteError as e:
            log(event="signup_failed", statusCode=e.status_code, error=e.message[:200])
            self.presenter.show_message("signup", e.message, is_error=True)
            return False

        session_id = result.get("sessionId")
        if not session_id:
            log(event="signup_missing_session_id")
            self.presenter.show_message("signup", "Signup did not return a session. Please try again.", is_error=True)
            return False
        await run_in_threadpool(self.store.create, str(session_id), str(data["fullName"]).strip())
        self.navigate_to_dashboard()
        return True

    async def login(self, email: str, password: str) -> bool:
        self.presenter.clear_message("login")
        if is_blank(email) or is_blank(password):
            self.presenter.show_message("login", "Please fill in: email, password", is_error=True)
            return False
        try:
            with self.presenter.busy():
                result = await self.client.login(email, password)
        except RemoteError as e:
            # Credentials problems and outages read the same to the user
            log(event="login_failed", statusCode=e.status_code, error=e.message[:200])
            self.presenter.show_message("login", LOGIN_FAILED, is_error=True)
            return False

        session_id = result.get("sessionId")
        if not session_id:
            log(event="login_missing_session_id")
            self.presenter.show_message("login", LOGIN_FAILED, is_error=True)
            return False
        await run_in_threadpool(self.store.create, str(session_id), result.get("fullName") or DEFAULT_DISPLAY_NAME)
        self.navigate_to_dashboard()
        return True

    # --- status reconciliation ---------------------------------------------

    async def refresh_status(self, source: str = "scheduled") -> bool:
        """
        One status poll. Returns whether polling should continue.
        """
        session = self.store.current()
        if session is None:
            log(event="status_poll_without_session", source=source)
            self.logout(reason="missing_session")
            return False
        if self._terminal_session_id == session.id:
            return False

        ticket = self.sequencer.issue(session.id)
        log(event="status_poll_issued", sessionId=session.id, seq=ticket.seq, source=source)
        try:
            with self.presenter.busy():
                report = await self.client.get_status()
        except SessionInvalidError as e:
            log(event="status_poll_session_invalid", sessionId=session.id, seq=ticket.seq, statusCode=e.status_code)
            if self.sequencer.is_live(ticket):
                self.logout(reason="unauthorized")
            return False
        except RemoteError as e:
            log(event="status_poll_failed", level="warning", sessionId=session.id, seq=ticket.seq, error=e.message[:200])
            if self.sequencer.accept(ticket):
                self.presenter.show_status_unavailable()
            return True

        if not self.sequencer.accept(ticket):
            log(event="status_response_discarded", sessionId=session.id, seq=ticket.seq, lastApplied=self.sequencer.last_applied)
            return self.sequencer.is_live(ticket)

        decision = decide(report)
        self.presenter.apply(decision)
        log(
            event="status_applied",
            sessionId=session.id,
            seq=ticket.seq,
            status=decision.status.value,
            module=decision.module.value,
        )

        if decision.status in TERMINAL_STATUSES or not decision.continue_polling:
            self._terminal_session_id = session.id
            self.poller.stop()
            return False
        return True

    # --- submissions -------------------------------------------------------

    async def submit(self, module: Module, payload: Any) -> bool:
        return await self.submissions.submit(module, payload)
