from typing import Any, Awaitable, Callable, Dict, List

from kycflow.client.errors import RemoteError, SessionInvalidError
from kycflow.store.models import IdDocuments, Module, VerificationStatus
from kycflow.observability.logging import log

CARD_REQUIRED_FIELDS = ("cardholderName", "cardNumber", "expiryDate", "cvv")
OTP_REQUIRED_FIELDS = ("otp",)
ID_REQUIRED_FIELDS = ("front", "back")

SUCCESS_DEFAULTS = {
    Module.ID_VERIFICATION: "ID submitted for verification. Please wait.",
    Module.CARD_DETAILS: "Card details submitted.",
    Module.OTP: "OTP submitted for verification.",
}

ID_REVIEW_IN_PROGRESS = "Your ID is still being reviewed. Please wait for the result before resubmitting."
SESSION_ENDED = "Your session has ended. Please log in again."


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_fields(module: Module, payload: Any) -> List[str]:
    """Presence check only; the server decides whether values are acceptable."""
    if module is Module.ID_VERIFICATION:
        if not isinstance(payload, IdDocuments):
            return list(ID_REQUIRED_FIELDS)
        return [
            name for name in ID_REQUIRED_FIELDS
            if getattr(payload, name) is None or not getattr(payload, name).content
        ]
    required = CARD_REQUIRED_FIELDS if module is Module.CARD_DETAILS else OTP_REQUIRED_FIELDS
    data = payload if isinstance(payload, dict) else {}
    return [name for name in required if is_blank(data.get(name))]


class SubmissionCoordinator:
    """
    Sends what the user entered on a module and reconciles with the server.

    Success shows the server's message inline and fires one out-of-band status
    poll right away. Failure shows the error inline and leaves polling to the
    schedule. An authorization failure hands over to session teardown.
    """

    def __init__(
        self,
        *,
        client,
        presenter,
        sequencer,
        session_store,
        refresh: Callable[[], Awaitable[bool]],
        on_session_invalid: Callable[[str], None],
    ):
        self.client = client
        self.presenter = presenter
        self.sequencer = sequencer
        self.store = session_store
        self._refresh = refresh
        self._on_session_invalid = on_session_invalid

    def _id_review_pending(self) -> bool:
        last = self.presenter.last_decision
        return last is not None and last.status is VerificationStatus.ID_PENDING

    async def _send(self, module: Module, payload: Any) -> Dict[str, Any]:
        if module is Module.ID_VERIFICATION:
            return await self.client.submit_id_verification(payload)
        if module is Module.CARD_DETAILS:
            return await self.client.submit_card_details(dict(payload))
        return await self.client.submit_otp(str(payload["otp"]).strip())

    async def submit(self, module: Module, payload: Any) -> bool:
        if module is Module.NONE:
            raise ValueError("Nothing to submit without a module")

        self.presenter.clear_message(module.slot)

        missing = missing_fields(module, payload)
        if missing:
            self.presenter.show_message(module.slot, f"Please fill in: {', '.join(missing)}", is_error=True)
            return False

        if module is Module.ID_VERIFICATION and self._id_review_pending():
            self.presenter.show_message(module.slot, ID_REVIEW_IN_PROGRESS, is_error=True)
            return False

        session = self.store.current()
        if session is None:
            self.presenter.show_message(module.slot, SESSION_ENDED, is_error=True)
            return False

        ticket = self.sequencer.issue(session.id)
        log(event="submission_attempt", sessionId=session.id, module=module.value, seq=ticket.seq)
        try:
            with self.presenter.busy():
                result = await self._send(module, payload)
        except SessionInvalidError as e:
            log(event="submission_session_invalid", sessionId=session.id, module=module.value, statusCode=e.status_code)
            if self.sequencer.is_live(ticket):
                self._on_session_invalid("unauthorized")
            return False
        except RemoteError as e:
            log(event="submission_failed", sessionId=session.id, module=module.value, error=e.message[:200])
            if self.sequencer.is_live(ticket):
                self.presenter.show_message(module.slot, e.message, is_error=True)
            return False

        if not self.sequencer.is_live(ticket):
            log(event="submission_response_discarded", sessionId=session.id, module=module.value, seq=ticket.seq)
            return False

        message = result.get("message") if isinstance(result, dict) else None
        self.presenter.show_message(module.slot, message or SUCCESS_DEFAULTS[module], is_error=False)
        log(event="submission_succeeded", sessionId=session.id, module=module.value)

        # The submission already succeeded; a failed follow-up poll leaves it to the schedule
        try:
            await self._refresh()
        except Exception as e:
            log(
                event="submission_refresh_exception",
                level="error",
                sessionId=session.id,
                module=module.value,
                errorType=type(e).__name__,
                error=str(e)[:300],
            )
        return True
