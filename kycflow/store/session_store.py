from typing import Callable, List, Optional

from kycflow.settings import settings
from kycflow.store.models import Session
from kycflow.store.redis_conn import get_redis
from kycflow.observability.logging import log

SESSION_ID_KEY = "userSessionId"
DISPLAY_NAME_KEY = "userFullName"


class SessionStore:
    """
    Holds the active session in memory and writes it through to storage under
    two independent keys so it survives a process restart.

    Storage is read only by `load()`, once at startup. `current()` never
    touches storage, so polls and submissions do no blocking I/O for it.
    Loading never triggers anything else; resuming the dashboard is the
    orchestrator's startup routine. `clear()` runs the registered teardown
    hooks (poller stop, ticket invalidation) after deleting the keys.
    """

    def __init__(self, storage=None, prefix: Optional[str] = None):
        self._storage = storage if storage is not None else get_redis()
        self._prefix = settings.SESSION_KEY_PREFIX if prefix is None else prefix
        self._session: Optional[Session] = None
        self._on_clear: List[Callable[[], None]] = []

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def on_clear(self, callback: Callable[[], None]) -> None:
        self._on_clear.append(callback)

    def load(self) -> Optional[Session]:
        """Pick up a session persisted by an earlier run."""
        session_id = self._storage.get(self._key(SESSION_ID_KEY))
        if not session_id:
            self._session = None
            return None
        display_name = self._storage.get(self._key(DISPLAY_NAME_KEY)) or ""
        self._session = Session(id=session_id, display_name=display_name)
        log(event="session_loaded", sessionId=session_id)
        return self._session

    def create(self, session_id: str, display_name: str) -> Session:
        if not session_id:
            raise ValueError("session_id is required")
        self._storage.set(self._key(SESSION_ID_KEY), session_id)
        self._storage.set(self._key(DISPLAY_NAME_KEY), display_name or "")
        self._session = Session(id=session_id, display_name=display_name or "")
        log(event="session_created", sessionId=session_id)
        return self._session

    def current(self) -> Optional[Session]:
        return self._session

    def clear(self) -> None:
        session, self._session = self._session, None
        self._storage.delete(self._key(SESSION_ID_KEY))
        self._storage.delete(self._key(DISPLAY_NAME_KEY))
        for callback in list(self._on_clear):
            callback()
        if session is not None:
            log(event="session_cleared", sessionId=session.id)
