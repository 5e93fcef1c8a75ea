from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Ticket:
    seq: int
    session_id: Optional[str]


class RequestSequencer:
    """
    Orders status updates by issue order rather than arrival order.

    Every poll or submission takes a ticket before its request goes out. A
    status response is applied only if its ticket is newer than anything
    applied so far and was issued for the session that is still active.
    `invalidate()` (session teardown) moves the floor past every ticket issued
    so far, so late responses from a cleared session are dropped.
    """

    def __init__(self):
        self._issued = 0
        self._applied = 0
        self._floor = 0
        self._session_id: Optional[str] = None

    @property
    def last_issued(self) -> int:
        return self._issued

    @property
    def last_applied(self) -> int:
        return self._applied

    def issue(self, session_id: Optional[str]) -> Ticket:
        self._session_id = session_id
        self._issued += 1
        return Ticket(seq=self._issued, session_id=session_id)

    def is_live(self, ticket: Ticket) -> bool:
        return ticket.seq > self._floor and ticket.session_id == self._session_id

    def accept(self, ticket: Ticket) -> bool:
        """Claim the right to apply a status response. True at most once per ticket."""
        if not self.is_live(ticket) or ticket.seq <= self._applied:
            return False
        self._applied = ticket.seq
        return True

    def invalidate(self) -> None:
        self._floor = self._issued
        self._applied = max(self._applied, self._issued)
        self._session_id = None
