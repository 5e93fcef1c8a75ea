from typing import Optional


class RemoteError(Exception):
    """Base for every failure raised by the remote client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportFailure(RemoteError):
    """Network unreachable or timed out. Transient."""


class HttpError(RemoteError):
    """Non-2xx response unrelated to the session."""


class SessionInvalidError(RemoteError):
    """Missing, invalid or expired session. Fatal to the session."""


class MalformedResponse(RemoteError):
    """A success response the client cannot use."""
