from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


class VerificationStatus(str, Enum):
    AWAITING_ID = "AWAITING_ID"
    ID_PENDING = "ID_PENDING"
    ID_REJECTED = "ID_REJECTED"
    ID_ACCEPTED_CARD_PENDING = "ID_ACCEPTED_CARD_PENDING"
    CARD_DETAILS_PENDING_OTP = "CARD_DETAILS_PENDING_OTP"
    OTP_PENDING_USER_INPUT = "OTP_PENDING_USER_INPUT"
    OTP_REJECTED = "OTP_REJECTED"
    FULLY_VERIFIED = "FULLY_VERIFIED"
    # Catch-all for values newer servers may send
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "VerificationStatus":
        if isinstance(value, str):
            try:
                member = cls(value.strip().upper())
            except ValueError:
                return cls.UNKNOWN
            return member
        return cls.UNKNOWN


class Module(str, Enum):
    NONE = "none"
    ID_VERIFICATION = "id"
    CARD_DETAILS = "card"
    OTP = "otp"

    @property
    def slot(self) -> str:
        """Inline message slot owned by this module."""
        return self.value


# Modules that can actually be rendered (NONE is the absence of one)
VISIBLE_MODULES = (Module.ID_VERIFICATION, Module.CARD_DETAILS, Module.OTP)


class Page(str, Enum):
    AUTH = "auth"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class Session:
    id: str
    display_name: str = ""


@dataclass(frozen=True)
class StatusReport:
    status: VerificationStatus
    message: Optional[str] = None
    # Literal value from the server, kept for logging unknown statuses
    raw_status: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "StatusReport":
        if not isinstance(data, dict):
            return cls(status=VerificationStatus.UNKNOWN, message=None, raw_status=None)
        raw = data.get("status")
        message = data.get("message")
        return cls(
            status=VerificationStatus.parse(raw),
            message=message if isinstance(message, str) and message else None,
            raw_status=None if raw is None else str(raw),
        )


@dataclass(frozen=True)
class Decision:
    status: VerificationStatus
    module: Module
    banner_text: str
    banner_verified: bool
    continue_polling: bool
    # None leaves the Id controls as they are
    id_controls_enabled: Optional[bool] = None
    # Error shown inline on the visible module
    inline_message: Optional[str] = None
    # Instructions text for the visible module
    instructions: Optional[str] = None
    # Field names on the visible module to blank out
    clear_fields: Tuple[str, ...] = ()
    # Module the banner invites the user to open; visibility stays status-driven
    call_to_action: Module = Module.NONE
    # Following the call to action starts the form over (blank fields, no message)
    call_to_action_resets_form: bool = False


@dataclass(frozen=True)
class DocumentImage:
    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class IdDocuments:
    front: Optional[DocumentImage] = None
    back: Optional[DocumentImage] = None
