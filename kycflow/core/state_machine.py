"""
Verification Workflow State Machine
-----------------------------------
Maps the server-reported status onto exactly one interaction module, the
banner text/tone, the module the banner links to and whether polling
continues.

`decide` is pure and total: every VerificationStatus (UNKNOWN included) has a
row, and anything the table does not know about falls back to the UNKNOWN row.
The presenter executes the result.
"""
from typing import Callable, Dict, Optional

from kycflow.store.models import Decision, Module, StatusReport, VerificationStatus as S
from kycflow.observability.logging import log

# Fallback texts used when a rejection arrives without a server message
DEFAULT_ID_REJECTED_BANNER = "Please upload clearer images."
DEFAULT_ID_REJECTED_INSTRUCTIONS = "Please ensure your ID images are clear and legible."
DEFAULT_ID_REJECTED_INLINE = "ID was rejected. Please resubmit."
DEFAULT_OTP_REJECTED_BANNER = "Please try again."
DEFAULT_OTP_REJECTED_INLINE = "The OTP you entered was incorrect."

ID_PENDING_INSTRUCTIONS = "Verification in progress..."


# Interaction Surface: account created, nothing submitted yet
def _awaiting_id(message: Optional[str]) -> Decision:
    return Decision(
        status=S.AWAITING_ID,
        module=Module.NONE,
        banner_text="Your account is not yet verified. Verify your account for full access.",
        banner_verified=False,
        continue_polling=True,
        call_to_action=Module.ID_VERIFICATION,
    )


# Interaction Surface: documents under review, form frozen
def _id_pending(message: Optional[str]) -> Decision:
    return Decision(
        status=S.ID_PENDING,
        module=Module.ID_VERIFICATION,
        banner_text="Your ID is being verified. This may take a few moments.",
        banner_verified=False,
        continue_polling=True,
        id_controls_enabled=False,
        instructions=ID_PENDING_INSTRUCTIONS,
    )


# Interaction Surface: documents refused, form reopened for correction
def _id_rejected(message: Optional[str]) -> Decision:
    return Decision(
        status=S.ID_REJECTED,
        module=Module.ID_VERIFICATION,
        banner_text=f"ID Verification Failed: {message or DEFAULT_ID_REJECTED_BANNER} Try again.",
        banner_verified=False,
        continue_polling=True,
        id_controls_enabled=True,
        inline_message=message or DEFAULT_ID_REJECTED_INLINE,
        instructions=message or DEFAULT_ID_REJECTED_INSTRUCTIONS,
        call_to_action=Module.ID_VERIFICATION,
        call_to_action_resets_form=True,
    )


# Interaction Surface: card collection
def _card_pending(message: Optional[str]) -> Decision:
    return Decision(
        status=S.ID_ACCEPTED_CARD_PENDING,
        module=Module.CARD_DETAILS,
        banner_text="Identity verified! Please add your payment card to activate all features.",
        banner_verified=True,
        continue_polling=True,
        call_to_action=Module.CARD_DETAILS,
    )


def _card_pending_otp(message: Optional[str]) -> Decision:
    return Decision(
        status=S.CARD_DETAILS_PENDING_OTP,
        module=Module.OTP,
        banner_text="Card details submitted. Enter OTP once received to complete verification.",
        banner_verified=True,
        continue_polling=True,
        call_to_action=Module.OTP,
    )


def _otp_pending(message: Optional[str]) -> Decision:
    return Decision(
        status=S.OTP_PENDING_USER_INPUT,
        module=Module.OTP,
        banner_text="An OTP has been sent. Please enter it to verify your card.",
        banner_verified=True,
        continue_polling=True,
    )


def _otp_rejected(message: Optional[str]) -> Decision:
    return Decision(
        status=S.OTP_REJECTED,
        module=Module.OTP,
        banner_text=f"OTP Incorrect: {message or DEFAULT_OTP_REJECTED_BANNER} You may be prompted for a new OTP.",
        banner_verified=True,
        continue_polling=True,
        inline_message=message or DEFAULT_OTP_REJECTED_INLINE,
        clear_fields=("otp",),
    )


# Terminal State
def _fully_verified(message: Optional[str]) -> Decision:
    return Decision(
        status=S.FULLY_VERIFIED,
        module=Module.NONE,
        banner_text="Congratulations! Your account is fully verified and active.",
        banner_verified=True,
        continue_polling=False,
    )


def _unknown(message: Optional[str]) -> Decision:
    return Decision(
        status=S.UNKNOWN,
        module=Module.NONE,
        banner_text="Verifying your account status... If this persists, please refresh.",
        banner_verified=False,
        continue_polling=True,
    )


TRANSITIONS: Dict[S, Callable[[Optional[str]], Decision]] = {
    S.AWAITING_ID: _awaiting_id,
    S.ID_PENDING: _id_pending,
    S.ID_REJECTED: _id_rejected,
    S.ID_ACCEPTED_CARD_PENDING: _card_pending,
    S.CARD_DETAILS_PENDING_OTP: _card_pending_otp,
    S.OTP_PENDING_USER_INPUT: _otp_pending,
    S.OTP_REJECTED: _otp_rejected,
    S.FULLY_VERIFIED: _fully_verified,
    S.UNKNOWN: _unknown,
}

TERMINAL_STATUSES = frozenset({S.FULLY_VERIFIED})


def decide(report: StatusReport) -> Decision:
    row = TRANSITIONS.get(report.status)
    if row is None or report.status is S.UNKNOWN:
        log(
            event="status_unknown",
            level="warning",
            status=report.raw_status,
            statusMessage=report.message,
        )
        return _unknown(report.message)
    return row(report.message)
