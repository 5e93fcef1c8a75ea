import pytest
from unittest.mock import patch
from kycflow.core.state_machine import decide
from kycflow.store.models import Module, StatusReport, VerificationStatus as S

# status -> (module, verified tone, continue polling)
TABLE = [
    (S.AWAITING_ID, Module.NONE, False, True),
    (S.ID_PENDING, Module.ID_VERIFICATION, False, True),
    (S.ID_REJECTED, Module.ID_VERIFICATION, False, True),
    (S.ID_ACCEPTED_CARD_PENDING, Module.CARD_DETAILS, True, True),
    (S.CARD_DETAILS_PENDING_OTP, Module.OTP, True, True),
    (S.OTP_PENDING_USER_INPUT, Module.OTP, True, True),
    (S.OTP_REJECTED, Module.OTP, True, True),
    (S.FULLY_VERIFIED, Module.NONE, True, False),
    (S.UNKNOWN, Module.NONE, False, True),
]


@pytest.mark.parametrize("status,module,verified,keep_polling", TABLE)
def test_transition_table(status, module, verified, keep_polling):
    decision = decide(StatusReport(status=status))
    assert decision.module is module
    assert decision.banner_verified is verified
    assert decision.continue_polling is keep_polling
    assert decision.banner_text


# status -> (banner link target, link starts the form over)
CALL_TO_ACTION = [
    (S.AWAITING_ID, Module.ID_VERIFICATION, False),
    (S.ID_PENDING, Module.NONE, False),
    (S.ID_REJECTED, Module.ID_VERIFICATION, True),
    (S.ID_ACCEPTED_CARD_PENDING, Module.CARD_DETAILS, False),
    (S.CARD_DETAILS_PENDING_OTP, Module.OTP, False),
    (S.OTP_PENDING_USER_INPUT, Module.NONE, False),
    (S.OTP_REJECTED, Module.NONE, False),
    (S.FULLY_VERIFIED, Module.NONE, False),
    (S.UNKNOWN, Module.NONE, False),
]


@pytest.mark.parametrize("status,target,resets_form", CALL_TO_ACTION)
def test_banner_call_to_action(status, target, resets_form):
    decision = decide(StatusReport(status=status))
    assert decision.call_to_action is target
    assert decision.call_to_action_resets_form is resets_form


def test_awaiting_id_links_to_upload_without_showing_it():
    decision = decide(StatusReport(status=S.AWAITING_ID))
    assert decision.module is Module.NONE
    assert decision.call_to_action is Module.ID_VERIFICATION


def test_decide_is_total_over_the_enum():
    for status in S:
        decision = decide(StatusReport(status=status))
        assert isinstance(decision.module, Module)
        assert isinstance(decision.continue_polling, bool)


def test_id_pending_freezes_the_form():
    decision = decide(StatusReport(status=S.ID_PENDING))
    assert decision.id_controls_enabled is False
    assert decision.instructions == "Verification in progress..."
    assert decision.inline_message is None


def test_id_rejected_carries_server_reason():
    decision = decide(StatusReport(status=S.ID_REJECTED, message="Image blurry"))
    assert decision.id_controls_enabled is True
    assert decision.inline_message == "Image blurry"
    assert decision.instructions == "Image blurry"
    assert "Image blurry" in decision.banner_text


def test_id_rejected_without_reason_uses_fallbacks():
    decision = decide(StatusReport(status=S.ID_REJECTED))
    assert decision.inline_message == "ID was rejected. Please resubmit."
    assert "Please upload clearer images." in decision.banner_text


def test_otp_rejected_clears_code_and_shows_reason():
    decision = decide(StatusReport(status=S.OTP_REJECTED, message="Code expired"))
    assert decision.clear_fields == ("otp",)
    assert decision.inline_message == "Code expired"
    assert decision.banner_text.startswith("OTP Incorrect: Code expired")

    fallback = decide(StatusReport(status=S.OTP_REJECTED))
    assert fallback.inline_message == "The OTP you entered was incorrect."


def test_message_ignored_where_no_reason_applies():
    decision = decide(StatusReport(status=S.AWAITING_ID, message="ignored"))
    assert "ignored" not in decision.banner_text
    assert decision.inline_message is None


@patch("kycflow.core.state_machine.log")
def test_unrecognized_status_is_logged_as_warning(mock_log):
    report = StatusReport.from_payload({"status": "CARD_FROZEN"})
    assert report.status is S.UNKNOWN

    decision = decide(report)

    assert decision.module is Module.NONE
    assert decision.continue_polling is True
    mock_log.assert_called_once()
    kwargs = mock_log.call_args.kwargs
    assert kwargs["event"] == "status_unknown"
    assert kwargs["level"] == "warning"
    assert kwargs["status"] == "CARD_FROZEN"


@patch("kycflow.core.state_machine.log")
def test_known_status_does_not_log(mock_log):
    decide(StatusReport(status=S.FULLY_VERIFIED))
    mock_log.assert_not_called()


def test_decide_is_pure():
    report = StatusReport(status=S.OTP_REJECTED, message="nope")
    assert decide(report) == decide(report)


@pytest.mark.parametrize("raw,expected", [
    ("FULLY_VERIFIED", S.FULLY_VERIFIED),
    ("  id_pending ", S.ID_PENDING),
    ("SOMETHING_ELSE", S.UNKNOWN),
    ("", S.UNKNOWN),
    (None, S.UNKNOWN),
    (42, S.UNKNOWN),
])
def test_status_parse(raw, expected):
    assert S.parse(raw) is expected


def test_report_from_non_dict_payload():
    report = StatusReport.from_payload("oops")
    assert report.status is S.UNKNOWN
    assert report.message is None
