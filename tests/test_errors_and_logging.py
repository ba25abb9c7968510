"""
Tests for error-code mapping and log sanitizing.
"""

import logging
from unittest.mock import patch

import pytest

from club_events_platform.middleware.error_handler import error_envelope, status_code_for
from club_events_platform.utils.auth import create_identity_token
from club_events_platform.utils.exceptions import ErrorCode, RegistrationRejectedError
from club_events_platform.utils.logging_config import (
    SensitiveDataFilter,
    log_business_event,
    log_security_event,
)


@pytest.mark.parametrize(
    "error_code, status_code",
    [
        (ErrorCode.INVALID_INPUT, 422),
        (ErrorCode.PROFILE_NOT_FOUND, 404),
        (ErrorCode.PROFILE_INCOMPLETE, 400),
        (ErrorCode.EVENT_NOT_FOUND, 404),
        (ErrorCode.REGISTRATION_CLOSED, 409),
        (ErrorCode.EVENT_FULL, 409),
        (ErrorCode.ALREADY_REGISTERED, 409),
        (ErrorCode.REGISTRATION_NOT_FOUND, 404),
        (ErrorCode.PARTIAL_FAILURE, 500),
        (ErrorCode.CASCADE_NOT_CONFIRMED, 409),
        (ErrorCode.STORE_UNAVAILABLE, 503),
        (ErrorCode.INTERNAL_ERROR, 500),
    ],
)
def test_status_codes(error_code, status_code):
    assert status_code_for(error_code) == status_code


def test_error_envelope():
    error = RegistrationRejectedError(
        ErrorCode.PROFILE_INCOMPLETE,
        "Please complete your profile before registering",
        details={"missing_fields": ["year"]},
        action="complete_profile"
    )

    envelope = error_envelope(error, "err-1")

    assert envelope["error_id"] == "err-1"
    assert envelope["error"] == {
        "error_code": "PROFILE_INCOMPLETE",
        "message": "Please complete your profile before registering",
        "details": {"missing_fields": ["year"]},
        "action": "complete_profile",
    }
    assert "timestamp" in envelope


def make_record(msg, **extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_tokens_are_masked_in_messages():
    token = create_identity_token("u1", "u1@clubmail.edu")
    record = make_record(f"Rejected bearer {token}")

    SensitiveDataFilter().filter(record)

    assert token not in record.msg
    assert "***TOKEN***" in record.msg


def test_sensitive_keys_are_masked_in_extra():
    record = make_record(
        "Business event: registration_confirmed",
        details={"mobile_number": "9876543210", "event_id": "e1"},
        authorization="Bearer abc"
    )

    SensitiveDataFilter().filter(record)

    assert record.details == {"mobile_number": "***MASKED***", "event_id": "e1"}
    assert record.authorization == "***MASKED***"


def test_business_event_is_logged():
    business_logger = logging.getLogger("club_events_platform.business")

    with patch.object(business_logger, "info") as info:
        log_business_event("registration_confirmed", {"event_id": "e1"}, user_id="u1")

    assert info.call_args.args[0] == "Business event: registration_confirmed"
    assert info.call_args.kwargs["extra"]["event_id"] == "e1"
    assert info.call_args.kwargs["extra"]["user_id"] == "u1"


def test_security_event_uses_requested_severity():
    security_logger = logging.getLogger("club_events_platform.security")

    with patch.object(security_logger, "error") as error:
        log_security_event("identity_token_rejected", {"path": "/api/v1/users/me"}, severity="ERROR")

    assert error.call_args.kwargs["extra"]["security_event"] is True
    assert error.call_args.kwargs["extra"]["path"] == "/api/v1/users/me"
