"""Tests for structured logging with request/actor/operation context.

Validates that orchestrator logs can be correlated to the acting user and
operation, and that PII/secrets never reach log output.
"""

import json
import logging
from io import StringIO

import pytest

from bhub_api.context import actor_id_var, operation_var, request_id_var
from bhub_api.utils.logging import JSONFormatter
from bhub_api.utils.sanitize import MAX_STR_LOG, mask_email, sanitize_obj, sanitize_str

from tests.helpers import seed_donation


@pytest.fixture
def json_stream():
    """Attach a JSON handler to the bhub_api logger tree."""
    logger = logging.getLogger("bhub_api")
    previous_level = logger.level
    logger.setLevel(logging.INFO)

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    yield stream

    logger.removeHandler(handler)
    logger.setLevel(previous_level)


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def _logger_with_stream(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    return logger, stream


# ============================================================================
# Formatter
# ============================================================================


def test_json_formatter_includes_context_vars() -> None:
    logger, stream = _logger_with_stream("test_context_logger")

    tokens = (
        request_id_var.set("req_123"),
        actor_id_var.set("actor_abc"),
        operation_var.set("approve_donation"),
    )
    try:
        logger.info("Test message")
    finally:
        operation_var.reset(tokens[2])
        actor_id_var.reset(tokens[1])
        request_id_var.reset(tokens[0])

    log_data = json.loads(stream.getvalue())
    assert log_data["message"] == "Test message"
    assert log_data["request_id"] == "req_123"
    assert log_data["actor_id"] == "actor_abc"
    assert log_data["operation"] == "approve_donation"
    assert log_data["level"] == "INFO"


def test_json_formatter_handles_missing_context() -> None:
    logger, stream = _logger_with_stream("test_no_context_logger")

    logger.info("Background task message")

    log_data = json.loads(stream.getvalue())
    assert log_data["message"] == "Background task message"
    # Context fields should be absent (not empty strings)
    assert "actor_id" not in log_data
    assert "operation" not in log_data


def test_json_formatter_sanitizes_extra_fields() -> None:
    logger, stream = _logger_with_stream("test_extra_logger")

    logger.info(
        "Registration payload",
        extra={
            "event": "onboarding.debug",
            "payload": {"email": "thandi@example.org", "id_number": "123456/10/1", "city": "Ndola"},
        },
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["event"] == "onboarding.debug"
    assert log_data["payload"]["email"] == "[REDACTED]"
    assert log_data["payload"]["id_number"] == "[REDACTED]"
    assert log_data["payload"]["city"] == "Ndola"


def test_json_formatter_redacts_tokens_in_message() -> None:
    logger, stream = _logger_with_stream("test_token_logger")

    logger.warning("Auth failed for Bearer eyJhbGciOi.payload.sig from thandi@example.org")

    message = json.loads(stream.getvalue())["message"]
    assert "eyJ" not in message
    assert "thandi@example.org" not in message


# ============================================================================
# Sanitizer
# ============================================================================


def test_mask_email() -> None:
    assert mask_email("thandi@example.org") == "t***@example.org"
    assert mask_email(None) == "unknown"
    assert mask_email("not-an-email") == "unknown"


def test_long_strings_are_truncated_with_digest() -> None:
    result = sanitize_str("x" * (MAX_STR_LOG + 1))
    assert result.startswith(f"[TRUNCATED len={MAX_STR_LOG + 1} sha256=")


def test_nested_depth_limit() -> None:
    deep: dict = {}
    node = deep
    for _ in range(10):
        node["next"] = {}
        node = node["next"]
    flattened = json.dumps(sanitize_obj(deep))
    assert "[DEPTH_LIMIT]" in flattened


# ============================================================================
# Orchestrator operations
# ============================================================================


def test_operation_logs_carry_actor_and_operation(
    orchestrator, db_session, admin, verified_donor, json_stream
):
    donation = seed_donation(db_session, verified_donor.id)

    assert orchestrator.approve_donation(donation.id, admin.session).success

    screened = [r for r in _records(json_stream) if r.get("event") == "approval.donation.screened"]
    assert len(screened) == 1
    assert screened[0]["actor_id"] == admin.id
    assert screened[0]["operation"] == "approve_donation"
    assert screened[0]["donation_id"] == donation.id

    # Context does not leak past the operation boundary
    assert actor_id_var.get() == ""
    assert operation_var.get() == ""


def test_refused_operation_logs_warning(orchestrator, db_session, approver, verified_donor, json_stream):
    donation = seed_donation(db_session, verified_donor.id)

    orchestrator.approve_donation(donation.id, approver.session)

    refused = [r for r in _records(json_stream) if r.get("event") == "approve_donation.refused"]
    assert len(refused) == 1
    assert refused[0]["level"] == "WARNING"
    assert refused[0]["error_kind"] == "unauthorized"


def test_notification_logs_mask_recipient(orchestrator, db_session, admin, verified_donor, json_stream):
    donation = seed_donation(db_session, verified_donor.id)

    orchestrator.approve_donation(donation.id, admin.session)

    output = json_stream.getvalue()
    assert verified_donor.email not in output
    sent = [r for r in _records(json_stream) if r.get("event") == "notify.donation.screened"]
    assert sent[0]["to"] == mask_email(verified_donor.email)
