"""Tests for sensitive data filtering and request correlation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def log_stream():
    """Logger wired with the production filters and formatter."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_credentials(log_stream):
    """Ensure password and session payload fields are redacted."""
    logger, stream = log_stream

    logger.info(
        "login_event",
        extra={
            "password": "hunter22",
            "session_data": '{"user_id": 1}',
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "hunter22" not in output
    assert "user_id" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_allows_safe_fields(log_stream):
    """Verify safe fields pass through unmodified."""
    logger, stream = log_stream

    logger.info(
        "request.completed",
        extra={
            "route": "/todos",
            "status": 200,
            "duration_ms": 15.5,
            "cache_key": "user:1:todos",
        },
    )

    payload = json.loads(stream.getvalue())

    assert payload["route"] == "/todos"
    assert payload["status"] == 200
    assert payload["cache_key"] == "user:1:todos"
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts(log_stream):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "headers": {"authorization": "Bearer abc", "user-agent": "pytest"},
            "profile": {"email": "ana@example.com", "username": "ana"},
        },
    )

    output = stream.getvalue()

    assert "Bearer abc" not in output
    assert "ana@example.com" not in output
    assert "pytest" in output
    assert '"username": "ana"' in output


def test_request_id_attached_from_context(log_stream):
    logger, stream = log_stream
    set_request_id("req-123")

    logger.info("with_context")

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_exception_is_formatted(log_stream):
    logger, stream = log_stream

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")

    payload = json.loads(stream.getvalue())
    assert payload["level"] == "error"
    assert "RuntimeError: boom" in payload["exception"]


def test_hash_identifier_is_stable_and_opaque():
    digest = hash_identifier("user:42")

    assert digest == hash_identifier("user:42")
    assert digest != hash_identifier("user:43")
    assert len(digest) == 16
