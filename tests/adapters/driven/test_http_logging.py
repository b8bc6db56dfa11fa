"""Tests for privacy-aware HTTP logging."""

import logging

import pytest

from reqpipe.adapters.driven.logging.http_logging import (
    LoggingInterceptor,
    LoggingResponseHandler,
    describe_body,
    redact_headers,
)
from reqpipe.ports.http import HttpMethod, TransportRequest, TransportResponse
from reqpipe.ports.settings import REDACTION_MARKER, LoggingConfig

__all__ = []

LOGGER_NAME = "reqpipe.adapters.driven.logging.http_logging"


@pytest.mark.parametrize("name", ["Authorization", "authorization", "AUTHORIZATION", "x-api-key"])
def test_redaction_is_case_insensitive(name: str) -> None:
    """Redacted header names should match regardless of case."""
    redacted = redact_headers({name: "secret", "Accept": "application/json"}, LoggingConfig())

    assert redacted[name] == REDACTION_MARKER
    assert redacted["Accept"] == "application/json"


def test_redaction_with_custom_header_set() -> None:
    """Custom redaction sets should be honoured case-insensitively."""
    config = LoggingConfig(redacted_headers=frozenset({"X-Session"}))

    redacted = redact_headers({"x-session": "abc", "Authorization": "Bearer t"}, config)

    assert redacted == {"Authorization": "Bearer t", "x-session": REDACTION_MARKER}


def test_production_preset() -> None:
    """Production preset should disable bodies and redact access tokens."""
    config = LoggingConfig.production()

    assert config.max_body_log_size == 0
    assert config.log_request_body is False
    assert config.log_response_body is False
    assert config.is_redacted("x-access-token")


@pytest.mark.parametrize(
    ("body", "cap", "expected"),
    [
        (b'{"a":1}', 1024, '{"a":1}'),
        (b"x" * 11, 10, "<11 bytes, truncated>"),
        (b"\xff\xfe", 10, "<binary 2 bytes>"),
        (b"", 0, ""),
    ],
)
def test_describe_body(body: bytes, cap: int, expected: str) -> None:
    """Bodies should be rendered as text, binary marker or truncated."""
    assert describe_body(body, LoggingConfig(max_body_log_size=cap)) == expected


@pytest.mark.asyncio
async def test_logging_interceptor_redacts_headers(caplog: pytest.LogCaptureFixture) -> None:
    """Request logging should never include redacted header values."""
    request = TransportRequest(
        method=HttpMethod.POST,
        url="https://api.example.com/login",
        headers={"authorization": "Bearer top-secret", "Accept": "application/json"},
        body=b'{"user":"ada"}',
        path="/login",
    )

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        result = await LoggingInterceptor().intercept(request)

    assert result is request
    assert "-> POST https://api.example.com/login" in caplog.text
    assert "top-secret" not in caplog.text
    assert f"authorization: {REDACTION_MARKER}" in caplog.text
    assert '{"user":"ada"}' in caplog.text


@pytest.mark.asyncio
async def test_logging_interceptor_skips_body_in_production(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Production preset should not log request bodies."""
    request = TransportRequest(
        method=HttpMethod.POST,
        url="https://api.example.com/login",
        body=b"password=hunter2",
        path="/login",
    )

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        await LoggingInterceptor(LoggingConfig.production()).intercept(request)

    assert "hunter2" not in caplog.text


@pytest.mark.asyncio
async def test_logging_response_handler_logs_outcome(caplog: pytest.LogCaptureFixture) -> None:
    """Response logging should report status and leave the body untouched."""
    response = TransportResponse(
        status_code=500,
        headers={"Set-Cookie": "session=abc"},
        body=b"oops",
        url="https://api.example.com/x",
    )

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        body = await LoggingResponseHandler().handle(b"oops", response)

    assert body == b"oops"
    assert "<- 500 FAILED https://api.example.com/x" in caplog.text
    assert "session=abc" not in caplog.text
    assert "Response: oops" in caplog.text
