"""Privacy-aware request/response logging steps."""

import logging
from collections.abc import Mapping

from reqpipe.ports.http import TransportRequest, TransportResponse
from reqpipe.ports.settings import REDACTION_MARKER, LoggingConfig

__all__ = ["LoggingInterceptor", "LoggingResponseHandler", "describe_body", "redact_headers"]

logger = logging.getLogger(__name__)


def redact_headers(headers: Mapping[str, str], config: LoggingConfig) -> dict[str, str]:
    """Return a copy of ``headers`` with sensitive values replaced.

    Matching is case-insensitive: redacting ``Authorization`` also covers
    ``authorization`` and ``AUTHORIZATION``.

    Args:
        headers: Headers as sent or received.
        config: Redaction policy.

    Returns:
        Header mapping safe to log, sorted by name.
    """
    return {
        name: REDACTION_MARKER if config.is_redacted(name) else value
        for name, value in sorted(headers.items())
    }


def describe_body(body: bytes, config: LoggingConfig) -> str:
    """Render a body for the log, honouring the size cap."""
    size = len(body)
    if size > config.max_body_log_size:
        return f"<{size} bytes, truncated>"
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return f"<binary {size} bytes>"


class LoggingInterceptor:
    """Log outgoing requests; never modifies them."""

    def __init__(
        self,
        config: LoggingConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config or LoggingConfig()
        self.log = log or logger

    async def intercept(self, request: TransportRequest) -> TransportRequest:
        self.log.info(f"-> {request.method.value} {request.url}")

        for name, value in redact_headers(request.headers, self.config).items():
            self.log.debug(f"   {name}: {value}")

        if self.config.log_request_body and request.body is not None:
            self.log.debug(f"   Body: {describe_body(request.body, self.config)}")

        return request


class LoggingResponseHandler:
    """Log incoming responses; returns the body untouched."""

    def __init__(
        self,
        config: LoggingConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config or LoggingConfig()
        self.log = log or logger

    async def handle(self, body: bytes, response: TransportResponse) -> bytes:
        outcome = "OK" if response.is_success else "FAILED"
        self.log.info(f"<- {response.status_code} {outcome} {response.url or 'unknown'}")

        for name, value in redact_headers(response.headers, self.config).items():
            self.log.debug(f"   {name}: {value}")

        if self.config.log_response_body:
            self.log.debug(f"   Response: {describe_body(body, self.config)}")

        return body
