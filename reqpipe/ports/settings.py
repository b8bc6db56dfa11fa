"""Settings port definitions (retry and logging policy DTOs)."""

from dataclasses import dataclass, field

__all__ = [
    "DEFAULT_REDACTED_HEADERS",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "LoggingConfig",
    "REDACTION_MARKER",
    "RetryConfig",
]

DEFAULT_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})
DEFAULT_REDACTED_HEADERS: frozenset[str] = frozenset(
    {"Authorization", "Cookie", "Set-Cookie", "X-API-Key", "X-Auth-Token"}
)
REDACTION_MARKER = "<redacted>"


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for transient failures.

    Attributes:
        max_retries: Attempts allowed after the first one (total calls = max_retries + 1).
        base_delay_sec: Backoff base; attempt n waits base * 2^n before jitter.
        max_delay_sec: Cap applied to the exponential delay.
        retryable_status_codes: HTTP status codes worth retrying.

    Raises:
        ValueError: If max_retries < 0 or not 0 <= base_delay_sec <= max_delay_sec.
    """

    max_retries: int = 3
    base_delay_sec: float = 1.0
    max_delay_sec: float = 30.0
    retryable_status_codes: frozenset[int] = field(
        default_factory=lambda: DEFAULT_RETRYABLE_STATUS_CODES
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if not 0 <= self.base_delay_sec <= self.max_delay_sec:
            raise ValueError(
                "retry delays must satisfy 0 <= base_delay_sec <= max_delay_sec "
                f"(got base={self.base_delay_sec}, max={self.max_delay_sec})"
            )


@dataclass(frozen=True)
class LoggingConfig:
    """Redaction and body-size policy for HTTP logging.

    Attributes:
        redacted_headers: Header names whose values are never logged (case-insensitive).
        max_body_log_size: Bodies larger than this many bytes are logged as truncated.
        log_request_body: Whether request bodies are logged.
        log_response_body: Whether response bodies are logged.
    """

    redacted_headers: frozenset[str] = field(default_factory=lambda: DEFAULT_REDACTED_HEADERS)
    max_body_log_size: int = 1024
    log_request_body: bool = True
    log_response_body: bool = True

    @classmethod
    def production(cls) -> "LoggingConfig":
        """Minimal logging with strict redaction and no bodies."""
        return cls(
            redacted_headers=DEFAULT_REDACTED_HEADERS | {"X-Access-Token"},
            max_body_log_size=0,
            log_request_body=False,
            log_response_body=False,
        )

    def is_redacted(self, header_name: str) -> bool:
        lowered = header_name.lower()
        return any(name.lower() == lowered for name in self.redacted_headers)
