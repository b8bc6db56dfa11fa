"""Configuration loading from environment variables."""

import logging
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator, model_validator

from reqpipe.ports.settings import DEFAULT_RETRYABLE_STATUS_CODES, LoggingConfig, RetryConfig

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

_TRUE_VALUES = ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime configuration for a network client.

    Attributes:
        api_base_url: Base URL every endpoint path is appended to.
        request_timeout_sec: Optional timeout overriding every endpoint's own.
        retry_enabled: Whether failed attempts are retried.
        retry_max_retries: Attempts allowed after the first one.
        retry_base_delay_sec: Backoff base delay in seconds.
        retry_max_delay_sec: Backoff delay cap in seconds.
        retry_status_codes: HTTP status codes eligible for retry.
        log_preset: Redaction preset for HTTP logging.
        log_max_body_bytes: Optional override of the preset's body size cap.
        log_http: Attach request/response logging steps to the client.
    """

    api_base_url: str = Field(..., description="Base URL every endpoint path is appended to.")
    request_timeout_sec: float | None = Field(
        default=None,
        gt=0,
        description="Timeout overriding every endpoint's own; None keeps endpoint timeouts.",
    )
    retry_enabled: bool = True
    retry_max_retries: int = Field(default=3, ge=0)
    retry_base_delay_sec: float = Field(default=1.0, ge=0)
    retry_max_delay_sec: float = Field(default=30.0, ge=0)
    retry_status_codes: frozenset[int] = Field(default=DEFAULT_RETRYABLE_STATUS_CODES)
    log_preset: Literal["default", "production"] = "default"
    log_max_body_bytes: int | None = Field(default=None, ge=0)
    log_http: bool = False

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate that the base URL is a valid HTTP(S) URL.

        Args:
            v: Base URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// base URLs allowed")
        except Exception as e:
            raise ValueError(f"Invalid API base URL: {e}") from e
        return v

    @model_validator(mode="after")
    def validate_retry_delays(self) -> "Settings":
        """Ensure the base delay does not exceed the cap.

        Raises:
            ValueError: If retry_base_delay_sec > retry_max_delay_sec.
        """
        if self.retry_base_delay_sec > self.retry_max_delay_sec:
            raise ValueError(
                f"RETRY_BASE_DELAY_SEC ({self.retry_base_delay_sec}) must not exceed "
                f"RETRY_MAX_DELAY_SEC ({self.retry_max_delay_sec})"
            )
        return self

    def to_retry_config(self) -> RetryConfig | None:
        """Build the retry policy, or None when retries are disabled."""
        if not self.retry_enabled:
            return None
        return RetryConfig(
            max_retries=self.retry_max_retries,
            base_delay_sec=self.retry_base_delay_sec,
            max_delay_sec=self.retry_max_delay_sec,
            retryable_status_codes=self.retry_status_codes,
        )

    def to_logging_config(self) -> LoggingConfig:
        """Build the logging redaction policy."""
        config = LoggingConfig.production() if self.log_preset == "production" else LoggingConfig()
        if self.log_max_body_bytes is None:
            return config
        return LoggingConfig(
            redacted_headers=config.redacted_headers,
            max_body_log_size=self.log_max_body_bytes,
            log_request_body=config.log_request_body,
            log_response_body=config.log_response_body,
        )


def _parse_status_codes(raw: str) -> frozenset[int]:
    try:
        return frozenset(int(code) for code in raw.split(",") if code.strip())
    except ValueError as e:
        raise RuntimeError(
            f"RETRY_STATUS_CODES must be a comma-separated list of integers (got: {raw})"
        ) from e


def load_settings() -> Settings:
    """Load and validate settings from the environment.

    Required environment variables:
    - API_BASE_URL: Valid HTTP(S) URL.

    Optional:
    - REQUEST_TIMEOUT_SEC: Positive number overriding endpoint timeouts.
    - RETRY_ENABLED: true/false (default true).
    - RETRY_MAX_RETRIES, RETRY_BASE_DELAY_SEC, RETRY_MAX_DELAY_SEC.
    - RETRY_STATUS_CODES: Comma-separated status codes.
    - LOG_PRESET: "default" or "production".
    - LOG_MAX_BODY_BYTES: Body size cap for HTTP logging.
    - LOG_HTTP: true/false, attach HTTP logging steps (default false).

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or malformed.
        ValueError: If configuration is invalid.
    """
    try:
        base_url = os.environ["API_BASE_URL"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    values: dict[str, object] = {"api_base_url": base_url}

    numeric = {
        "REQUEST_TIMEOUT_SEC": ("request_timeout_sec", float),
        "RETRY_MAX_RETRIES": ("retry_max_retries", int),
        "RETRY_BASE_DELAY_SEC": ("retry_base_delay_sec", float),
        "RETRY_MAX_DELAY_SEC": ("retry_max_delay_sec", float),
        "LOG_MAX_BODY_BYTES": ("log_max_body_bytes", int),
    }
    for env_name, (field_name, cast) in numeric.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            values[field_name] = cast(raw)
        except ValueError as e:
            raise RuntimeError(f"{env_name} must be a number (got: {raw})") from e

    raw_codes = os.getenv("RETRY_STATUS_CODES")
    if raw_codes is not None:
        values["retry_status_codes"] = _parse_status_codes(raw_codes)

    for env_name, field_name in (("RETRY_ENABLED", "retry_enabled"), ("LOG_HTTP", "log_http")):
        raw = os.getenv(env_name)
        if raw is not None:
            values[field_name] = raw.strip().lower() in _TRUE_VALUES

    preset = os.getenv("LOG_PRESET")
    if preset is not None:
        values["log_preset"] = preset.strip().lower()

    settings = Settings(**values)

    logger.info(
        f"Client configured: base_url={settings.api_base_url}, "
        f"timeout={settings.request_timeout_sec or '<per endpoint>'}, "
        f"retries={settings.retry_max_retries if settings.retry_enabled else '<disabled>'}, "
        f"log_preset={settings.log_preset}"
    )

    return settings
