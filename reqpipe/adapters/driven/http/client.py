"""Network client orchestrating interceptors, transport, retry and metrics."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import TypeAdapter

from reqpipe.adapters.driven.http.interceptors import HeaderInterceptor, TimeoutInterceptor
from reqpipe.adapters.driven.http.retry import retry
from reqpipe.adapters.driven.http.transport import AiohttpTransport
from reqpipe.adapters.driven.logging.http_logging import LoggingInterceptor, LoggingResponseHandler
from reqpipe.adapters.driven.metrics.http_metrics import MetricsResponseHandler
from reqpipe.core.chain import apply_handlers, apply_interceptors
from reqpipe.ports.errors import (
    DecodingError,
    HTTPError,
    NetworkError,
    NoDataError,
    RequestCancelledError,
    TransportError,
)
from reqpipe.ports.http import (
    DomainMappable,
    Endpoint,
    RequestInterceptor,
    ResponseHandler,
    TransportPort,
    TransportRequest,
)
from reqpipe.ports.metrics import MetricsCollectorPort, RequestMetrics
from reqpipe.ports.settings import LoggingConfig, RetryConfig

if TYPE_CHECKING:
    from reqpipe.adapters.driven.config.settings import Settings

__all__ = ["NetworkClient"]

logger = logging.getLogger(__name__)

T = TypeVar("T")
Decoder = Callable[[bytes], T]

_type_adapter = functools.lru_cache(maxsize=128)(TypeAdapter)


class NetworkClient:
    """HTTP client pipeline shared by many concurrent requests.

    For each call: endpoint -> transport request -> interceptors ->
    (retry executor -> transport -> response handlers -> status check) ->
    body, decoded value or mapped domain value.

    Features:
    - Ordered, immutable interceptor and handler chains.
    - Optional retry with exponential backoff and jitter.
    - Optional metrics collection, one record per attempt.
    - Context manager for transport resource cleanup.
    """

    def __init__(
        self,
        transport: TransportPort | None = None,
        *,
        interceptors: Sequence[RequestInterceptor] = (),
        response_handlers: Sequence[ResponseHandler] = (),
        retry_config: RetryConfig | None = None,
        metrics: MetricsCollectorPort | None = None,
    ) -> None:
        """Initialize network client.

        Args:
            transport: Transport performing the calls; aiohttp by default.
            interceptors: Request steps, applied in order.
            response_handlers: Response steps, applied in order.
            retry_config: Retry policy; None disables retries.
            metrics: Optional metrics collector to track attempts.
        """
        self.transport = transport if transport is not None else AiohttpTransport()
        self.interceptors: tuple[RequestInterceptor, ...] = tuple(interceptors)
        self.response_handlers: tuple[ResponseHandler, ...] = tuple(response_handlers)
        self.retry_config = retry_config
        self.metrics = metrics

    @classmethod
    def configured(
        cls,
        *,
        base_headers: Mapping[str, str] | None = None,
        enable_logging: bool = False,
        logging_config: LoggingConfig | None = None,
        timeout_sec: float | None = None,
        retry_config: RetryConfig | None = None,
        metrics: MetricsCollectorPort | None = None,
        transport: TransportPort | None = None,
    ) -> NetworkClient:
        """Create a client with the common chain setup.

        Args:
            base_headers: Headers added to every request.
            enable_logging: Attach request/response logging steps.
            logging_config: Redaction policy for the logging steps.
            timeout_sec: Override every endpoint's timeout.
            retry_config: Optional retry policy.
            metrics: Optional metrics collector.
            transport: Optional transport; aiohttp by default.

        Returns:
            Configured client.
        """
        interceptors: list[RequestInterceptor] = []
        handlers: list[ResponseHandler] = []

        if base_headers:
            interceptors.append(HeaderInterceptor(base_headers))
        if timeout_sec is not None:
            interceptors.append(TimeoutInterceptor(timeout_sec))
        if enable_logging:
            interceptors.append(LoggingInterceptor(logging_config))
            handlers.append(LoggingResponseHandler(logging_config))

        return cls(
            transport,
            interceptors=interceptors,
            response_handlers=handlers,
            retry_config=retry_config,
            metrics=metrics,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: TransportPort | None = None,
        metrics: MetricsCollectorPort | None = None,
    ) -> NetworkClient:
        """Create a client from runtime settings."""
        return cls.configured(
            enable_logging=settings.log_http,
            logging_config=settings.to_logging_config(),
            timeout_sec=settings.request_timeout_sec,
            retry_config=settings.to_retry_config(),
            metrics=metrics,
            transport=transport,
        )

    async def __aenter__(self) -> NetworkClient:
        """Enter async context manager (open the transport if it needs it).

        Returns:
            Self for use in async with statement.
        """
        enter = getattr(self.transport, "__aenter__", None)
        if enter is not None:
            await enter()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close the transport if it needs it)."""
        exit_ = getattr(self.transport, "__aexit__", None)
        if exit_ is not None:
            await exit_(exc_type, exc, tb)

    async def request_data(self, endpoint: Endpoint) -> bytes:
        """Perform the call described by ``endpoint`` and return the raw body.

        Args:
            endpoint: Endpoint to call.

        Returns:
            Response body after all response handlers.

        Raises:
            InvalidURLError: If the endpoint does not resolve to a valid URL.
            HTTPError: If the final status is outside 200-299.
            TransportError: If the transport call failed.
            RequestCancelledError: If the call was cancelled at any point.
        """
        try:
            return await self._execute(endpoint)
        except RequestCancelledError:
            raise
        except asyncio.CancelledError as e:
            logger.debug(f"Request to {endpoint.path} cancelled")
            raise RequestCancelledError() from e

    async def request(
        self,
        endpoint: Endpoint,
        response_type: type[T],
        decoder: Decoder[T] | None = None,
    ) -> T:
        """Perform the call and decode the body.

        Args:
            endpoint: Endpoint to call.
            response_type: Target type, validated by pydantic from JSON.
            decoder: Optional callable replacing the pydantic decoding.

        Returns:
            Decoded value.

        Raises:
            NoDataError: If the response has an empty body.
            DecodingError: If decoding fails.
        """
        data = await self.request_data(endpoint)
        if not data:
            raise NoDataError()
        try:
            if decoder is not None:
                return decoder(data)
            return _type_adapter(response_type).validate_json(data)
        except DecodingError:
            raise
        except Exception as e:
            raise DecodingError(e) from e

    async def request_mapped(
        self,
        endpoint: Endpoint,
        dto_type: type[DomainMappable],
        decoder: Decoder[DomainMappable] | None = None,
    ) -> Any:
        """Perform the call, decode into ``dto_type`` and map to the domain value.

        Errors raised by ``to_domain()`` propagate unchanged.
        """
        dto = await self.request(endpoint, dto_type, decoder)
        return dto.to_domain()

    async def send(self, endpoint: Endpoint) -> None:
        """Perform the call, discarding the response body."""
        await self.request_data(endpoint)

    async def _execute(self, endpoint: Endpoint) -> bytes:
        start_time = time.time()
        start_clock = time.perf_counter()

        request = endpoint.make_request()
        bytes_sent = request.body_size

        handlers = self.response_handlers
        metrics_handler: MetricsResponseHandler | None = None
        if self.metrics is not None:
            metrics_handler = MetricsResponseHandler(
                self.metrics,
                start_time=start_time,
                start_clock=start_clock,
                endpoint=endpoint.path,
                bytes_sent=bytes_sent,
            )
            handlers = (*handlers, metrics_handler)

        request = await apply_interceptors(self.interceptors, request)

        attempt = functools.partial(
            self._perform_once, handlers=handlers, metrics_handler=metrics_handler
        )
        if self.retry_config is not None:
            attempt = retry(self.retry_config)(attempt)

        body = await attempt(request)

        if self.metrics is not None:
            logger.debug(f"HTTP metrics: {self.metrics}")
        return body

    async def _perform_once(
        self,
        request: TransportRequest,
        *,
        handlers: Sequence[ResponseHandler],
        metrics_handler: MetricsResponseHandler | None,
    ) -> bytes:
        """Single attempt: transport, handlers, status validation.

        Raises:
            HTTPError: If the status is outside 200-299 after the handlers ran.
            TransportError: If the transport raised a non-pipeline error.
        """
        try:
            response = await self.transport.perform(request)
        except RequestCancelledError:
            raise
        except NetworkError:
            await self._record_failure(metrics_handler)
            raise
        except Exception as e:
            await self._record_failure(metrics_handler)
            raise TransportError(e) from e

        try:
            body = await apply_handlers(handlers, response.body, response)
        except Exception:
            # the metrics step is last in the chain, so it has not run
            await self._record_failure(
                metrics_handler,
                status_code=response.status_code,
                bytes_received=len(response.body),
            )
            raise

        if not response.is_success:
            raise HTTPError(response.status_code, body)
        return body

    async def _record_failure(
        self,
        metrics_handler: MetricsResponseHandler | None,
        *,
        status_code: int | None = None,
        bytes_received: int = 0,
    ) -> None:
        if self.metrics is None or metrics_handler is None:
            return
        await self.metrics.record(
            RequestMetrics(
                endpoint=metrics_handler.endpoint,
                status_code=status_code,
                duration_sec=time.perf_counter() - metrics_handler.start_clock,
                bytes_sent=metrics_handler.bytes_sent,
                bytes_received=bytes_received,
                is_success=False,
                timestamp=metrics_handler.start_time,
            )
        )
