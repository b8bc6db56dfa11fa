"""HTTP port definitions (DTOs and capability protocols)."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import TypeAdapter
from yarl import URL

from reqpipe.ports.errors import EncodingError, InvalidURLError

__all__ = [
    "CachePolicy",
    "DEFAULT_HEADERS",
    "DomainMappable",
    "Endpoint",
    "HttpMethod",
    "RequestInterceptor",
    "ResponseHandler",
    "TransportPort",
    "TransportRequest",
    "TransportResponse",
    "is_success_status",
]

DEFAULT_HEADERS: Mapping[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
DEFAULT_TIMEOUT_SEC = 30.0

QueryItems = tuple[tuple[str, str | None], ...]


class HttpMethod(enum.Enum):
    """HTTP methods an endpoint may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class CachePolicy(enum.Enum):
    """Cache policy carried on every request.

    Transports in this package do not cache; the value is passed through
    so that a caching transport can honour it.
    """

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE = "reload_ignoring_local_cache"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"


def is_success_status(status_code: int) -> bool:
    """Return True for 2xx status codes (200-299 inclusive)."""
    return 200 <= status_code <= 299


@dataclass
class TransportRequest:
    """Request as handed to the transport.

    Interceptors receive it one step at a time and may modify it in place
    or return a replacement.

    Attributes:
        method: HTTP method.
        url: Fully resolved URL (base + path + query).
        headers: Header mapping sent on the wire.
        body: Optional request body.
        timeout_sec: Total timeout for the transport call.
        path: Endpoint path, used as registry key by the mock transport
            and as the metrics endpoint name.
        cache_policy: Cache policy requested by the endpoint.
    """

    method: HttpMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    path: str = "/"
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY

    @property
    def body_size(self) -> int:
        return len(self.body) if self.body else 0

    def copy(self) -> TransportRequest:
        """Return an independent copy (headers included)."""
        return dataclasses.replace(self, headers=dict(self.headers))


@dataclass(frozen=True)
class TransportResponse:
    """Raw response returned by a transport.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        body: Response body.
        url: URL that produced this response.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def is_success(self) -> bool:
        return is_success_status(self.status_code)


@dataclass(frozen=True)
class Endpoint:
    """Immutable description of one intended HTTP call.

    Attributes:
        base_url: API root, e.g. ``https://api.example.com/v1``.
        path: Path appended to the base URL, e.g. ``/users/123``.
        method: HTTP method.
        headers: Headers for this call.
        query_items: Ordered query parameters; ``None`` values render as ``name=``.
        body: Optional request body.
        cache_policy: Cache policy for the request.
        timeout_sec: Timeout for the transport call.
    """

    base_url: str
    path: str
    method: HttpMethod = HttpMethod.GET
    headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    query_items: QueryItems | None = None
    body: bytes | None = None
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    timeout_sec: float = DEFAULT_TIMEOUT_SEC

    @classmethod
    def with_json(
        cls,
        base_url: str,
        path: str,
        body: Any,
        *,
        method: HttpMethod = HttpMethod.POST,
        **kwargs: Any,
    ) -> Endpoint:
        """Create an endpoint whose body is ``body`` serialised as JSON.

        Args:
            base_url: API root.
            path: Endpoint path.
            body: Any value pydantic can serialise (models, dataclasses, dicts...).
            method: HTTP method, POST by default.
            **kwargs: Remaining ``Endpoint`` fields.

        Returns:
            The new endpoint.

        Raises:
            EncodingError: If ``body`` cannot be serialised.
        """
        try:
            encoded = TypeAdapter(type(body)).dump_json(body)
        except Exception as e:
            raise EncodingError(e) from e
        return cls(base_url=base_url, path=path, method=method, body=encoded, **kwargs)

    def url(self) -> str:
        """Resolve base URL, path and query items into one absolute URL.

        Raises:
            InvalidURLError: If the result is not an absolute http(s) URL.
        """
        try:
            base = URL(self.base_url)
            if base.scheme not in ("http", "https") or not base.host:
                raise InvalidURLError()
            resolved = base.with_path(base.path.rstrip("/") + "/" + self.path.lstrip("/"))
            if self.query_items:
                resolved = resolved.with_query(
                    [(name, "" if value is None else value) for name, value in self.query_items]
                )
        except (TypeError, ValueError) as e:
            raise InvalidURLError() from e
        return str(resolved)

    def make_request(self) -> TransportRequest:
        """Build the initial transport request for this endpoint."""
        return TransportRequest(
            method=self.method,
            url=self.url(),
            headers=dict(self.headers),
            body=self.body,
            timeout_sec=self.timeout_sec,
            path=self.path,
            cache_policy=self.cache_policy,
        )


class RequestInterceptor(Protocol):
    """Request-transform step executed before sending."""

    async def intercept(self, request: TransportRequest, /) -> TransportRequest:
        """Return the (possibly modified) request.

        Args:
            request: Output of the previous step.
        """
        ...


class ResponseHandler(Protocol):
    """Response-transform step executed after receiving."""

    async def handle(self, body: bytes, response: TransportResponse, /) -> bytes:
        """Return the (possibly modified) body.

        Args:
            body: Output of the previous step.
            response: The transport response being processed.
        """
        ...


class TransportPort(Protocol):
    """The single "perform transport call" operation the pipeline needs.

    Implementations raise ``NetworkError`` subclasses or let their own
    I/O errors escape; the client wraps the latter into ``TransportError``.
    """

    async def perform(self, request: TransportRequest, /) -> TransportResponse: ...


class DomainMappable(Protocol):
    """Decoded wire value that can map itself to a domain value."""

    def to_domain(self) -> Any: ...
