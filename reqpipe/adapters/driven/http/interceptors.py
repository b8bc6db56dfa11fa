"""Built-in request interceptors."""

import inspect
from collections.abc import Awaitable, Callable, Mapping

from reqpipe.ports.http import TransportRequest

__all__ = ["BearerTokenInterceptor", "HeaderInterceptor", "TimeoutInterceptor"]

TokenProvider = Callable[[], str | Awaitable[str]]


class HeaderInterceptor:
    """Set (or override) a fixed set of headers on every request."""

    def __init__(self, headers: Mapping[str, str]) -> None:
        self.headers = dict(headers)

    async def intercept(self, request: TransportRequest) -> TransportRequest:
        request.headers.update(self.headers)
        return request


class BearerTokenInterceptor:
    """Add ``Authorization: Bearer <token>`` to every request.

    Either a static ``token`` or a ``token_provider`` callable must be given.
    The provider may be sync or async; it is invoked once per request and
    may run concurrently for overlapping requests, so it must handle its own
    synchronisation (e.g. around a token refresh).
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        token_provider: TokenProvider | None = None,
    ) -> None:
        if (token is None) == (token_provider is None):
            raise ValueError("Exactly one of token or token_provider is required")
        self.token_provider: TokenProvider = token_provider or (lambda: token)

    async def intercept(self, request: TransportRequest) -> TransportRequest:
        token = self.token_provider()
        if inspect.isawaitable(token):
            token = await token
        request.headers["Authorization"] = f"Bearer {token}"
        return request


class TimeoutInterceptor:
    """Override the timeout of every request."""

    def __init__(self, timeout_sec: float) -> None:
        if timeout_sec <= 0:
            raise ValueError(f"timeout_sec must be positive, got {timeout_sec}")
        self.timeout_sec = timeout_sec

    async def intercept(self, request: TransportRequest) -> TransportRequest:
        request.timeout_sec = self.timeout_sec
        return request
