"""Tests for built-in request interceptors."""

import asyncio

import pytest

from reqpipe.adapters.driven.http.interceptors import (
    BearerTokenInterceptor,
    HeaderInterceptor,
    TimeoutInterceptor,
)
from reqpipe.ports.http import HttpMethod, TransportRequest

__all__ = []


def make_request() -> TransportRequest:
    """Create a plain GET request."""
    return TransportRequest(
        method=HttpMethod.GET,
        url="https://api.example.com/x",
        headers={"Accept": "application/json"},
        path="/x",
    )


@pytest.mark.asyncio
async def test_header_interceptor_adds_and_overrides() -> None:
    """HeaderInterceptor should add new headers and override existing ones."""
    interceptor = HeaderInterceptor({"Accept": "text/plain", "X-Trace": "abc"})

    request = await interceptor.intercept(make_request())

    assert request.headers == {"Accept": "text/plain", "X-Trace": "abc"}


@pytest.mark.asyncio
async def test_bearer_token_interceptor_with_static_token() -> None:
    """A static token should be sent as a Bearer Authorization header."""
    request = await BearerTokenInterceptor("s3cret").intercept(make_request())

    assert request.headers["Authorization"] == "Bearer s3cret"


@pytest.mark.asyncio
async def test_bearer_token_interceptor_with_sync_provider() -> None:
    """A sync provider should be invoked once per request."""
    tokens = iter(["t1", "t2"])
    interceptor = BearerTokenInterceptor(token_provider=lambda: next(tokens))

    first = await interceptor.intercept(make_request())
    second = await interceptor.intercept(make_request())

    assert first.headers["Authorization"] == "Bearer t1"
    assert second.headers["Authorization"] == "Bearer t2"


@pytest.mark.asyncio
async def test_bearer_token_interceptor_with_async_provider_runs_concurrently() -> None:
    """An async provider should be awaited and tolerate concurrent requests."""
    calls = 0

    async def refresh() -> str:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return "fresh"

    interceptor = BearerTokenInterceptor(token_provider=refresh)

    requests = await asyncio.gather(*(interceptor.intercept(make_request()) for _ in range(5)))

    assert calls == 5
    assert all(r.headers["Authorization"] == "Bearer fresh" for r in requests)


@pytest.mark.asyncio
async def test_bearer_token_provider_failure_propagates() -> None:
    """Provider errors should propagate unchanged."""

    async def broken() -> str:
        raise PermissionError("refresh denied")

    with pytest.raises(PermissionError, match="refresh denied"):
        await BearerTokenInterceptor(token_provider=broken).intercept(make_request())


@pytest.mark.parametrize("kwargs", [{}, {"token": "a", "token_provider": lambda: "b"}])
def test_bearer_token_interceptor_requires_exactly_one_source(kwargs: dict) -> None:
    """Either a token or a provider must be given, not both or neither."""
    with pytest.raises(ValueError, match="Exactly one"):
        BearerTokenInterceptor(**kwargs)


@pytest.mark.asyncio
async def test_timeout_interceptor_overrides_timeout() -> None:
    """TimeoutInterceptor should replace the request timeout."""
    request = await TimeoutInterceptor(2.5).intercept(make_request())

    assert request.timeout_sec == 2.5


def test_timeout_interceptor_rejects_non_positive() -> None:
    """Non-positive timeouts should be rejected."""
    with pytest.raises(ValueError):
        TimeoutInterceptor(0)
