"""Tests for endpoint resolution, request values and the error taxonomy."""

import asyncio

import pytest
from pydantic import BaseModel

from reqpipe.ports.errors import (
    CustomError,
    DecodingError,
    EncodingError,
    HTTPError,
    InvalidURLError,
    NetworkError,
    NoDataError,
    RequestCancelledError,
    TransportError,
)
from reqpipe.ports.http import (
    CachePolicy,
    DEFAULT_HEADERS,
    Endpoint,
    HttpMethod,
    TransportResponse,
    is_success_status,
)

__all__ = []


class NewUser(BaseModel):
    name: str
    age: int


@pytest.mark.parametrize(
    ("base_url", "path", "expected"),
    [
        ("https://api.example.com", "/users/1", "https://api.example.com/users/1"),
        ("https://api.example.com/", "users/1", "https://api.example.com/users/1"),
        ("https://api.example.com/v1", "/users", "https://api.example.com/v1/users"),
        ("http://localhost:8080/v1/", "/users", "http://localhost:8080/v1/users"),
    ],
)
def test_endpoint_url_joins_base_and_path(base_url: str, path: str, expected: str) -> None:
    """Path should be appended to the base as one path component."""
    assert Endpoint(base_url=base_url, path=path).url() == expected


def test_endpoint_url_keeps_query_order() -> None:
    """Query items should be rendered in the given order."""
    endpoint = Endpoint(
        base_url="https://api.example.com",
        path="/search",
        query_items=(("q", "shoes"), ("page", "2"), ("flag", None)),
    )

    assert endpoint.url() == "https://api.example.com/search?q=shoes&page=2&flag="


def test_endpoint_url_ignores_empty_query() -> None:
    """An empty query sequence should not add a question mark."""
    endpoint = Endpoint(base_url="https://api.example.com", path="/x", query_items=())

    assert endpoint.url() == "https://api.example.com/x"


@pytest.mark.parametrize(
    "base_url",
    ["not a url", "ftp://files.example.com", "https://", "/relative/only", ""],
)
def test_endpoint_url_rejects_invalid_bases(base_url: str) -> None:
    """Bases that cannot form an absolute http(s) URL should be rejected."""
    with pytest.raises(InvalidURLError):
        Endpoint(base_url=base_url, path="/x").url()


def test_endpoint_defaults() -> None:
    """Endpoint defaults should match the documented values."""
    endpoint = Endpoint(base_url="https://api.example.com", path="/x")

    assert endpoint.method is HttpMethod.GET
    assert dict(endpoint.headers) == dict(DEFAULT_HEADERS)
    assert endpoint.timeout_sec == 30.0
    assert endpoint.cache_policy is CachePolicy.USE_PROTOCOL_CACHE_POLICY
    assert endpoint.body is None


def test_make_request_copies_endpoint_values() -> None:
    """The initial request should mirror the endpoint without sharing headers."""
    endpoint = Endpoint(
        base_url="https://api.example.com",
        path="/items",
        method=HttpMethod.DELETE,
        headers={"X-One": "1"},
        timeout_sec=5.0,
    )

    request = endpoint.make_request()
    request.headers["X-Two"] = "2"

    assert request.method is HttpMethod.DELETE
    assert request.url == "https://api.example.com/items"
    assert request.path == "/items"
    assert request.timeout_sec == 5.0
    assert request.body_size == 0
    assert dict(endpoint.headers) == {"X-One": "1"}


def test_with_json_encodes_body() -> None:
    """with_json should serialise the body and default to POST."""
    endpoint = Endpoint.with_json("https://api.example.com", "/users", NewUser(name="Ada", age=36))

    assert endpoint.method is HttpMethod.POST
    assert NewUser.model_validate_json(endpoint.body) == NewUser(name="Ada", age=36)
    assert endpoint.make_request().body_size == len(endpoint.body)


def test_with_json_raises_encoding_error() -> None:
    """Unserialisable bodies should raise EncodingError."""

    class Opaque:
        pass

    with pytest.raises(EncodingError):
        Endpoint.with_json("https://api.example.com", "/users", Opaque())


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [(199, False), (200, True), (204, True), (299, True), (300, False), (404, False)],
)
def test_status_classification(status_code: int, expected: bool) -> None:
    """200-299 inclusive is success."""
    assert is_success_status(status_code) is expected
    assert TransportResponse(status_code=status_code).is_success is expected


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (InvalidURLError(), "Invalid URL"),
        (HTTPError(503, b"down"), "HTTP error: 503"),
        (DecodingError(ValueError("bad")), "Decoding error: bad"),
        (EncodingError(TypeError("nope")), "Encoding error: nope"),
        (TransportError(OSError("reset")), "Network error: reset"),
        (NoDataError(), "No data received"),
        (RequestCancelledError(), "Request cancelled"),
        (CustomError("custom message"), "custom message"),
    ],
)
def test_error_messages(error: NetworkError, message: str) -> None:
    """Every error kind should be a NetworkError with a readable message."""
    assert isinstance(error, NetworkError)
    assert str(error) == message


def test_cancelled_error_is_also_asyncio_cancellation() -> None:
    """RequestCancelledError should be catchable as asyncio.CancelledError."""
    assert isinstance(RequestCancelledError(), asyncio.CancelledError)


def test_http_error_keeps_status_and_body() -> None:
    """HTTPError should expose status and body."""
    error = HTTPError(429, b"slow down")

    assert error.status_code == 429
    assert error.body == b"slow down"
