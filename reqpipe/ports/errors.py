"""Error taxonomy shared by every pipeline component."""

import asyncio

__all__ = [
    "NetworkError",
    "InvalidURLError",
    "HTTPError",
    "DecodingError",
    "EncodingError",
    "TransportError",
    "NoDataError",
    "RequestCancelledError",
    "CustomError",
]


class NetworkError(Exception):
    """Base class for every failure a pipeline call can end with.

    Callers receive exactly one of the subclasses below per logical call.
    """


class InvalidURLError(NetworkError):
    """Base URL, path and query could not form a valid address."""

    def __str__(self) -> str:
        return "Invalid URL"


class HTTPError(NetworkError):
    """The response status code was outside 200-299.

    Attributes:
        status_code: HTTP status returned by the server (or the mock).
        body: Response body after all response handlers ran, if any.
    """

    def __init__(self, status_code: int, body: bytes | None = None) -> None:
        super().__init__(status_code, body)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return f"HTTP error: {self.status_code}"


class DecodingError(NetworkError):
    """The response body could not be decoded into the expected type."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Decoding error: {self.cause}"


class EncodingError(NetworkError):
    """A request body could not be encoded."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Encoding error: {self.cause}"


class TransportError(NetworkError):
    """The transport call itself failed (connection, DNS, timeout, ...)."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Network error: {self.cause}"


class NoDataError(NetworkError):
    """A body was expected but the response carried none."""

    def __str__(self) -> str:
        return "No data received"


class RequestCancelledError(NetworkError, asyncio.CancelledError):
    """The call was cancelled.

    Also an ``asyncio.CancelledError`` so that the task running the call
    still ends up cancelled from asyncio's point of view.
    """

    def __str__(self) -> str:
        return "Request cancelled"


class CustomError(NetworkError):
    """Free-form failure raised by interceptors, handlers or test doubles."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message
