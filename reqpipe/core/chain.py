"""Execution of the interceptor and response-handler chains."""

from collections.abc import Sequence

from reqpipe.ports.http import (
    RequestInterceptor,
    ResponseHandler,
    TransportRequest,
    TransportResponse,
)

__all__ = ["apply_handlers", "apply_interceptors"]


async def apply_interceptors(
    interceptors: Sequence[RequestInterceptor],
    request: TransportRequest,
) -> TransportRequest:
    """Run request interceptors in order.

    Each step receives the previous step's output. The first failure aborts
    the chain and propagates unchanged.

    Args:
        interceptors: Steps to run, in order.
        request: Initial request built from the endpoint.

    Returns:
        The request produced by the last step.
    """
    for interceptor in interceptors:
        request = await interceptor.intercept(request)
    return request


async def apply_handlers(
    handlers: Sequence[ResponseHandler],
    body: bytes,
    response: TransportResponse,
) -> bytes:
    """Run response handlers in order, feeding each the previous body.

    Args:
        handlers: Steps to run, in order.
        body: Raw body returned by the transport.
        response: Response the body belongs to.

    Returns:
        The body produced by the last step.
    """
    for handler in handlers:
        body = await handler.handle(body, response)
    return body
