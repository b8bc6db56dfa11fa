"""aiohttp-backed transport adapter."""

import asyncio
import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout

from reqpipe.ports.errors import TransportError
from reqpipe.ports.http import TransportPort, TransportRequest, TransportResponse

__all__ = ["AiohttpTransport", "TRANSPORT_ERRORS"]

logger = logging.getLogger(__name__)

# Failures of the transport call itself, reported as TransportError
TRANSPORT_ERRORS = (
    aiohttp.ClientError,  # Connection refused, DNS, payload, disconnects
    asyncio.TimeoutError,  # ClientTimeout expired
)


class AiohttpTransport(TransportPort):
    """Transport performing real HTTP calls through an ``aiohttp.ClientSession``.

    The session is created on ``__aenter__`` (or lazily on first use) and
    closed on ``__aexit__``/``close()``.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        """Initialize transport.

        Args:
            session: Optional externally owned session. When given, it is not
                closed by this transport.
        """
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AiohttpTransport":
        if self.session is None:
            self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def perform(self, request: TransportRequest) -> TransportResponse:
        """Send ``request`` and read the full body.

        Raises:
            TransportError: On connection failures and timeouts.
        """
        if self.session is None:
            self.session = aiohttp.ClientSession()

        try:
            async with self.session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=ClientTimeout(total=request.timeout_sec),
                allow_redirects=True,
            ) as resp:
                body = await resp.read()
                return TransportResponse(
                    status_code=resp.status,
                    headers=dict(resp.headers),
                    body=body,
                    url=str(resp.url),
                )
        except TRANSPORT_ERRORS as e:
            logger.debug(f"Transport failure for {request.method.value} {request.url}: {e!r}")
            raise TransportError(e) from e
