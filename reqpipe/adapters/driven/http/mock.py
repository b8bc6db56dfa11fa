"""Deterministic in-memory transport for tests and previews."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter

from reqpipe.ports.errors import CustomError, EncodingError
from reqpipe.ports.http import TransportPort, TransportRequest, TransportResponse

__all__ = ["MockResponse", "MockTransport"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MockResponse:
    """Canned response served by ``MockTransport``.

    Attributes:
        body: Response body.
        status_code: HTTP status code; non-2xx surfaces as ``HTTPError``.
        delay_sec: Artificial latency before the response is returned.
        headers: Response headers.
    """

    body: bytes = b""
    status_code: int = 200
    delay_sec: float = 0.0
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def json(cls, value: Any, status_code: int = 200, delay_sec: float = 0.0) -> MockResponse:
        """Create a response whose body is ``value`` serialised as JSON.

        Raises:
            EncodingError: If ``value`` cannot be serialised.
        """
        try:
            body = TypeAdapter(type(value)).dump_json(value)
        except Exception as e:
            raise EncodingError(e) from e
        return cls(
            body=body,
            status_code=status_code,
            delay_sec=delay_sec,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def error(cls, status_code: int, message: str = "", delay_sec: float = 0.0) -> MockResponse:
        """Create an error response carrying ``message`` as its body."""
        return cls(body=message.encode("utf-8"), status_code=status_code, delay_sec=delay_sec)


class MockTransport(TransportPort):
    """Transport double resolving responses from an in-memory registry.

    Resolution order for a request path:
    1. the registered sequence (next entry; the last one repeats forever),
    2. the single registered response,
    3. the default response,
    4. ``CustomError("No mock response registered for path: ...")``.

    Every call is appended to the history before it is resolved, so the
    history holds one entry per attempt, failed ones included. Registry and
    history share one ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._responses: dict[str, MockResponse] = {}
        self._sequences: dict[str, list[MockResponse]] = {}
        self._default: MockResponse | None = None
        self._history: list[TransportRequest] = []
        self._lock = asyncio.Lock()

    @classmethod
    async def preview(cls, value: Any, status_code: int = 200) -> MockTransport:
        """Create a mock answering every path with ``value`` as JSON."""
        transport = cls()
        await transport.set_default(MockResponse.json(value, status_code=status_code))
        return transport

    async def register(self, path: str, response: MockResponse) -> None:
        """Serve ``response`` for every request to ``path``."""
        async with self._lock:
            self._responses[path] = response

    async def register_json(self, path: str, value: Any, status_code: int = 200) -> None:
        """Serve ``value`` as JSON for every request to ``path``."""
        await self.register(path, MockResponse.json(value, status_code=status_code))

    async def register_sequence(self, path: str, responses: Iterable[MockResponse]) -> None:
        """Serve ``responses`` in order for ``path``, repeating the last one.

        Raises:
            ValueError: If ``responses`` is empty.
        """
        queue = list(responses)
        if not queue:
            raise ValueError(f"Response sequence for {path} must not be empty")
        async with self._lock:
            self._sequences[path] = queue

    async def set_default(self, response: MockResponse | None) -> None:
        """Serve ``response`` for every unregistered path (None clears it)."""
        async with self._lock:
            self._default = response

    async def get_request_history(self) -> list[TransportRequest]:
        """Return every request received so far, in arrival order."""
        async with self._lock:
            return list(self._history)

    async def clear_history(self) -> None:
        async with self._lock:
            self._history.clear()

    async def reset(self) -> None:
        """Drop every registration and the history."""
        async with self._lock:
            self._responses.clear()
            self._sequences.clear()
            self._default = None
            self._history.clear()

    async def perform(self, request: TransportRequest) -> TransportResponse:
        """Resolve ``request`` against the registry.

        Raises:
            CustomError: If nothing is registered for the path and no default is set.
        """
        async with self._lock:
            self._history.append(request.copy())
            mock = self._resolve(request.path)

        if mock is None:
            raise CustomError(f"No mock response registered for path: {request.path}")

        if mock.delay_sec > 0:
            await asyncio.sleep(mock.delay_sec)

        logger.debug(f"Mock {request.method.value} {request.path} -> {mock.status_code}")
        return TransportResponse(
            status_code=mock.status_code,
            headers=dict(mock.headers),
            body=mock.body,
            url=request.url,
        )

    def _resolve(self, path: str) -> MockResponse | None:
        """Pick the response for ``path``; caller holds the lock."""
        sequence = self._sequences.get(path)
        if sequence:
            return sequence.pop(0) if len(sequence) > 1 else sequence[0]
        return self._responses.get(path, self._default)
