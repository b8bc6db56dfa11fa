"""In-memory metrics collection for HTTP requests."""

from __future__ import annotations

import asyncio
import time

from reqpipe.ports.http import TransportResponse
from reqpipe.ports.metrics import MetricsCollectorPort, MetricsStatistics, RequestMetrics

__all__ = ["InMemoryMetricsCollector", "MetricsResponseHandler"]


class InMemoryMetricsCollector(MetricsCollectorPort):
    """Append-only metrics log.

    Every read and write goes through one ``asyncio.Lock``, so concurrent
    requests on the same client never see a torn log. Statistics are
    recomputed from the log on each call.
    """

    def __init__(self) -> None:
        self._records: list[RequestMetrics] = []
        self._lock = asyncio.Lock()

    async def record(self, metrics: RequestMetrics) -> None:
        """Append one record.

        Args:
            metrics: Finished attempt.
        """
        async with self._lock:
            self._records.append(metrics)

    async def get_all_metrics(self) -> list[RequestMetrics]:
        """Return a snapshot of every record, in recording order."""
        async with self._lock:
            return list(self._records)

    async def get_statistics(self) -> MetricsStatistics:
        """Return aggregate statistics over every record."""
        async with self._lock:
            return MetricsStatistics.from_records(self._records)

    async def reset(self) -> None:
        """Drop every record."""
        async with self._lock:
            self._records.clear()

    def __str__(self) -> str:
        """Return human-readable one-line summary for logging.

        Reads the log without the lock; a list snapshot is atomic within
        the event loop.

        Returns:
            Formatted metrics string.
        """
        records = list(self._records)
        if not records:
            return "Metrics: waiting for data …"

        stats = MetricsStatistics.from_records(records)
        last = records[-1]
        last_status = f"{last.status_code:3d}" if last.status_code is not None else "---"

        return (
            f"avg={stats.average_duration_sec * 1_000.0:5.1f} ms | "
            f"status={last_status} | "
            f"ok={stats.success_rate * 100:5.1f}% | "
            f"sent={stats.total_bytes_sent}B | "
            f"recv={stats.total_bytes_received}B | "
            f"total={stats.total_requests}"
        )


class MetricsResponseHandler:
    """Response handler that records one metrics entry per response.

    Appended to the handler chain per request, carrying the values the
    client captured before the interceptor chain ran.
    """

    def __init__(
        self,
        collector: MetricsCollectorPort,
        *,
        start_time: float,
        start_clock: float,
        endpoint: str,
        bytes_sent: int,
    ) -> None:
        """Initialize the handler.

        Args:
            collector: Where records go.
            start_time: Epoch seconds when the request started (record timestamp).
            start_clock: ``time.perf_counter()`` at request start (duration origin).
            endpoint: Endpoint path.
            bytes_sent: Request body size.
        """
        self.collector = collector
        self.start_time = start_time
        self.start_clock = start_clock
        self.endpoint = endpoint
        self.bytes_sent = bytes_sent

    async def handle(self, body: bytes, response: TransportResponse) -> bytes:
        await self.collector.record(
            RequestMetrics(
                endpoint=self.endpoint,
                status_code=response.status_code,
                duration_sec=time.perf_counter() - self.start_clock,
                bytes_sent=self.bytes_sent,
                bytes_received=len(body),
                is_success=response.is_success,
                timestamp=self.start_time,
            )
        )
        return body
