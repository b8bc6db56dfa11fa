"""Metrics port definition (interface and DTOs)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

__all__ = ["MetricsCollectorPort", "MetricsStatistics", "RequestMetrics"]


@dataclass(slots=True, frozen=True)
class RequestMetrics:
    """Immutable record of a single request attempt.

    Attributes:
        endpoint: Endpoint path that was requested.
        status_code: HTTP status code; None if the transport failed before a response.
        duration_sec: Time from request start to record, in seconds.
        bytes_sent: Request body size.
        bytes_received: Response body size.
        is_success: True for 2xx responses.
        timestamp: Epoch seconds when the request started.
    """

    endpoint: str
    status_code: int | None
    duration_sec: float
    bytes_sent: int
    bytes_received: int
    is_success: bool
    timestamp: float


@dataclass(slots=True, frozen=True)
class MetricsStatistics:
    """Aggregate view over a set of metrics records.

    Never stored; always rebuilt from the record log.
    """

    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    average_duration_sec: float
    total_bytes_sent: int
    total_bytes_received: int

    @classmethod
    def from_records(cls, records: Sequence[RequestMetrics]) -> MetricsStatistics:
        total = len(records)
        successful = sum(1 for r in records if r.is_success)
        total_duration = sum(r.duration_sec for r in records)
        return cls(
            total_requests=total,
            successful_requests=successful,
            failed_requests=total - successful,
            success_rate=successful / total if total else 0.0,
            average_duration_sec=total_duration / total if total else 0.0,
            total_bytes_sent=sum(r.bytes_sent for r in records),
            total_bytes_received=sum(r.bytes_received for r in records),
        )


class MetricsCollectorPort(Protocol):
    """Interface for recording request metrics.

    Implementations must be safe to call from many concurrent requests
    sharing one client.
    """

    async def record(self, metrics: RequestMetrics, /) -> None:
        """Record a finished request attempt.

        Args:
            metrics: The attempt to record.
        """
        ...
