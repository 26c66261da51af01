"""Metrics sinks for client telemetry.

The client never reaches for a global meter. A sink is handed to
`build_client(..., metrics=...)` and receives request, retry, error and cache events.

Usage example:
    from secret_store_client.observability.metrics import InMemoryMetrics

    metrics = InMemoryMetrics()
    client = build_client(config, credential, metrics=metrics)
    ...
    print(metrics.snapshot()["requests_total"])
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import override

from ..protocols import MetricsSink


class NullMetricsSink(MetricsSink):
    """Sink that discards every event."""

    @override
    def record_request(
        self, method: str, path: str, status: int, duration_seconds: float
    ) -> None:
        return None

    @override
    def record_retry(self, attempt: int, reason: str) -> None:
        return None

    @override
    def record_error(self, kind: str) -> None:
        return None

    @override
    def record_cache_hit(self, namespace: str) -> None:
        return None

    @override
    def record_cache_miss(self, namespace: str) -> None:
        return None


def _empty_counter() -> Counter[str]:
    return Counter()


@dataclass
class InMemoryMetrics(MetricsSink):
    """Thread-safe counter sink, useful for dashboards that poll the client."""

    requests_total: int = 0
    request_seconds_total: float = 0.0
    retries_total: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    status_codes: Counter[str] = field(default_factory=_empty_counter)
    retry_reasons: Counter[str] = field(default_factory=_empty_counter)
    errors: Counter[str] = field(default_factory=_empty_counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @override
    def record_request(
        self, method: str, path: str, status: int, duration_seconds: float
    ) -> None:
        with self._lock:
            self.requests_total += 1
            self.request_seconds_total += duration_seconds
            self.status_codes[str(status)] += 1

    @override
    def record_retry(self, attempt: int, reason: str) -> None:
        with self._lock:
            self.retries_total += 1
            self.retry_reasons[reason] += 1

    @override
    def record_error(self, kind: str) -> None:
        with self._lock:
            self.errors[kind] += 1

    @override
    def record_cache_hit(self, namespace: str) -> None:
        with self._lock:
            self.cache_hits += 1

    @override
    def record_cache_miss(self, namespace: str) -> None:
        with self._lock:
            self.cache_misses += 1

    def snapshot(self) -> dict[str, object]:
        """Return a consistent copy of all counters."""
        with self._lock:
            return {
                "requests_total": self.requests_total,
                "request_seconds_total": self.request_seconds_total,
                "retries_total": self.retries_total,
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "status_codes": dict(self.status_codes),
                "retry_reasons": dict(self.retry_reasons),
                "errors": dict(self.errors),
            }
