"""Metrics collector — Prometheus counters and histograms.

- ``algo_broadcast_histogram`` — duration of broadcast-and-confirm calls
- ``algo_broadcast_outcome_total`` — broadcasts by outcome
- ``algo_query_histogram`` — duration of read operations, by operation
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "algo"

# Values of the ``outcome`` label
OUTCOME_CONFIRMED = "confirmed"
OUTCOME_RECONCILIATION_FAILED = "reconciliation_failed"
OUTCOME_NOT_CONFIRMED = "not_confirmed"
OUTCOME_SUBMISSION_FAILED = "submission_failed"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`GatewayMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class GatewayMetrics:
    """High-level gateway metrics.

    All histograms track operation duration in seconds.
    """

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._broadcast = self._collector.histogram(
            f"{_PREFIX}_broadcast_histogram",
            "Duration of broadcast-and-confirm operations",
        )
        self._outcomes = self._collector.counter(
            f"{_PREFIX}_broadcast_outcome",
            "Broadcasts by outcome",
            ("outcome",),
        )
        self._query = self._collector.histogram(
            f"{_PREFIX}_query_histogram",
            "Duration of read-only node queries",
            ("operation",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_outcome(self, outcome: str) -> None:
        """Count one broadcast ending in *outcome*."""
        self._outcomes.labels(outcome=outcome).inc()

    @contextmanager
    def track_broadcast(self) -> Iterator[None]:
        """Track the duration of a broadcast."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._broadcast.observe(time.monotonic() - start)

    @contextmanager
    def track_query(self, operation: str) -> Iterator[None]:
        """Track the duration of a read operation."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._query.labels(operation=operation).observe(time.monotonic() - start)
