"""Prometheus collector for auth service round trips.

Tracks request and error counts and the last observed duration per
endpoint. Values are kept in plain counters and exposed through a custom
collector, so nothing is registered in the global registry.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from threading import Lock

import prometheus_client.core
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

METRIC_PREFIX = "tenant_auth"


@dataclass
class EndpointStats:
    """Counters for a single endpoint label."""

    requests: int = 0
    errors: int = 0
    last_duration: float = 0.0


class ExchangeCollector(Collector):
    """Prometheus collector for auth service exchanges.

    ``record`` may be called from any thread; ``collect`` takes a consistent
    snapshot under the same lock.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._stats: dict[str, EndpointStats] = {}

    def record(self, endpoint: str, duration: float, *, failed: bool) -> None:
        """Record one round trip.

        Args:
            endpoint: Endpoint label (e.g., "cluster_token").
            duration: Round trip duration in seconds.
            failed: Whether the round trip ended in an error.
        """
        with self._lock:
            stats = self._stats.setdefault(endpoint, EndpointStats())
            stats.requests += 1
            if failed:
                stats.errors += 1
            stats.last_duration = duration

    def snapshot(self) -> dict[str, EndpointStats]:
        """Return a copy of the current per-endpoint counters."""
        with self._lock:
            return {
                endpoint: EndpointStats(s.requests, s.errors, s.last_duration)
                for endpoint, s in self._stats.items()
            }

    def collect(self) -> Iterator[Metric]:
        """Yield request, error and duration metrics for every endpoint."""
        snapshot = self.snapshot()

        requests = CounterMetricFamily(
            f"{METRIC_PREFIX}_requests",
            "auth service requests sent",
            labels=["endpoint"],
        )
        errors = CounterMetricFamily(
            f"{METRIC_PREFIX}_request_errors",
            "auth service requests that ended in an error",
            labels=["endpoint"],
        )
        duration = GaugeMetricFamily(
            f"{METRIC_PREFIX}_request_duration_seconds",
            "duration of the last auth service request in seconds",
            labels=["endpoint"],
        )
        for endpoint, stats in sorted(snapshot.items()):
            requests.add_metric([endpoint], stats.requests)
            errors.add_metric([endpoint], stats.errors)
            duration.add_metric([endpoint], stats.last_duration)

        yield requests
        yield errors
        yield duration


def create_registry(
    collector: ExchangeCollector,
) -> prometheus_client.core.CollectorRegistry:
    """Create a private registry with the exchange collector registered."""
    registry = prometheus_client.core.CollectorRegistry()
    registry.register(collector)
    return registry
