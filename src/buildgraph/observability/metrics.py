"""Metrics for resolution passes.

Metric names:
- buildgraph_packages_total{status, type}: packages per outcome
- buildgraph_cycles_total: dependency cycles found
- buildgraph_graph_packages / buildgraph_graph_edges: size of the last graph
- buildgraph_stage_duration_ms{stage}: time spent resolving and sorting
"""

from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


def metric_key(name: str, tags: dict[str, str] | None = None) -> str:
    """Flatten a name and its tags into one key, e.g. ``name[stage=sort]``."""
    if not tags:
        return name
    return name + "[" + ",".join(f"{k}={tags[k]}" for k in sorted(tags)) + "]"


class MetricsBackend(ABC):
    """Where collected values go."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass

    def flush(self) -> None:
        """Hand buffered values to their destination, if the backend buffers."""


class LoggerBackend(MetricsBackend):
    """
    Keep values in memory and emit them as one log event on ``flush``.

    Gauges keep their last value; timings keep every sample.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.gauges: dict[str, float] = {}
        self.timings: dict[str, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.counters[metric_key(name, tags)] += value

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges[metric_key(name, tags)] = value

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.timings[metric_key(name, tags)].append(value)

    def get_summary(self) -> dict[str, Any]:
        """Counters, gauges, and count/avg/min/max per timing."""
        timings = {
            key: {
                "count": len(samples),
                "avg": sum(samples) / len(samples),
                "min": min(samples),
                "max": max(samples),
            }
            for key, samples in self.timings.items()
            if samples
        }
        return {"counters": dict(self.counters), "gauges": dict(self.gauges), "timings": timings}

    def flush(self) -> None:
        logger.debug("Resolution metrics", **self.get_summary())


class MetricsCollector:
    """
    Resolution-specific front end over a metrics backend.
    """

    def __init__(self, backend: str = "logger") -> None:
        """
        Initialize Metrics Collector.

        Args:
            backend: Backend type to use. Only "logger" is supported.
        """
        if backend != "logger":
            logger.warning("Unknown metrics backend, defaulting to 'logger'", backend=backend)
        self.backend: MetricsBackend = LoggerBackend()

    def count_package(self, status: str, package_type: str) -> None:
        """Record where one package ended up (sorted or disabled)."""
        self.backend.increment(
            "buildgraph_packages_total",
            tags={"status": status, "type": package_type},
        )

    def count_cycles(self, count: int) -> None:
        self.backend.increment("buildgraph_cycles_total", count)

    def record_stage_duration(self, stage: str, duration_ms: float) -> None:
        self.backend.timing("buildgraph_stage_duration_ms", duration_ms, tags={"stage": stage})

    def update_graph_size(self, packages: int, edges: int) -> None:
        self.backend.gauge("buildgraph_graph_packages", float(packages))
        self.backend.gauge("buildgraph_graph_edges", float(edges))

    def flush(self) -> None:
        self.backend.flush()

    def get_summary(self) -> dict[str, Any]:
        """Get summary from backend if supported."""
        if isinstance(self.backend, LoggerBackend):
            return self.backend.get_summary()
        return {}


_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector() -> MetricsCollector:
    """Get or create the process-wide collector used when none is passed."""
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector()
    return _GLOBAL_COLLECTOR
