"""In-process metrics for the request pipeline.

Counters and histograms are recorded by the client, the retry stage and the
credential cache, and can be exported in Prometheus text format.

Example:
    >>> from volc_core.observability.metrics import get_metrics
    >>> metrics = get_metrics()
    >>> metrics.increment_counter("volc_dispatch_attempts_total", {"service": "ecs"})
    >>> print(metrics.export_prometheus())
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import ClassVar

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


@dataclass
class Counter:
    """A monotonically increasing counter metric."""

    name: str
    help_text: str
    values: dict[LabelKey, float] = field(default_factory=dict)

    def increment(self, labels: dict[str, str] | None = None, value: float = 1.0) -> None:
        key = _label_key(labels)
        self.values[key] = self.values.get(key, 0.0) + value

    def get(self, labels: dict[str, str] | None = None) -> float:
        return self.values.get(_label_key(labels), 0.0)


# Send latency buckets in seconds; retries with backoff push calls into the upper buckets
DEFAULT_LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


@dataclass
class HistogramSeries:
    buckets: dict[float, float]
    total: float = 0.0
    count: float = 0.0


@dataclass
class Histogram:
    """A histogram metric for measuring distributions."""

    name: str
    help_text: str
    buckets: tuple[float, ...] = DEFAULT_LATENCY_BUCKETS
    values: dict[LabelKey, HistogramSeries] = field(default_factory=dict)

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = _label_key(labels)
        series = self.values.get(key)
        if series is None:
            series = HistogramSeries(buckets=dict.fromkeys(self.buckets, 0.0))
            self.values[key] = series
        # Per-bucket counts; export accumulates them into Prometheus "le" buckets
        for bound in self.buckets:
            if value <= bound:
                series.buckets[bound] += 1.0
                break
        series.total += value
        series.count += 1.0

    def get_count(self, labels: dict[str, str] | None = None) -> float:
        series = self.values.get(_label_key(labels))
        return series.count if series else 0.0


class MetricsCollector:
    """Collects pipeline metrics and exports them in Prometheus format.

    Unknown metric names are ignored by increment/observe so call sites never
    fail because of metrics.
    """

    DEFAULT_COUNTERS: ClassVar[dict[str, str]] = {
        "volc_send_total": "Total number of Client.send calls",
        "volc_send_errors_total": "Total number of Client.send calls that raised",
        "volc_dispatch_attempts_total": "Total number of dispatch adapter invocations",
        "volc_retries_total": "Total number of retries scheduled by the retry stage",
        "volc_credential_refresh_total": "Total number of assumed-role credential refreshes",
    }

    DEFAULT_HISTOGRAMS: ClassVar[dict[str, str]] = {
        "volc_send_duration_seconds": "Client.send duration in seconds, retries included",
    }

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, Counter] = {
            name: Counter(name=name, help_text=help_text)
            for name, help_text in self.DEFAULT_COUNTERS.items()
        }
        self._histograms: dict[str, Histogram] = {
            name: Histogram(name=name, help_text=help_text)
            for name, help_text in self.DEFAULT_HISTOGRAMS.items()
        }

    def increment_counter(
        self, name: str, labels: dict[str, str] | None = None, value: float = 1.0
    ) -> None:
        with self._lock:
            if name in self._counters:
                self._counters[name].increment(labels, value)

    def observe_histogram(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        with self._lock:
            if name in self._histograms:
                self._histograms[name].observe(value, labels)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            if name in self._counters:
                return self._counters[name].get(labels)
            return 0.0

    def get_histogram_count(self, name: str, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            if name in self._histograms:
                return self._histograms[name].get_count(labels)
            return 0.0

    @staticmethod
    def _format_labels(labels: LabelKey, extra: str | None = None) -> str:
        parts = [
            '{}="{}"'.format(k, v.replace("\\", "\\\\").replace('"', '\\"')) for k, v in labels
        ]
        if extra:
            parts.append(extra)
        if not parts:
            return ""
        return "{" + ",".join(parts) + "}"

    def export_prometheus(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines: list[str] = []

        with self._lock:
            for counter in self._counters.values():
                lines.append(f"# HELP {counter.name} {counter.help_text}")
                lines.append(f"# TYPE {counter.name} counter")
                if not counter.values:
                    lines.append(f"{counter.name} 0")
                for label_key, value in counter.values.items():
                    lines.append(f"{counter.name}{self._format_labels(label_key)} {value}")

            for histogram in self._histograms.values():
                lines.append(f"# HELP {histogram.name} {histogram.help_text}")
                lines.append(f"# TYPE {histogram.name} histogram")
                for label_key, series in histogram.values.items():
                    cumulative = 0.0
                    for bound in histogram.buckets:
                        cumulative += series.buckets.get(bound, 0.0)
                        label_str = self._format_labels(label_key, f'le="{bound}"')
                        lines.append(f"{histogram.name}_bucket{label_str} {cumulative}")
                    label_str = self._format_labels(label_key, 'le="+Inf"')
                    lines.append(f"{histogram.name}_bucket{label_str} {series.count}")
                    base_labels = self._format_labels(label_key)
                    lines.append(f"{histogram.name}_sum{base_labels} {series.total}")
                    lines.append(f"{histogram.name}_count{base_labels} {series.count}")

        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        """Reset all metrics to zero. Useful for testing."""
        with self._lock:
            for counter in self._counters.values():
                counter.values.clear()
            for histogram in self._histograms.values():
                histogram.values.clear()


_metrics_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    global _metrics_collector
    with _collector_lock:
        if _metrics_collector is None:
            _metrics_collector = MetricsCollector()
        return _metrics_collector


def reset_metrics() -> None:
    """Reset the process-wide metrics collector. Useful for testing."""
    with _collector_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset()
