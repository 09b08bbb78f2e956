"""Prometheus request metrics."""

from __future__ import annotations

import threading
import time
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import accumulate

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from bookapi.errors import AppErrorCode, app_error

APP_NAME = "Book API"

SECONDS_DURATION_BUCKETS = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)

REQUESTS_TOTAL = "http_requests_total"
REQUESTS_DURATION = "http_requests_duration_seconds"

_Labels = tuple[tuple[str, str], ...]


def _number(value: float) -> str:
    if isinstance(value, float):
        if value == float("inf"):
            return "+Inf"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_labels(labels: _Labels) -> str:
    inner = ",".join(f'{name}="{_escape(value)}"' for name, value in labels)
    return f"{{{inner}}}"


@dataclass
class _Histogram:
    buckets: tuple[float, ...]
    counts: list[int] = field(default_factory=list)
    total: float = 0.0
    count: int = 0

    def __post_init__(self) -> None:
        self.counts = [0] * len(self.buckets)

    def record(self, value: float) -> None:
        index = bisect_left(self.buckets, value)
        if index < len(self.counts):
            self.counts[index] += 1
        self.total += value
        self.count += 1


class PrometheusMetric:
    """Registry of request counters and latency histograms."""

    def __init__(self, buckets: Sequence[float] = SECONDS_DURATION_BUCKETS) -> None:
        if not buckets:
            raise app_error(
                AppErrorCode.INTERNAL_ERROR, "bucket/quantile values cannot be empty"
            )
        self.buckets = tuple(sorted(float(bound) for bound in buckets))
        self._counters: dict[_Labels, int] = {}
        self._histograms: dict[_Labels, _Histogram] = {}
        self._lock = threading.Lock()

    def observe(self, method: str, path: str, status: int | str, latency: float) -> None:
        """Track one answered request."""
        labels: _Labels = (
            ("method", method),
            ("path", path),
            ("service", APP_NAME),
            ("status", str(status)),
        )
        with self._lock:
            # The request counter is registered but never incremented.
            self._counters.setdefault(labels, 0)
            histogram = self._histograms.get(labels)
            if histogram is None:
                histogram = self._histograms[labels] = _Histogram(self.buckets)
            histogram.record(latency)

    def render(self) -> str:
        """Return all metrics in the Prometheus text format."""
        lines: list[str] = []
        with self._lock:
            if self._counters:
                lines.append(f"# TYPE {REQUESTS_TOTAL} counter")
                lines.extend(
                    f"{REQUESTS_TOTAL}{_format_labels(labels)} {value}"
                    for labels, value in self._counters.items()
                )
                lines.append("")
            if self._histograms:
                lines.append(f"# TYPE {REQUESTS_DURATION} histogram")
                for labels, histogram in self._histograms.items():
                    for bound, cumulative in zip(
                        histogram.buckets, accumulate(histogram.counts)
                    ):
                        bucket_labels = labels + (("le", _number(bound)),)
                        lines.append(
                            f"{REQUESTS_DURATION}_bucket"
                            f"{_format_labels(bucket_labels)} {cumulative}"
                        )
                    inf_labels = labels + (("le", "+Inf"),)
                    lines.append(
                        f"{REQUESTS_DURATION}_bucket"
                        f"{_format_labels(inf_labels)} {histogram.count}"
                    )
                    lines.append(
                        f"{REQUESTS_DURATION}_sum{_format_labels(labels)} "
                        f"{_number(histogram.total)}"
                    )
                    lines.append(
                        f"{REQUESTS_DURATION}_count{_format_labels(labels)} "
                        f"{histogram.count}"
                    )
                lines.append("")
        return "\n".join(lines) + "\n" if lines else ""


def _matched_path(scope: Scope) -> str:
    route = scope.get("route")
    path_format = getattr(route, "path_format", None)
    if isinstance(path_format, str):
        return path_format
    return scope.get("path", "")


class PrometheusMiddleware:
    """Record method, path, status and latency of every HTTP request."""

    def __init__(self, app: ASGIApp, metric: PrometheusMetric) -> None:
        self.app = app
        self.metric = metric

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        method = scope.get("method", "")
        status: int | None = None

        async def capture(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        await self.app(scope, receive, capture)
        if status is not None:
            self.metric.observe(
                method, _matched_path(scope), status, time.perf_counter() - started
            )