# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Per-scenario HTTP metrics producing engine-shaped metric records."""

import time
from collections import defaultdict, deque
from collections.abc import Callable, Sequence
from typing import Any
from urllib.parse import urlsplit

import numpy as np

from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.reporting.models import PerformanceRunResult, RunState

__all__ = [
    "HttpMetrics",
    "counter_record",
    "extract_endpoint",
    "rate_record",
    "status_class",
    "trend_statistics",
]

STATUS_CLASSES = ("2xx", "3xx", "4xx", "5xx")


def status_class(status_code: int) -> str | None:
    """Return `2xx`..`5xx` for a status code, None for anything else."""
    if 200 <= status_code < 600:
        return f"{status_code // 100}xx"
    return None


def extract_endpoint(url: str) -> str:
    """Name an endpoint by the first path segment of its URL (`root` for `/`)."""
    segments = [part for part in urlsplit(url).path.split("/") if part]
    return segments[0] if segments else "root"


def trend_statistics(samples: Sequence[float]) -> dict[str, float]:
    """avg/min/med/max/p(90)/p(95)/p(99) of a sample set, zeros when empty."""
    if not samples:
        return {"avg": 0.0, "min": 0.0, "med": 0.0, "max": 0.0, "p(90)": 0.0, "p(95)": 0.0, "p(99)": 0.0}  # fmt: skip
    values = np.asarray(samples, dtype=float)
    p90, p95, p99 = np.percentile(values, [90, 95, 99])
    return {
        "avg": float(values.mean()),
        "min": float(values.min()),
        "med": float(np.median(values)),
        "max": float(values.max()),
        "p(90)": float(p90),
        "p(95)": float(p95),
        "p(99)": float(p99),
    }


def rate_record(passes: int, total: int) -> dict[str, Any]:
    """Engine-style rate record, where `passes` counts the samples that were true."""
    return {
        "type": "rate",
        "values": {
            "rate": passes / total if total else 0.0,
            "passes": passes,
            "fails": total - passes,
        },
    }


def counter_record(count: int, duration_seconds: float) -> dict[str, Any]:
    """Engine-style counter record with the per-second rate over the run."""
    return {
        "type": "counter",
        "values": {
            "count": count,
            "rate": count / duration_seconds if duration_seconds > 0 else 0.0,
        },
    }


class HttpMetrics:
    """Explicit metrics context for one scenario.

    Every PerfHttpClient request is recorded here. `snapshot()` returns metric
    records shaped like the load engine's summary, so `to_run_result()` can be
    fed straight into ResultReporter.

    By default every duration sample is kept for the whole run, so memory
    grows with the request count. Long soak runs should pass `max_samples`:
    counts and rates stay exact, while the duration trends are computed over
    the most recent `max_samples` requests (per endpoint as well).

    Args:
        clock: Monotonic clock in seconds used to measure the run duration
        max_samples: Duration samples kept per trend, unbounded when None
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_samples: int | None = None,
    ):
        if max_samples is not None and max_samples < 1:
            raise ValueError(f"max_samples must be at least 1, got {max_samples}")
        self._clock = clock
        self.max_samples = max_samples
        self._started_at: float | None = None
        self._stopped_at: float | None = None
        self._total = 0
        self._durations: deque[float] = deque(maxlen=max_samples)
        self._failed = 0
        self._status_counts: dict[str, int] = dict.fromkeys(STATUS_CLASSES, 0)
        self._endpoint_durations: dict[str, deque[float]] = defaultdict(
            lambda: deque(maxlen=max_samples)
        )
        self._endpoint_counts: dict[str, int] = defaultdict(int)
        self._endpoint_successes: dict[str, int] = defaultdict(int)
        self._vus: dict[str, int] | None = None

    @property
    def total_requests(self) -> int:
        return self._total

    @property
    def failed_requests(self) -> int:
        return self._failed

    @property
    def duration_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._stopped_at if self._stopped_at is not None else self._clock()
        return max(end - self._started_at, 0.0)

    def start(self) -> None:
        self._started_at = self._clock()
        self._stopped_at = None

    def stop(self) -> None:
        if self._started_at is None:
            self.start()
        self._stopped_at = self._clock()

    def record(
        self, duration_ms: float, status_code: int, endpoint: str | None = None
    ) -> None:
        """Record one request.

        Args:
            duration_ms: Request duration in milliseconds
            status_code: HTTP status, 0 when no response was received
            endpoint: Endpoint name for per-endpoint trends
        """
        if self._started_at is None:
            self.start()
        failed = status_code == 0 or status_code >= 400
        self._total += 1
        self._durations.append(duration_ms)
        self._failed += int(failed)
        status = status_class(status_code)
        if status is not None:
            self._status_counts[status] += 1
        if endpoint:
            self._endpoint_durations[endpoint].append(duration_ms)
            self._endpoint_counts[endpoint] += 1
            self._endpoint_successes[endpoint] += int(not failed)

    def observe_vus(self, vus: int) -> None:
        """Record the number of active virtual users at this moment."""
        if self._started_at is None:
            self.start()
        if self._vus is None:
            self._vus = {"value": vus, "min": vus, "max": vus}
        else:
            self._vus = {
                "value": vus,
                "min": min(self._vus["min"], vus),
                "max": max(self._vus["max"], vus),
            }

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Return the metric records collected so far."""
        total = self.total_requests
        duration = self.duration_seconds
        vus = self._vus or {"value": 0, "min": 0, "max": 0}
        metrics: dict[str, dict[str, Any]] = {
            "http_reqs": counter_record(total, duration),
            "http_req_duration": {
                "type": "trend",
                "values": trend_statistics(self._durations),
            },
            "http_req_failed": rate_record(self._failed, total),
            "vus": {"type": "gauge", "values": dict(vus)},
            "vus_max": {"type": "gauge", "values": {"value": vus["max"]}},
        }
        for status, count in self._status_counts.items():
            metrics[f"http_reqs_{status}"] = counter_record(count, duration)
        for endpoint, samples in self._endpoint_durations.items():
            metrics[f"endpoint_{endpoint}_duration"] = {
                "type": "trend",
                "values": trend_statistics(samples),
            }
            metrics[f"endpoint_{endpoint}_success_rate"] = rate_record(
                self._endpoint_successes[endpoint], self._endpoint_counts[endpoint]
            )
        return metrics

    def to_run_result(self) -> PerformanceRunResult:
        """Build a run result that ResultReporter can transform."""
        return PerformanceRunResult(
            metrics=self.snapshot(),
            state=RunState(test_run_duration_ms=self.duration_seconds * MILLIS_PER_SECOND),
        )
