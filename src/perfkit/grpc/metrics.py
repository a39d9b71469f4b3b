# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Per-scenario gRPC metrics producing engine-shaped metric records."""

import re
import time
from collections import defaultdict, deque
from collections.abc import Callable
from typing import Any

import grpc

from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.http.metrics import counter_record, rate_record, trend_statistics
from perfkit.reporting.models import PerformanceRunResult, RunState

__all__ = [
    "GrpcMetrics",
    "extract_service_method",
    "status_number",
]

UNKNOWN_METHOD = "unknown"

# Records copied under the HTTP names ResultReporter reads.
_REPORTER_ALIASES = {
    "http_reqs": "grpc_reqs",
    "http_req_duration": "grpc_req_duration",
    "http_req_failed": "grpc_req_failed",
}


def status_number(status: grpc.StatusCode) -> int:
    """Numeric wire value of a status code (`OK` is 0, `UNAUTHENTICATED` is 16)."""
    return status.value[0]


def extract_service_method(method: str | None) -> str:
    """Name an endpoint `Service_Method` from a full method path.

    `/shop.v1.Orders/Create` becomes `Orders_Create`. Anything that is not a
    letter, digit or underscore is replaced by `_`.
    """
    if not method:
        return UNKNOWN_METHOD
    parts = [part for part in re.split(r"[./]", method) if part]
    if len(parts) >= 2:
        name = f"{parts[-2]}_{parts[-1]}"
    else:
        name = method
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


class GrpcMetrics:
    """Explicit metrics context for the gRPC calls of one scenario.

    The gRPC counterpart of HttpMetrics. Every PerfGrpcClient call is recorded
    here with its duration, status code and endpoint. Calls that end in a
    status other than `OK` count as failed.

    Duration samples are kept for the whole run unless `max_samples` bounds
    them. Counts stay exact either way.

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
        self._failed = 0
        self._durations: deque[float] = deque(maxlen=max_samples)
        self._status_counts: dict[int, int] = {
            status_number(status): 0 for status in grpc.StatusCode
        }
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
        self, duration_ms: float, status: grpc.StatusCode, method: str | None = None
    ) -> None:
        """Record one call.

        Args:
            duration_ms: Call duration in milliseconds
            status: Final status of the call
            method: Full method path, used for the per-endpoint records
        """
        if self._started_at is None:
            self.start()
        failed = status != grpc.StatusCode.OK
        self._total += 1
        self._failed += int(failed)
        self._durations.append(duration_ms)
        self._status_counts[status_number(status)] += 1

        endpoint = extract_service_method(method)
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
            "grpc_reqs": counter_record(total, duration),
            "grpc_req_duration": {
                "type": "trend",
                "values": trend_statistics(self._durations),
            },
            "grpc_req_failed": rate_record(self._failed, total),
            "vus": {"type": "gauge", "values": dict(vus)},
            "vus_max": {"type": "gauge", "values": {"value": vus["max"]}},
        }
        for code, count in self._status_counts.items():
            metrics[f"grpc_status_{code}"] = counter_record(count, duration)
        for endpoint, samples in self._endpoint_durations.items():
            count = self._endpoint_counts[endpoint]
            successes = self._endpoint_successes[endpoint]
            metrics[f"endpoint_{endpoint}_duration"] = {
                "type": "trend",
                "values": trend_statistics(samples),
            }
            metrics[f"endpoint_{endpoint}_success_rate"] = rate_record(successes, count)
            metrics[f"endpoint_{endpoint}_error_rate"] = rate_record(
                count - successes, count
            )
        return metrics

    def to_run_result(self) -> PerformanceRunResult:
        """Build a run result that ResultReporter can transform.

        The request totals, durations and failures are also published under
        `http_reqs`, `http_req_duration` and `http_req_failed`, which are the
        names the reporter reads.
        """
        metrics = self.snapshot()
        for alias, name in _REPORTER_ALIASES.items():
            metrics[alias] = metrics[name]
        return PerformanceRunResult(
            metrics=metrics,
            state=RunState(test_run_duration_ms=self.duration_seconds * MILLIS_PER_SECOND),
        )
