# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Pure transformation of engine run results into PerfRunSummary records."""

import math
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from perfkit.common.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_TEST_NAME,
    MILLIS_PER_SECOND,
    P95_SECONDS_HEURISTIC_LIMIT,
)
from perfkit.common.enums import LatencyUnit
from perfkit.reporting.models import PerformanceRunResult, PerfRunSummary

__all__ = [
    "metric_value",
    "transform_results",
    "utc_now",
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def metric_value(
    metrics: Mapping[str, Any], name: str, stat: str
) -> float | None:
    """Read one statistic of a metric record.

    Nested `values` take precedence over flat keys. Missing records, missing
    keys and non-numeric or non-finite values all yield None.

    Args:
        metrics: Metric name to metric record
        name: Metric name, e.g. `http_reqs`
        stat: Statistic name, e.g. `count` or `p(95)`

    Returns:
        The statistic as a finite float, or None
    """
    record = metrics.get(name)
    if not isinstance(record, Mapping):
        return None
    values = record.get("values")
    if isinstance(values, Mapping) and stat in values:
        number = _as_number(values[stat])
        if number is not None:
            return number
    return _as_number(record.get(stat))


def _duration_seconds(result: PerformanceRunResult, total: float) -> float:
    if result.state is not None:
        duration_ms = _as_number(result.state.test_run_duration_ms)
        if duration_ms is not None and duration_ms >= 0:
            return duration_ms / MILLIS_PER_SECOND
    rate = metric_value(result.metrics, "http_reqs", "rate")
    if rate is not None and rate > 0:
        duration = total / rate
        if math.isfinite(duration):
            return duration
    return 1.0


def _p95_latency_ms(raw: float | None, latency_unit: LatencyUnit) -> float:
    if raw is None or raw < 0:
        return 0.0
    if latency_unit == LatencyUnit.SECONDS or (
        latency_unit == LatencyUnit.AUTO and raw < P95_SECONDS_HEURISTIC_LIMIT
    ):
        raw = raw * MILLIS_PER_SECOND
    return raw if math.isfinite(raw) else 0.0


def _test_name(test_metadata: Mapping[str, Any]) -> str:
    for key in ("testName", "name"):
        name = test_metadata.get(key)
        if isinstance(name, str) and name:
            return name
    return DEFAULT_TEST_NAME


def transform_results(
    result: PerformanceRunResult | Mapping[str, Any] | None,
    test_metadata: Mapping[str, Any] | None = None,
    *,
    environment: str = DEFAULT_ENVIRONMENT,
    latency_unit: LatencyUnit = LatencyUnit.AUTO,
    now: Callable[[], datetime] = utc_now,
) -> PerfRunSummary:
    """Normalize a run result into a PerfRunSummary.

    Never raises on malformed input: absent or non-numeric statistics fall
    back to zero, the duration falls back to one second and the pass rate to
    100 when no requests were made.

    Args:
        result: Engine result bundle, as a model or a raw mapping
        test_metadata: Caller metadata; `testName` or `name` names the test and
            every key is merged into the summary metadata
        environment: Environment label for the summary
        latency_unit: Unit of the raw p95 duration
        now: Clock used for the summary timestamp

    Returns:
        A new, immutable PerfRunSummary
    """
    result = PerformanceRunResult.from_raw(result)
    test_metadata = dict(test_metadata or {})
    metrics = result.metrics

    total = max(metric_value(metrics, "http_reqs", "count") or 0.0, 0.0)
    failed = metric_value(metrics, "http_req_failed", "passes") or 0.0
    failed = min(max(failed, 0.0), total)

    duration = _duration_seconds(result, total)

    rate = metric_value(metrics, "http_reqs", "rate")
    if rate is not None and rate >= 0:
        throughput = rate
    else:
        throughput = total / max(duration, 1.0)

    pass_rate = 100.0 if total == 0 else (total - failed) / total * 100

    concurrency = max(
        metric_value(metrics, "vus_max", "value") or 0.0,
        metric_value(metrics, "vus", "max") or 0.0,
    )

    avg_duration = metric_value(metrics, "http_req_duration", "avg") or 0.0
    p95 = _p95_latency_ms(
        metric_value(metrics, "http_req_duration", "p(95)"), latency_unit
    )

    state = result.state
    metadata: dict[str, Any] = {
        "totalRequests": int(total),
        "failedRequests": int(failed),
        "avgDurationMs": round(max(avg_duration, 0.0), 2),
        "testStartTime": state.test_start_timestamp if state else None,
        "testEndTime": state.test_end_timestamp if state else None,
    }
    metadata.update(test_metadata)

    return PerfRunSummary(
        concurrency=int(concurrency),
        throughput=round(throughput, 2),
        pass_rate=round(min(max(pass_rate, 0.0), 100.0), 2),
        p95_latency_ms=round(p95, 2),
        test_name=_test_name(test_metadata),
        timestamp=now().isoformat(),
        environment=environment,
        duration_seconds=int(round(duration)),
        metadata=metadata,
    )
