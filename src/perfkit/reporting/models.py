# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Data models for run results and reported summaries."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _string_keys(data: Mapping[Any, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if isinstance(k, str)}


class RunState(BaseModel):
    """Timing information the engine attaches to a finished run.

    Attributes:
        test_run_duration_ms: Wall-clock duration of the run in milliseconds
        test_start_timestamp: Engine-supplied start time (opaque)
        test_end_timestamp: Engine-supplied end time (opaque)
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    test_run_duration_ms: Any = None
    test_start_timestamp: Any = None
    test_end_timestamp: Any = None


class PerformanceRunResult(BaseModel):
    """Result bundle produced by the load-generation engine for one run.

    Every field is optional. Metric records may hold their statistics flat
    (`{"count": 10, "rate": 2.5}`) or nested under `values`
    (`{"values": {"avg": 12.0, "p(95)": 40.0}}`).

    Attributes:
        metrics: Metric name to metric record
        state: Run timing information, when the engine provides it
    """

    model_config = ConfigDict(extra="allow")

    metrics: dict[str, Any] = Field(default_factory=dict)
    state: RunState | None = None

    @classmethod
    def from_raw(cls, data: Any) -> "PerformanceRunResult":
        """Build a result from engine output, dropping parts that do not fit.

        Never raises: a non-mapping input, a non-mapping `metrics` or an
        unparseable `state` is replaced by its empty default. Only string keys
        are kept at the top level, in `metrics` and in `state`.
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            return cls()
        metrics = data.get("metrics")
        state = data.get("state")
        extra = {
            k: v for k, v in _string_keys(data).items() if k not in ("metrics", "state")
        }
        return cls(
            metrics=_string_keys(metrics) if isinstance(metrics, Mapping) else {},
            state=(
                RunState.model_validate(_string_keys(state))
                if isinstance(state, Mapping)
                else None
            ),
            **extra,
        )


class PerfRunSummary(BaseModel):
    """Normalized summary of one performance run (the PerfRunDTO).

    Serialized with camelCase keys (`passRate`, `p95LatencyMs`, ...) via
    `model_dump(mode="json", by_alias=True)`.

    Attributes:
        concurrency: Peak virtual users
        throughput: Requests per second
        pass_rate: Percentage of requests that did not fail (0-100)
        p95_latency_ms: 95th percentile request duration in milliseconds
        test_name: Name of the test
        timestamp: ISO-8601 time the summary was built
        environment: Environment the test ran against
        duration_seconds: Run duration in seconds
        metadata: Totals plus caller-supplied fields
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    concurrency: int = Field(ge=0)
    throughput: float = Field(ge=0)
    pass_rate: float = Field(ge=0, le=100)
    p95_latency_ms: float = Field(ge=0)
    test_name: str = Field(min_length=1)
    timestamp: str
    environment: str
    duration_seconds: int = Field(ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase payload sent to the collector."""
        return self.model_dump(mode="json", by_alias=True)


class DeliveryResult(BaseModel):
    """Outcome of a successful report delivery.

    Attributes:
        status_code: HTTP status returned by the collector
        body: Response body text
        attempts: Number of attempts used, including the successful one
    """

    status_code: int
    body: str = ""
    attempts: int = Field(ge=1)
