# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Stage, threshold and preset models for load profiles."""

import operator
import re
from collections.abc import Callable, Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from perfkit.common.constants import MILLIS_PER_SECOND, SECONDS_PER_HOUR, SECONDS_PER_MINUTE
from perfkit.common.enums import StageType
from perfkit.reporting.models import PerformanceRunResult

__all__ = [
    "Stage",
    "StagePreset",
    "Threshold",
    "ThresholdOutcome",
    "parse_duration",
]

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {
    "ms": 1 / MILLIS_PER_SECOND,
    "s": 1,
    "m": SECONDS_PER_MINUTE,
    "h": SECONDS_PER_HOUR,
}

_THRESHOLD_PATTERN = re.compile(
    r"^\s*(?P<stat>[a-z_]+(?:\(\d+(?:\.\d+)?\))?)\s*"
    r"(?P<op><=|>=|==|!=|<|>)\s*"
    r"(?P<limit>-?\d+(?:\.\d+)?)\s*$"
)
_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


def parse_duration(value: str | int | float) -> float:
    """Parse an engine duration string into seconds.

    Accepts unit-suffixed parts that may be combined, e.g. `500ms`, `30s`,
    `2m`, `2h` and `1h30m`. Bare numbers are taken as seconds.

    Raises:
        ValueError: If the value is not a valid duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        if value < 0:
            raise ValueError(f"Duration must be non-negative: {value!r}")
        return float(value)

    text = value.strip()
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        raise ValueError(f"Invalid duration: {value!r}")
    return sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)


def _metric_stat(record: Any, stat: str) -> float | None:
    if not isinstance(record, Mapping):
        return None
    values = record.get("values")
    source = values if isinstance(values, Mapping) and stat in values else record
    value = source.get(stat)
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    return None


class Stage(BaseModel):
    """One ramp stage: move to `target` virtual users over `duration`."""

    model_config = ConfigDict(frozen=True)

    duration: str
    target: Annotated[int, Field(ge=0)]

    @field_validator("duration")
    @classmethod
    def _validate_duration(cls, v: str) -> str:
        parse_duration(v)
        return v

    @property
    def duration_seconds(self) -> float:
        return parse_duration(self.duration)


class ThresholdOutcome(BaseModel):
    """Result of evaluating one threshold against a run.

    `passed` is None when the run has no value for the statistic.
    """

    metric: str
    expression: str
    observed: float | None
    passed: bool | None


class Threshold(BaseModel):
    """A pass/fail expression such as `p(95)<500` or `rate<0.01`."""

    model_config = ConfigDict(frozen=True)

    expression: str
    statistic: str
    comparator: str
    limit: float

    @classmethod
    def parse(cls, expression: str) -> "Threshold":
        match = _THRESHOLD_PATTERN.match(expression)
        if match is None:
            raise ValueError(f"Invalid threshold expression: {expression!r}")
        return cls(
            expression=expression,
            statistic=match["stat"],
            comparator=match["op"],
            limit=float(match["limit"]),
        )

    def evaluate(self, record: Any) -> bool | None:
        """Check a metric record; None when the statistic is missing."""
        observed = _metric_stat(record, self.statistic)
        if observed is None:
            return None
        return _OPERATORS[self.comparator](observed, self.limit)


class StagePreset(BaseModel):
    """A named load profile with default stages, thresholds and timeouts.

    A preset either ramps through `stages` or runs a constant `vus` for a
    fixed `duration`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    name: StageType
    description: str
    stages: list[Stage] = Field(default_factory=list)
    vus: Annotated[int | None, Field(ge=0)] = None
    duration: str | None = None
    thresholds: dict[str, list[str]] = Field(default_factory=dict)
    setup_timeout: str | None = None
    teardown_timeout: str | None = None
    summary_trend_stats: list[str] | None = None
    tags: dict[str, str] | None = None
    abort_on_fail: bool | None = None
    executor: str | None = None
    system_tags: list[str] | None = None

    @model_validator(mode="after")
    def _check_profile(self) -> "StagePreset":
        if not self.stages and (self.vus is None or self.duration is None):
            raise ValueError(
                f"Preset '{self.name}' needs either stages or both vus and duration"
            )
        if self.duration is not None:
            parse_duration(self.duration)
        for expressions in self.thresholds.values():
            for expression in expressions:
                Threshold.parse(expression)
        return self

    @property
    def total_duration_seconds(self) -> float:
        if self.stages:
            return sum(stage.duration_seconds for stage in self.stages)
        return parse_duration(self.duration)

    @property
    def peak_target(self) -> int:
        if self.stages:
            return max(stage.target for stage in self.stages)
        return self.vus or 0

    def to_options(self, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return engine options with camelCase keys.

        Overrides replace top-level keys wholesale, e.g. passing `thresholds`
        replaces every default threshold.
        """
        options = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"name", "description"},
        )
        if not options.get("stages"):
            options.pop("stages", None)
        options.update(overrides or {})
        return options

    def evaluate_thresholds(
        self, result: PerformanceRunResult | Mapping[str, Any]
    ) -> list[ThresholdOutcome]:
        """Evaluate every default threshold against a run result."""
        result = PerformanceRunResult.from_raw(result)
        outcomes = []
        for metric, expressions in self.thresholds.items():
            record = result.metrics.get(metric)
            for expression in expressions:
                threshold = Threshold.parse(expression)
                outcomes.append(
                    ThresholdOutcome(
                        metric=metric,
                        expression=expression,
                        observed=_metric_stat(record, threshold.statistic),
                        passed=threshold.evaluate(record),
                    )
                )
        return outcomes
