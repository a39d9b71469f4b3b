# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Annotated, Any

from pydantic import Field, field_validator

from perfkit.common.config.base_config import BaseConfig
from perfkit.common.config.config_defaults import ReporterDefaults
from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.common.enums import LatencyUnit
from perfkit.common.environment import Environment


class ReporterConfig(BaseConfig):
    """Configuration for delivering run summaries to the collector API."""

    api_url: Annotated[
        str | None,
        Field(description="Collector base URL. `/api/performance-runs` is appended."),
    ] = None

    api_key: Annotated[
        str | None,
        Field(description="API key sent as `Authorization: Bearer <key>`."),
    ] = None

    environment: Annotated[
        str,
        Field(description="Environment label attached to every summary."),
    ] = ReporterDefaults.ENVIRONMENT

    max_retries: Annotated[
        int,
        Field(
            ge=1,
            description="Total delivery attempts per report, including the first one.",
        ),
    ] = ReporterDefaults.MAX_RETRIES

    retry_delays: Annotated[
        list[float],
        Field(
            min_length=1,
            description="Delays in milliseconds slept after each failed attempt. "
            "When attempts outnumber the schedule, the last delay is reused.",
        ),
    ] = list(ReporterDefaults.RETRY_DELAYS_MS)

    timeout: Annotated[
        int,
        Field(gt=0, description="Per-attempt request timeout in milliseconds."),
    ] = ReporterDefaults.TIMEOUT_MS

    latency_unit: Annotated[
        LatencyUnit,
        Field(
            description="Unit of the raw p95 latency in run results. `auto` treats "
            "values below 10 as seconds.",
        ),
    ] = ReporterDefaults.LATENCY_UNIT

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.rstrip("/")

    @field_validator("retry_delays")
    @classmethod
    def _non_negative_delays(cls, v: list[float]) -> list[float]:
        if any(delay < 0 for delay in v):
            raise ValueError(f"Retry delays must be non-negative, got {v}")
        return v

    @property
    def enabled(self) -> bool:
        """Whether both the collector URL and API key are set."""
        return bool(self.api_url and self.api_key)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / MILLIS_PER_SECOND

    def delay_for_attempt(self, attempt_index: int) -> float:
        """Return the delay in seconds to sleep after the given zero-based attempt."""
        if attempt_index < len(self.retry_delays):
            delay_ms = self.retry_delays[attempt_index]
        else:
            delay_ms = self.retry_delays[-1]
        return delay_ms / MILLIS_PER_SECOND

    @classmethod
    def from_environment(cls, **overrides: Any) -> "ReporterConfig":
        """Build a config from REPORTING_* / TEST_ENVIRONMENT variables.

        Keyword overrides win over environment values.
        """
        settings = Environment.REPORTING
        values: dict[str, Any] = {
            "api_url": settings.API_URL,
            "api_key": settings.API_KEY,
            "environment": settings.ENVIRONMENT,
            "max_retries": settings.MAX_RETRIES,
            "timeout": settings.TIMEOUT,
        }
        values.update(overrides)
        return cls(**values)
