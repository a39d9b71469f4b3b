# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Delivery of PerfRunSummary records to the collector API."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any

import orjson

import perfkit
from perfkit.common.config import ReporterConfig
from perfkit.common.constants import PERFORMANCE_RUNS_PATH
from perfkit.common.exceptions import (
    ConfigurationError,
    ReportClientRejected,
    ReportDeliveryFailed,
    ReportingError,
    ReportTransportError,
)
from perfkit.reporting.models import DeliveryResult, PerformanceRunResult, PerfRunSummary
from perfkit.reporting.transform import transform_results, utc_now
from perfkit.reporting.transport import HttpxReportTransport, ReportTransport

logger = logging.getLogger(__name__)

__all__ = [
    "ResultReporter",
]

SleepFunc = Callable[[float], Awaitable[Any]]


class ResultReporter:
    """Transforms run results and posts them to the collector with retries.

    Attempts are bounded by `config.max_retries`. A 2xx response ends delivery,
    a 4xx response fails immediately, and any other status or transport error
    sleeps the scheduled delay before the next attempt. Only the calling task
    is suspended while sleeping.

    Args:
        config: Collector URL, credentials and retry schedule
        transport: Transport used to send requests (httpx by default)
        sleep: Async sleep primitive, injectable for tests
        now: Clock used for summary timestamps

    Raises:
        ConfigurationError: If `api_url` or `api_key` is missing
    """

    def __init__(
        self,
        config: ReporterConfig,
        transport: ReportTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
        now: Callable[[], datetime] = utc_now,
    ):
        if not config.api_url or not config.api_key:
            raise ConfigurationError(
                "ResultReporter requires both api_url and api_key to be set"
            )
        self.config = config
        self.transport = transport or HttpxReportTransport()
        self._sleep = sleep
        self._now = now

    @property
    def endpoint(self) -> str:
        return f"{self.config.api_url}{PERFORMANCE_RUNS_PATH}"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"perfkit-reporting-adapter/{perfkit.__version__}",
        }

    def transform(
        self,
        result: PerformanceRunResult | Mapping[str, Any] | None,
        test_metadata: Mapping[str, Any] | None = None,
    ) -> PerfRunSummary:
        """Normalize a run result using this reporter's environment and clock."""
        return transform_results(
            result,
            test_metadata,
            environment=self.config.environment,
            latency_unit=self.config.latency_unit,
            now=self._now,
        )

    async def send_report(self, summary: PerfRunSummary) -> DeliveryResult:
        """Post a summary to the collector, retrying transient failures.

        Args:
            summary: Summary to deliver

        Returns:
            DeliveryResult of the successful attempt

        Raises:
            ReportClientRejected: The collector answered with a 4xx status
            ReportDeliveryFailed: Every attempt failed
        """
        content = orjson.dumps(summary.to_payload())
        max_attempts = self.config.max_retries
        last_error: ReportingError | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                response = await self.transport.post(
                    self.endpoint,
                    content=content,
                    headers=self.headers,
                    timeout=self.config.timeout_seconds,
                )
            except ReportingError as e:
                last_error = e
            except Exception as e:
                last_error = ReportTransportError(f"{e.__class__.__name__}: {e}")
                last_error.__cause__ = e
            else:
                if response.is_success:
                    logger.info(
                        f"Performance report sent for '{summary.test_name}' "
                        f"(status {response.status_code}, attempt {attempt}/{max_attempts})"
                    )
                    return DeliveryResult(
                        status_code=response.status_code,
                        body=response.body,
                        attempts=attempt,
                    )
                if response.is_client_error:
                    logger.error(
                        f"Collector rejected report with status {response.status_code}: "
                        f"{response.body}"
                    )
                    raise ReportClientRejected(response.status_code, response.body)
                last_error = ReportingError(
                    f"API returned status {response.status_code}: {response.body}"
                )

            logger.warning(
                f"Report attempt {attempt}/{max_attempts} failed: {last_error}"
            )
            if attempt < max_attempts:
                delay = self.config.delay_for_attempt(attempt - 1)
                if delay > 0:
                    logger.debug(f"Retrying report in {delay}s")
                await self._sleep(delay)

        logger.error(
            f"Giving up on report for '{summary.test_name}' after {max_attempts} attempts"
        )
        raise ReportDeliveryFailed(max_attempts, last_error)

    async def report_results(
        self,
        result: PerformanceRunResult | Mapping[str, Any] | None,
        test_metadata: Mapping[str, Any] | None = None,
    ) -> DeliveryResult:
        """Transform a run result and deliver it."""
        summary = self.transform(result, test_metadata)
        return await self.send_report(summary)
