# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Launch/suite/test lifecycle for endpoint tests tracked in ReportPortal."""

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.common.enums import RpItemStatus, RpLogLevel
from perfkit.reportportal.client import RpClient
from perfkit.reportportal.config import ReportPortalConfig

logger = logging.getLogger(__name__)

__all__ = [
    "BaseLifecycleManager",
    "EndpointCall",
    "EndpointCheck",
    "TestLifecycleManager",
    "TestResults",
    "create_rp_metadata",
    "default_checks",
]

EndpointCall = Callable[[], Awaitable[httpx.Response]]
# Receives the response and its duration in milliseconds.
EndpointCheck = Callable[[httpx.Response, float], bool]

DEFAULT_MAX_DURATION_MS = 1000


def create_rp_metadata(
    module_name: str, metadata: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Launch metadata for performance tests, with caller keys merged over defaults."""
    return {
        "framework": "perfkit",
        "language": "python",
        "test_type": "performance",
        "platform": "platform",
        "module": module_name,
        "total_specs": 0,
        "passed_specs": 0,
        "failed_specs": 0,
        "skipped_specs": 0,
        "duration": 0,
        **(metadata or {}),
    }


def default_checks(name: str) -> dict[str, EndpointCheck]:
    return {
        f"{name} returns 2xx": lambda r, _: 200 <= r.status_code < 300,
        f"{name} response time < {DEFAULT_MAX_DURATION_MS}ms": (
            lambda _, duration_ms: duration_ms < DEFAULT_MAX_DURATION_MS
        ),
    }


@dataclass
class TestResults:
    """Running totals of endpoint test outcomes."""

    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, status: RpItemStatus) -> None:
        self.total += 1
        if status == RpItemStatus.PASSED:
            self.passed += 1
        elif status == RpItemStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class BaseLifecycleManager:
    """Launch and suite bookkeeping shared by the endpoint test managers.

    Call `setup()` once before the tests and `teardown()` at the end. When
    ReportPortal is disabled or unreachable the tests still run and are
    counted, only nothing is published.

    Args:
        test_type: Test type appended to the launch name (e.g. `smoke`)
        metadata: Extra launch metadata
        config: ReportPortal settings, read from the environment when omitted
        client: httpx client for ReportPortal calls
        clock: Returns the current time in epoch seconds
    """

    __test__ = False

    def __init__(
        self,
        test_type: str,
        metadata: Mapping[str, Any] | None = None,
        config: ReportPortalConfig | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        base_config = config or ReportPortalConfig.from_environment()
        self.config = base_config.model_copy(
            update={"launch": f"{base_config.launch} - {test_type}"}
        )
        self.test_type = test_type
        self.metadata = create_rp_metadata(self.config.module_name, metadata)
        self.client = RpClient(self.config, client=client, clock=clock)
        self.suite_id: str | None = None
        self._results = TestResults()

    @property
    def launch_id(self) -> str | None:
        return self.client.launch_id

    @property
    def test_results(self) -> dict[str, int]:
        return asdict(self._results)

    async def setup(self) -> dict[str, str | None]:
        """Start the launch and the suite the endpoint tests are nested in."""
        attributes = [{"key": "build", "value": "0.1"}, {"value": "test"}]
        attributes += [
            {"key": key, "value": str(value)}
            for key, value in self.metadata.items()
            if isinstance(value, str)
        ]
        launch_id = await self.client.start_launch(attributes=attributes)
        if launch_id:
            self.suite_id = await self.client.start_suite(
                "Test Suite", "Automated test suite"
            )
        return {"launch_id": launch_id, "suite_id": self.suite_id}

    async def _finish_test(
        self, test_id: str | None, status: RpItemStatus, message: str
    ) -> None:
        level = RpLogLevel.INFO if status == RpItemStatus.PASSED else RpLogLevel.ERROR
        await self.client.write_log(test_id, message, level)
        await self.client.finish_test(test_id, status)
        self._results.add(status)

    async def teardown(self) -> None:
        """Finish the suite (FAILED if any test failed) and the launch."""
        if self.suite_id and self.launch_id:
            status = RpItemStatus.FAILED if self._results.failed else RpItemStatus.PASSED
            await self.client.finish_suite(self.suite_id, status)
            await self.client.finish_launch()
        logger.info(
            f"{self.test_type} endpoint tests: {self._results.passed}/{self._results.total} passed"
        )
        await self.client.aclose()


class TestLifecycleManager(BaseLifecycleManager):
    """Wraps HTTP endpoint tests in a ReportPortal launch and suite.

    Call `setup()` once before the tests, `test_endpoint()` per request and
    `teardown()` at the end.
    """

    async def test_endpoint(
        self,
        name: str,
        call: EndpointCall,
        checks: Mapping[str, EndpointCheck] | None = None,
        description: str | None = None,
    ) -> bool:
        """Run one endpoint request as a ReportPortal test item.

        Args:
            name: Endpoint name, used for the item and check names
            call: Sends the request
            checks: Extra checks merged over the defaults (2xx, < 1000ms)
            description: Item description

        Returns:
            Whether every check passed

        Raises:
            Exception: Whatever `call` raises, after the item is marked FAILED
        """
        test_id = await self.client.start_test(self.suite_id, f"{name} Test", description)
        start = time.perf_counter()
        try:
            response = await call()
        except Exception as e:
            logger.exception(f"Error testing endpoint {name}")
            await self._finish_test(test_id, RpItemStatus.FAILED, f"Error in {name}: {e}")
            raise
        duration_ms = (time.perf_counter() - start) * MILLIS_PER_SECOND

        all_checks = {**default_checks(name), **(checks or {})}
        failed_checks = [
            check_name
            for check_name, check in all_checks.items()
            if not check(response, duration_ms)
        ]
        status = RpItemStatus.FAILED if failed_checks else RpItemStatus.PASSED
        if failed_checks:
            logger.warning(f"{name}: failed checks: {', '.join(failed_checks)}")

        await self._finish_test(
            test_id,
            status,
            f"{name} request - Status: {response.status_code}, Duration: {duration_ms:.2f}ms",
        )
        return not failed_checks

    async def test_endpoints(
        self,
        endpoints: Mapping[str, EndpointCall],
        checks: Mapping[str, EndpointCheck] | None = None,
    ) -> dict[str, bool]:
        """Run `test_endpoint` for every named call, in order."""
        return {
            name: await self.test_endpoint(name, call, checks)
            for name, call in endpoints.items()
        }
