# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Best-effort ReportPortal API client.

Every call returns None instead of raising when publishing is disabled or the
server cannot be reached, so launch tracking never interferes with a test.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
import orjson

from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.common.enums import RpItemStatus, RpItemType, RpLogLevel
from perfkit.reportportal.config import ReportPortalConfig

logger = logging.getLogger(__name__)

__all__ = [
    "RpClient",
]

PRODUCT_BUG_ISSUE = "PB001"


class RpClient:
    """ReportPortal launch, item and log calls for one launch.

    Args:
        config: Endpoint, project, token and publish flag
        launch_id: Existing launch to report into, if any
        client: httpx client (created and owned when omitted)
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        config: ReportPortalConfig,
        launch_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.launch_id = launch_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._clock = clock

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.token}",
        }

    def _now_ms(self) -> int:
        return int(self._clock() * MILLIS_PER_SECOND)

    def _debug(self, message: str) -> None:
        if self.config.debug:
            logger.info(f"ReportPortal: {message}")

    async def _send(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
        expected: tuple[int, ...],
    ) -> dict[str, Any] | None:
        url = f"{self.config.api_base}{path}"
        try:
            response = await self._client.request(
                method, url, content=orjson.dumps(payload), headers=self.headers
            )
        except httpx.HTTPError as e:
            logger.warning(f"ReportPortal {method} {url} failed: {e!r}")
            return None

        self._debug(f"{method} {path} -> {response.status_code}")
        if response.status_code not in expected:
            logger.warning(
                f"ReportPortal {method} {path} returned {response.status_code}: {response.text}"
            )
            return None
        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            logger.warning(f"ReportPortal {method} {path} returned invalid JSON")
            return None
        return body if isinstance(body, dict) else None

    async def start_launch(
        self, name: str | None = None, attributes: list[dict[str, str]] | None = None
    ) -> str | None:
        """Create a launch and remember its id."""
        if not self.config.enabled:
            logger.info(
                f"ReportPortal: {self.config.disabled_reason}, skipping launch creation"
            )
            return None

        payload = {
            "name": name or self.config.launch,
            "startTime": self._now_ms(),
            "attributes": attributes or [{"key": "build", "value": "0.1"}, {"value": "test"}],
        }
        self._debug(f"Creating launch at {self.config.api_base}")
        body = await self._send("POST", "/launch", payload, expected=(200, 201))
        self.launch_id = body.get("id") if body else None
        if self.launch_id:
            self._debug(f"Launch created with id {self.launch_id}")
        return self.launch_id

    async def finish_launch(self) -> dict[str, Any] | None:
        if not self.config.publish_result or not self.launch_id:
            return None
        payload = {"endTime": self._now_ms()}
        return await self._send(
            "PUT", f"/launch/{self.launch_id}/finish", payload, expected=(200,)
        )

    async def write_log(
        self, item_id: str | None, message: str, level: RpLogLevel = RpLogLevel.ERROR
    ) -> str | None:
        """Attach a log line to an item and return the log id."""
        if not self.config.publish_result or not item_id:
            return None
        payload = {
            "itemUuid": item_id,
            "message": message,
            "time": self._now_ms(),
            "launchUuid": self.launch_id,
            "level": str(level),
        }
        body = await self._send("POST", "/log", payload, expected=(201,))
        return body.get("id") if body else None

    async def start_item(
        self,
        parent_id: str | None,
        name: str,
        item_type: RpItemType,
        description: str | None = None,
    ) -> str | None:
        """Start a suite, test or step, nested under `parent_id` when given."""
        if not self.config.publish_result:
            return None
        payload = {
            "name": name,
            "startTime": self._now_ms(),
            "type": str(item_type),
            "launchUuid": self.launch_id,
            "description": description,
        }
        path = f"/item/{parent_id}" if parent_id else "/item"
        body = await self._send("POST", path, payload, expected=(201,))
        return body.get("id") if body else None

    async def finish_item(
        self,
        item_id: str | None,
        status: RpItemStatus,
        issue_type: str | None = None,
        comment: str = "",
    ) -> dict[str, Any] | None:
        if not self.config.publish_result or not item_id:
            return None
        payload: dict[str, Any] = {
            "endTime": self._now_ms(),
            "status": str(status),
            "launchUuid": self.launch_id,
        }
        if issue_type:
            payload["issue"] = {"issueType": issue_type, "comment": comment}
        return await self._send("PUT", f"/item/{item_id}", payload, expected=(200,))

    async def start_suite(self, name: str, description: str | None = None) -> str | None:
        return await self.start_item(None, name, RpItemType.SUITE, description)

    async def start_test(
        self, parent_id: str | None, name: str, description: str | None = None
    ) -> str | None:
        return await self.start_item(parent_id, name, RpItemType.TEST, description)

    async def start_step(
        self, parent_id: str | None, name: str, description: str | None = None
    ) -> str | None:
        return await self.start_item(parent_id, name, RpItemType.STEP, description)

    async def finish_suite(
        self, item_id: str | None, status: RpItemStatus
    ) -> dict[str, Any] | None:
        """Finish a suite. Failed suites are marked as product bugs."""
        if status == RpItemStatus.PASSED:
            return await self.finish_item(
                item_id, status, comment="Suite completed successfully"
            )
        return await self.finish_item(
            item_id, status, issue_type=PRODUCT_BUG_ISSUE, comment="Suite failed"
        )

    async def finish_test(
        self, item_id: str | None, status: RpItemStatus
    ) -> dict[str, Any] | None:
        return await self.finish_item(item_id, status)

    async def finish_step(
        self,
        item_id: str | None,
        status: RpItemStatus,
        issue_type: str | None = None,
        comment: str = "",
    ) -> dict[str, Any] | None:
        return await self.finish_item(item_id, status, issue_type, comment)
