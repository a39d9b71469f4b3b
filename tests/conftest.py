# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for perfkit tests."""

from datetime import datetime, timezone
from typing import Any

import httpx
import orjson
import pytest

from perfkit.common.config import ReporterConfig
from perfkit.reporting.transport import TransportResponse

FIXED_NOW = datetime(2025, 1, 31, 14, 5, 9, tzinfo=timezone.utc)


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedTransport:
    """ReportTransport that replays a script of statuses or exceptions.

    Each script entry is either an int status code or an exception instance to
    raise. The last entry is repeated once the script runs out.
    """

    def __init__(self, *script: int | Exception, body: str = "ok") -> None:
        self.script = list(script)
        self.body = body
        self.calls: list[dict[str, Any]] = []

    async def post(
        self, url: str, content: bytes, headers: dict[str, str], timeout: float
    ) -> TransportResponse:
        index = min(len(self.calls), len(self.script) - 1)
        self.calls.append(
            {"url": url, "content": content, "headers": headers, "timeout": timeout}
        )
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        return TransportResponse(status_code=step, body=self.body)


@pytest.fixture
def fixed_now():
    """Clock returning a fixed UTC time."""
    return lambda: FIXED_NOW


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def reporter_config() -> ReporterConfig:
    """A fully configured reporter with the default retry schedule."""
    return ReporterConfig(
        api_url="https://collector.example.com/",
        api_key="secret-key",
        environment="staging",
    )


@pytest.fixture
def sample_results() -> dict[str, Any]:
    """Engine end-of-test summary for a short run with some failures."""
    return {
        "metrics": {
            "http_reqs": {"type": "counter", "values": {"count": 1000, "rate": 50.0}},
            "http_req_failed": {
                "type": "rate",
                "values": {"rate": 0.02, "passes": 20, "fails": 980},
            },
            "http_req_duration": {
                "type": "trend",
                "values": {"avg": 120.25, "p(95)": 450.123, "max": 900.0},
                "thresholds": {"p(95)<500": {"ok": True}},
            },
            "vus_max": {"type": "gauge", "values": {"value": 25}},
            "vus": {"type": "gauge", "values": {"value": 0, "min": 0, "max": 20}},
        },
        "state": {
            "testRunDurationMs": 20000,
            "testStartTimestamp": "2025-01-31T14:04:49Z",
            "testEndTimestamp": "2025-01-31T14:05:09Z",
        },
    }


class RecordingReportPortal:
    """httpx MockTransport handler standing in for the ReportPortal API."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1/perf")
        self.requests.append((request.method, path, orjson.loads(request.content)))
        if request.method == "POST" and path == "/launch":
            return httpx.Response(201, json={"id": "launch-1"})
        if request.method == "POST":
            return httpx.Response(201, json={"id": f"id-{len(self.requests)}"})
        return httpx.Response(200, json={})

    def paths(self, method: str) -> list[str]:
        return [path for m, path, _ in self.requests if m == method]


@pytest.fixture
def rp() -> RecordingReportPortal:
    return RecordingReportPortal()
