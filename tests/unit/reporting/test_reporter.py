# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for ResultReporter delivery and retry behavior."""

import httpx
import orjson
import pytest

from perfkit.common.config import ReporterConfig
from perfkit.common.exceptions import (
    ConfigurationError,
    ReportClientRejected,
    ReportDeliveryFailed,
    ReportTransportError,
)
from perfkit.reporting.reporter import ResultReporter
from perfkit.reporting.transport import (
    HttpxReportTransport,
    ReportTransport,
    TransportResponse,
)


@pytest.fixture
def make_reporter(reporter_config, recording_sleep, fixed_now):
    """Build a reporter around a transport, sharing the recording sleep."""

    def _make(transport, config: ReporterConfig | None = None) -> ResultReporter:
        return ResultReporter(
            config or reporter_config,
            transport=transport,
            sleep=recording_sleep,
            now=fixed_now,
        )

    return _make


class TestResultReporterConstruction:
    @pytest.mark.parametrize(
        "api_url,api_key",
        [(None, "key"), ("https://collector", None), ("", "key"), (None, None)],
    )
    def test_missing_credentials_raise(self, api_url, api_key):
        with pytest.raises(ConfigurationError):
            ResultReporter(ReporterConfig(api_url=api_url, api_key=api_key))

    def test_endpoint_and_headers(self, make_reporter, make_transport):
        reporter = make_reporter(make_transport(201))

        assert reporter.endpoint == "https://collector.example.com/api/performance-runs"
        assert reporter.headers["Authorization"] == "Bearer secret-key"
        assert reporter.headers["Content-Type"] == "application/json"
        assert reporter.headers["Accept"] == "application/json"
        assert reporter.headers["User-Agent"].startswith("perfkit-reporting-adapter/")

    def test_default_transport_is_httpx(self, reporter_config):
        reporter = ResultReporter(reporter_config)
        assert isinstance(reporter.transport, HttpxReportTransport)
        assert isinstance(reporter.transport, ReportTransport)


class TestSendReport:
    @pytest.mark.asyncio
    async def test_first_attempt_success(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(201)
        reporter = make_reporter(transport)

        delivery = await reporter.report_results(sample_results, {"testName": "checkout"})

        assert delivery.status_code == 201
        assert delivery.attempts == 1
        assert delivery.body == "ok"
        assert recording_sleep.delays == []

        call = transport.calls[0]
        assert call["url"] == "https://collector.example.com/api/performance-runs"
        assert call["timeout"] == 10.0
        payload = orjson.loads(call["content"])
        assert payload["testName"] == "checkout"
        assert payload["environment"] == "staging"
        assert payload["passRate"] == 98.0

    @pytest.mark.asyncio
    async def test_retries_server_errors_with_scheduled_delays(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(500, 500, 201)
        reporter = make_reporter(transport)

        delivery = await reporter.report_results(sample_results)

        assert delivery.attempts == 3
        assert len(transport.calls) == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(404)
        reporter = make_reporter(transport)

        with pytest.raises(ReportClientRejected) as exc_info:
            await reporter.report_results(sample_results)

        assert exc_info.value.status_code == 404
        assert len(transport.calls) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhaustion_raises_delivery_failed(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(500, 500, 500)
        reporter = make_reporter(transport)

        with pytest.raises(ReportDeliveryFailed) as exc_info:
            await reporter.report_results(sample_results)

        assert exc_info.value.attempts == 3
        assert "500" in str(exc_info.value.last_error)
        assert len(transport.calls) == 3
        # No sleep after the final attempt.
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(ReportTransportError("connection refused"), 200)
        reporter = make_reporter(transport)

        delivery = await reporter.report_results(sample_results)

        assert delivery.status_code == 200
        assert delivery.attempts == 2
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_unexpected_transport_exceptions_are_retried(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        transport = make_transport(OSError("socket gone"))
        reporter = make_reporter(transport)

        with pytest.raises(ReportDeliveryFailed) as exc_info:
            await reporter.report_results(sample_results)

        assert len(transport.calls) == 3
        assert recording_sleep.delays == [1.0, 2.0]
        last_error = exc_info.value.last_error
        assert isinstance(last_error, ReportTransportError)
        assert isinstance(last_error.__cause__, OSError)
        assert "socket gone" in str(last_error)

    @pytest.mark.asyncio
    async def test_last_delay_is_reused(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        config = ReporterConfig(
            api_url="https://collector", api_key="k", max_retries=5, retry_delays=[100, 300]
        )
        reporter = make_reporter(make_transport(503), config)

        with pytest.raises(ReportDeliveryFailed):
            await reporter.report_results(sample_results)

        assert recording_sleep.delays == [0.1, 0.3, 0.3, 0.3]

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(
        self, make_reporter, make_transport, recording_sleep, sample_results
    ):
        config = ReporterConfig(api_url="https://collector", api_key="k", max_retries=1)
        reporter = make_reporter(make_transport(502), config)

        with pytest.raises(ReportDeliveryFailed):
            await reporter.report_results(sample_results)

        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_malformed_results_are_still_delivered(
        self, make_reporter, make_transport
    ):
        transport = make_transport(201)
        reporter = make_reporter(transport)

        await reporter.report_results({"metrics": "broken"})

        payload = orjson.loads(transport.calls[0]["content"])
        assert payload["passRate"] == 100.0
        assert payload["durationSeconds"] == 1


class TestTransportResponse:
    @pytest.mark.parametrize(
        "status,success,client_error",
        [(200, True, False), (204, True, False), (302, False, False),
         (400, False, True), (499, False, True), (500, False, False)],
    )  # fmt: skip
    def test_status_classification(self, status, success, client_error):
        response = TransportResponse(status_code=status)
        assert response.is_success is success
        assert response.is_client_error is client_error


class TestHttpxReportTransport:
    @pytest.mark.asyncio
    async def test_posts_content_and_headers(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, text="created")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpxReportTransport(client)
            response = await transport.post(
                "https://collector/api/performance-runs",
                content=b'{"a":1}',
                headers={"Authorization": "Bearer k"},
                timeout=1.0,
            )

        assert response == TransportResponse(status_code=201, body="created")
        assert seen[0].content == b'{"a":1}'
        assert seen[0].headers["Authorization"] == "Bearer k"

    @pytest.mark.asyncio
    async def test_network_errors_become_transport_errors(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpxReportTransport(client)
            with pytest.raises(ReportTransportError, match="ConnectError"):
                await transport.post("https://collector", b"{}", {}, 1.0)

    @pytest.mark.asyncio
    async def test_reporter_over_mock_transport_retries_500(
        self, reporter_config, recording_sleep, sample_results
    ):
        statuses = iter([500, 201])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses), text="")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            reporter = ResultReporter(
                reporter_config,
                transport=HttpxReportTransport(client),
                sleep=recording_sleep,
            )
            delivery = await reporter.report_results(sample_results)

        assert delivery.attempts == 2
        assert recording_sleep.delays == [1.0]
