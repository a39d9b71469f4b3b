# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for GrpcMetrics and its helpers."""

import grpc
import pytest

from perfkit.common.enums import LatencyUnit
from perfkit.grpc import GrpcMetrics, extract_service_method, status_number
from perfkit.reporting.transform import transform_results


class StepClock:
    def __init__(self, *times: float) -> None:
        self.times = list(times)

    def __call__(self) -> float:
        return self.times.pop(0) if len(self.times) > 1 else self.times[0]


@pytest.mark.parametrize(
    "method,expected",
    [
        ("/shop.v1.Orders/Create", "Orders_Create"),
        ("shop.Orders/Get", "Orders_Get"),
        ("/grpc.health.v1.Health/Check", "Health_Check"),
        ("ping", "ping"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_extract_service_method(method, expected):
    assert extract_service_method(method) == expected


@pytest.mark.parametrize(
    "status,expected",
    [(grpc.StatusCode.OK, 0), (grpc.StatusCode.NOT_FOUND, 5), (grpc.StatusCode.UNAUTHENTICATED, 16)],
)  # fmt: skip
def test_status_number(status, expected):
    assert status_number(status) == expected


class TestGrpcMetrics:
    def test_counts_and_status_codes(self):
        metrics = GrpcMetrics(clock=StepClock(0.0, 4.0))
        metrics.record(10.0, grpc.StatusCode.OK, "/shop.Orders/List")
        metrics.record(30.0, grpc.StatusCode.OK, "/shop.Orders/List")
        metrics.record(50.0, grpc.StatusCode.UNAVAILABLE, "/shop.Orders/Get")
        metrics.stop()

        snapshot = metrics.snapshot()

        assert metrics.total_requests == 3
        assert metrics.failed_requests == 1
        assert snapshot["grpc_reqs"]["values"] == {"count": 3, "rate": 0.75}
        assert snapshot["grpc_req_duration"]["values"]["avg"] == 30.0
        assert snapshot["grpc_status_0"]["values"]["count"] == 2
        assert snapshot["grpc_status_14"]["values"]["count"] == 1
        assert snapshot["grpc_status_16"]["values"]["count"] == 0
        assert snapshot["endpoint_Orders_List_success_rate"]["values"]["rate"] == 1.0
        assert snapshot["endpoint_Orders_Get_error_rate"]["values"]["passes"] == 1
        assert snapshot["endpoint_Orders_Get_duration"]["values"]["max"] == 50.0

    def test_every_status_code_has_a_counter(self):
        snapshot = GrpcMetrics().snapshot()
        for status in grpc.StatusCode:
            assert snapshot[f"grpc_status_{status_number(status)}"]["values"]["count"] == 0

    def test_vus(self):
        metrics = GrpcMetrics(clock=StepClock(0.0))
        for vus in (2, 8, 4):
            metrics.observe_vus(vus)

        snapshot = metrics.snapshot()

        assert snapshot["vus"]["values"] == {"value": 4, "min": 2, "max": 8}
        assert snapshot["vus_max"]["values"] == {"value": 8}

    def test_bounded_samples(self):
        metrics = GrpcMetrics(clock=StepClock(0.0, 1.0), max_samples=2)
        for duration in (500.0, 10.0, 20.0):
            metrics.record(duration, grpc.StatusCode.OK, "/a.B/C")

        snapshot = metrics.snapshot()

        assert snapshot["grpc_reqs"]["values"]["count"] == 3
        assert snapshot["grpc_req_duration"]["values"]["max"] == 20.0

    def test_max_samples_must_be_positive(self):
        with pytest.raises(ValueError, match="max_samples"):
            GrpcMetrics(max_samples=0)

    def test_run_result_feeds_transform(self):
        metrics = GrpcMetrics(clock=StepClock(0.0, 10.0))
        metrics.observe_vus(5)
        for _ in range(3):
            metrics.record(100.0, grpc.StatusCode.OK, "/shop.Orders/List")
        metrics.record(200.0, grpc.StatusCode.DEADLINE_EXCEEDED, "/shop.Orders/List")
        metrics.stop()

        result = metrics.to_run_result()
        summary = transform_results(
            result, {"testName": "grpc-orders"}, latency_unit=LatencyUnit.MILLISECONDS
        )

        assert result.metrics["http_reqs"] == result.metrics["grpc_reqs"]
        assert summary.concurrency == 5
        assert summary.pass_rate == 75.0
        assert summary.throughput == 0.4
        assert summary.duration_seconds == 10
        assert summary.metadata["failedRequests"] == 1
