# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Run result transformation and delivery to the collector API.

The teardown summary handler lives in `perfkit.reporting.handle_summary`.
"""

from perfkit.reporting.models import (
    DeliveryResult,
    PerformanceRunResult,
    PerfRunSummary,
    RunState,
)
from perfkit.reporting.reporter import ResultReporter
from perfkit.reporting.transform import metric_value, transform_results
from perfkit.reporting.transport import (
    HttpxReportTransport,
    ReportTransport,
    TransportResponse,
)

__all__ = [
    "DeliveryResult",
    "HttpxReportTransport",
    "PerfRunSummary",
    "PerformanceRunResult",
    "ReportTransport",
    "ResultReporter",
    "RunState",
    "TransportResponse",
    "metric_value",
    "transform_results",
]
