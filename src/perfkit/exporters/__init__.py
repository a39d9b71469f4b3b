# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Exporters that turn run results into report files."""

from perfkit.exporters.base_exporter import BaseExporter, ExporterConfig
from perfkit.exporters.console_summary_exporter import ConsoleSummaryExporter
from perfkit.exporters.html_report_exporter import HtmlReportExporter
from perfkit.exporters.perf_run_json_exporter import PerfRunJsonExporter
from perfkit.exporters.raw_results_json_exporter import RawResultsJsonExporter

__all__ = [
    "BaseExporter",
    "ConsoleSummaryExporter",
    "ExporterConfig",
    "HtmlReportExporter",
    "PerfRunJsonExporter",
    "RawResultsJsonExporter",
]
