# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""rich renderables shared by the text and HTML exporters."""

from collections.abc import Mapping
from typing import Any

from rich.markup import escape
from rich.table import Table

from perfkit.reporting.models import PerformanceRunResult, PerfRunSummary

__all__ = [
    "build_metrics_table",
    "build_overview_table",
    "format_statistics",
    "metric_statistics",
]

_NON_STAT_KEYS = {"type", "contains", "thresholds", "values"}

# Display order of well-known statistics; anything else follows alphabetically.
_STAT_ORDER = ["avg", "min", "med", "max", "p(90)", "p(95)", "p(99)", "count", "rate", "value", "passes", "fails"]  # fmt: skip


def metric_statistics(record: Any) -> dict[str, Any]:
    """Return the statistics of a metric record, flat and nested merged."""
    if not isinstance(record, Mapping):
        return {}
    stats = {k: v for k, v in record.items() if k not in _NON_STAT_KEYS}
    values = record.get("values")
    if isinstance(values, Mapping):
        stats.update(values)
    return stats


def _format_number(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def format_statistics(stats: Mapping[str, Any]) -> str:
    """Format statistics as `avg=12.00 p(95)=40.00 ...` in a stable order."""
    known = [k for k in _STAT_ORDER if k in stats]
    rest = sorted(k for k in stats if k not in _STAT_ORDER)
    return " ".join(f"{k}={_format_number(stats[k])}" for k in known + rest)


def build_overview_table(summary: PerfRunSummary) -> Table:
    """Two-column table with the headline numbers of a run."""
    table = Table(title=f"{summary.test_name} ({summary.environment})", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value", justify="right")
    table.add_row("Concurrency (VUs)", str(summary.concurrency))
    table.add_row("Throughput (req/s)", f"{summary.throughput:.2f}")
    table.add_row("Pass rate (%)", f"{summary.pass_rate:.2f}")
    table.add_row("p95 latency (ms)", f"{summary.p95_latency_ms:.2f}")
    table.add_row("Duration (s)", str(summary.duration_seconds))
    table.add_row("Total requests", str(summary.metadata.get("totalRequests", 0)))
    table.add_row("Failed requests", str(summary.metadata.get("failedRequests", 0)))
    return table


def build_metrics_table(result: PerformanceRunResult) -> Table:
    """One row per metric with its statistics and threshold outcomes."""
    table = Table(title="Metrics")
    table.add_column("Metric", style="bold")
    table.add_column("Statistics")
    table.add_column("Thresholds")
    for name in sorted(result.metrics):
        record = result.metrics[name]
        thresholds = record.get("thresholds") if isinstance(record, Mapping) else None
        marks = []
        if isinstance(thresholds, Mapping):
            for expression, outcome in thresholds.items():
                ok = outcome.get("ok") if isinstance(outcome, Mapping) else outcome
                label = escape(str(expression))
                marks.append(f"[green]✓ {label}[/]" if ok else f"[red]✗ {label}[/]")
        table.add_row(
            escape(name),
            escape(format_statistics(metric_statistics(record))),
            " ".join(marks),
        )
    return table
