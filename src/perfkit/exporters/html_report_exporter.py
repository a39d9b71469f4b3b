# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Standalone HTML report of a run."""

import io

from rich.console import Console
from rich.rule import Rule

from perfkit.exporters.base_exporter import BaseExporter
from perfkit.exporters.rendering import build_metrics_table, build_overview_table
from perfkit.reporting.transform import transform_results

_HTML_WIDTH = 140


class HtmlReportExporter(BaseExporter):
    """Exports the run as a self-contained HTML page.

    The page is the rich console recording of the title, the description and
    the overview and metrics tables, with inline styles.
    """

    @property
    def title(self) -> str:
        return f"{self._config.file_prefix} - Performance Test Report"

    @property
    def description(self) -> str:
        return self._config.test_metadata.get("description") or (
            f"Performance test results for {self.test_name}"
        )

    def get_file_name(self) -> str:
        return self._timestamped_name("html")

    def _generate_content(self) -> str:
        summary = self._config.summary or transform_results(
            self._result, self._config.test_metadata
        )
        console = Console(file=io.StringIO(), record=True, width=_HTML_WIDTH)
        console.print(Rule(f"[bold]{self.title}"))
        console.print(self.description)
        console.print(build_overview_table(summary))
        console.print(build_metrics_table(self._result))
        return console.export_html(inline_styles=True)
