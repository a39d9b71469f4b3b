# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Plain-text end-of-test summary."""

import io

from rich.console import Console

from perfkit.exporters.base_exporter import BaseExporter
from perfkit.exporters.rendering import build_metrics_table, build_overview_table
from perfkit.reporting.transform import transform_results

_TEXT_WIDTH = 120


class ConsoleSummaryExporter(BaseExporter):
    """Renders the overview and metrics tables as text.

    The content is what the summary handler prints to stdout; `export()` keeps
    a `.txt` copy.
    """

    def get_file_name(self) -> str:
        return self._timestamped_name("txt")

    def _generate_content(self) -> str:
        summary = self._config.summary or transform_results(
            self._result, self._config.test_metadata
        )
        console = Console(
            file=io.StringIO(), record=True, width=_TEXT_WIDTH, color_system=None
        )
        console.print(build_overview_table(summary))
        console.print(build_metrics_table(self._result))
        return console.export_text()
