# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""JSON exporter for the PerfRunDTO sent to the collector."""

import orjson

from perfkit.common.config.config_defaults import SummaryDefaults
from perfkit.common.exceptions import ConfigurationError
from perfkit.exporters.base_exporter import BaseExporter


class PerfRunJsonExporter(BaseExporter):
    """Exports the normalized summary as the collector would receive it.

    Used as a debug dump next to other reports, so the payload can be
    compared with what the dashboard shows.
    """

    def get_file_name(self) -> str:
        return SummaryDefaults.DEBUG_DUMP_NAME

    def _generate_content(self) -> str:
        summary = self._config.summary
        if summary is None:
            raise ConfigurationError("PerfRunJsonExporter requires a summary")
        return orjson.dumps(summary.to_payload(), option=orjson.OPT_INDENT_2).decode(
            "utf-8"
        )
