# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""JSON exporter for the unmodified engine result bundle."""

import orjson

from perfkit.exporters.base_exporter import BaseExporter


class RawResultsJsonExporter(BaseExporter):
    """Exports the full run result, including engine-specific extra keys.

    The state block keeps the engine's camelCase keys so the file can be fed
    back into `perfkit transform` or `perfkit report`.
    """

    def get_file_name(self) -> str:
        return self._timestamped_name("json")

    def _generate_content(self) -> str:
        data = self._result.model_dump(mode="json", by_alias=True, exclude_none=True)
        return orjson.dumps(
            data, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS
        ).decode("utf-8")
