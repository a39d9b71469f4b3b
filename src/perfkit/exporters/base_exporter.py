# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Base class and configuration for run result exporters."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from perfkit.common.config.config_defaults import SummaryDefaults
from perfkit.reporting.models import PerformanceRunResult, PerfRunSummary

logger = logging.getLogger(__name__)

__all__ = [
    "BaseExporter",
    "ExporterConfig",
]


@dataclass(slots=True)
class ExporterConfig:
    """Configuration shared by all run exporters.

    Attributes:
        result: Run result to export
        output_dir: Directory where the export file will be written
        test_metadata: Caller metadata (test name, description, ...)
        summary: Normalized summary, for exporters that publish it
        file_prefix: Prefix for timestamped file names
        timestamp: File-safe timestamp appended to timestamped file names
    """

    result: PerformanceRunResult
    output_dir: Path
    test_metadata: dict[str, Any] = field(default_factory=dict)
    summary: PerfRunSummary | None = None
    file_prefix: str = SummaryDefaults.FALLBACK_PREFIX
    timestamp: str = ""


class BaseExporter(ABC):
    """Renders one artefact from a run result and writes it to disk.

    Subclasses provide the file name and the content. `render()` returns both
    without touching the filesystem so callers can collect outputs first.
    """

    def __init__(self, config: ExporterConfig):
        self._config = config
        self._result = config.result
        self._output_dir = Path(config.output_dir)

    @property
    def test_name(self) -> str:
        name = self._config.test_metadata.get("testName")
        return name or self._config.file_prefix

    def _timestamped_name(self, extension: str) -> str:
        if self._config.timestamp:
            return f"{self._config.file_prefix}_{self._config.timestamp}.{extension}"
        return f"{self._config.file_prefix}.{extension}"

    @abstractmethod
    def get_file_name(self) -> str:
        """Return the file name written inside the output directory."""

    @abstractmethod
    def _generate_content(self) -> str:
        """Return the file content."""

    def render(self) -> tuple[str, str]:
        """Return (file name, content) without writing anything."""
        return self.get_file_name(), self._generate_content()

    async def export(self) -> Path:
        """Write the artefact and return its path."""
        self._output_dir.mkdir(parents=True, exist_ok=True)
        file_name, content = self.render()
        path = self._output_dir / file_name
        path.write_text(content, encoding="utf-8")
        logger.info(f"{self.__class__.__name__} wrote {path}")
        return path
