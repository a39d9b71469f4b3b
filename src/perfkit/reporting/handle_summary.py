# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""End-of-test summary handling: report files, stdout text and collector delivery."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from perfkit.common.config import ReporterConfig, SummaryOptions
from perfkit.common.config.config_defaults import SummaryDefaults
from perfkit.common.environment import Environment
from perfkit.common.exceptions import ReportingError
from perfkit.exporters.base_exporter import ExporterConfig
from perfkit.exporters.console_summary_exporter import ConsoleSummaryExporter
from perfkit.exporters.html_report_exporter import HtmlReportExporter
from perfkit.exporters.perf_run_json_exporter import PerfRunJsonExporter
from perfkit.exporters.raw_results_json_exporter import RawResultsJsonExporter
from perfkit.reporting.models import PerformanceRunResult
from perfkit.reporting.reporter import ResultReporter
from perfkit.reporting.transform import utc_now
from perfkit.reporting.transport import ReportTransport

logger = logging.getLogger(__name__)

__all__ = [
    "STDOUT_KEY",
    "SummaryHandler",
    "create_html_report_summary",
    "create_test_metadata",
    "file_timestamp",
    "simple_handle_summary",
    "write_outputs",
]

STDOUT_KEY = "stdout"

CustomHandler = Callable[
    [PerformanceRunResult], Mapping[str, str] | Awaitable[Mapping[str, str]]
]


def file_timestamp(moment: datetime) -> str:
    """Format a time for use in file names, e.g. `2025-01-31-14-05-09`."""
    return moment.strftime("%Y-%m-%d-%H-%M-%S")


def create_test_metadata(test_name: str, **overrides: Any) -> dict[str, Any]:
    """Build the default metadata record for a test.

    Args:
        test_name: Name of the test
        **overrides: Extra or replacement keys

    Returns:
        Metadata with `testName`, `version`, `timestamp` and `environment`
    """
    return {
        "testName": test_name,
        "version": "1.0.0",
        "timestamp": utc_now().isoformat(),
        "environment": Environment.REPORTING.ENVIRONMENT,
        **overrides,
    }


class SummaryHandler:
    """Produces every end-of-test output for one run.

    Calling the handler with a run result returns a mapping of output name to
    content. `stdout` holds the text summary, every other key is a file path
    relative to the working directory. When a collector is configured the
    summary is delivered as well. Delivery failures are logged and never
    raised, so reporting cannot change the outcome of a run.

    Args:
        test_metadata: Metadata for the run (see `create_test_metadata`)
        options: Which artefacts to produce
        custom_handler: Optional callable whose outputs are merged in
        reporter_config: Collector settings. Read from the environment when omitted.
        transport: Transport passed to the ResultReporter
        now: Clock for file names and summary timestamps
    """

    def __init__(
        self,
        test_metadata: Mapping[str, Any],
        options: SummaryOptions | None = None,
        custom_handler: CustomHandler | None = None,
        reporter_config: ReporterConfig | None = None,
        transport: ReportTransport | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.test_metadata = dict(test_metadata)
        self.options = options or SummaryOptions()
        self.custom_handler = custom_handler
        self.reporter_config = reporter_config
        self.transport = transport
        self._now = now

    @property
    def report_prefix(self) -> str:
        return (
            self.options.report_prefix
            or self.test_metadata.get("testName")
            or SummaryDefaults.FALLBACK_PREFIX
        )

    def _report_path(self, file_name: str) -> str:
        return f"{self.options.reports_dir}/{file_name}"

    async def __call__(self, data: Any) -> dict[str, str]:
        result = PerformanceRunResult.from_raw(data)
        outputs: dict[str, str] = {}

        exporter_metadata = dict(self.test_metadata)
        if self.options.description:
            exporter_metadata["description"] = self.options.description
        exporter_config = ExporterConfig(
            result=result,
            output_dir=Path(self.options.reports_dir),
            test_metadata=exporter_metadata,
            file_prefix=self.report_prefix,
            timestamp=file_timestamp(self._now()),
        )

        if self.options.generate_html_report:
            file_name, content = HtmlReportExporter(exporter_config).render()
            outputs[self._report_path(file_name)] = content
            logger.info(f"HTML report will be saved as: {self._report_path(file_name)}")

        _, outputs[STDOUT_KEY] = ConsoleSummaryExporter(exporter_config).render()

        if self.options.generate_files:
            file_name, content = RawResultsJsonExporter(exporter_config).render()
            outputs[self._report_path(file_name)] = content

        if self.custom_handler is not None:
            custom_outputs = self.custom_handler(result)
            if inspect.isawaitable(custom_outputs):
                custom_outputs = await custom_outputs
            outputs.update(custom_outputs)

        await self._deliver(result, exporter_config, outputs)
        return outputs

    async def _deliver(
        self,
        result: PerformanceRunResult,
        exporter_config: ExporterConfig,
        outputs: dict[str, str],
    ) -> None:
        if not self.options.send_report:
            return
        try:
            config = self.reporter_config or ReporterConfig.from_environment()
            if not config.enabled:
                logger.warning(
                    "Reporting disabled: REPORTING_API_URL and REPORTING_API_KEY must be set"
                )
                return

            logger.info("Sending performance report to central API...")
            reporter = ResultReporter(config, transport=self.transport, now=self._now)
            summary = reporter.transform(result, self.test_metadata)
            delivery = await reporter.send_report(summary)
            logger.info(
                f"Performance report sent (status {delivery.status_code}, "
                f"{delivery.attempts} attempt(s))"
            )
            if self.options.generate_files:
                exporter_config.summary = summary
                file_name, content = PerfRunJsonExporter(exporter_config).render()
                outputs[self._report_path(file_name)] = content
        except ReportingError as e:
            logger.error(f"Failed to send performance report: {e}")
        except Exception:
            logger.exception("Failed to send performance report")


def create_html_report_summary(
    test_name: str,
    report_prefix: str | None = None,
    description: str | None = None,
) -> SummaryHandler:
    """Summary handler that only renders the HTML report and the stdout text.

    Nothing is delivered to the collector and no JSON files are produced.

    Args:
        test_name: Name of the test, also the default file prefix
        report_prefix: File name prefix for the HTML report
        description: Description shown in the report
    """
    description = description or f"Performance test results for {test_name}"
    return SummaryHandler(
        create_test_metadata(test_name, description=description),
        SummaryOptions(
            report_prefix=report_prefix or test_name,
            description=description,
            send_report=False,
        ),
    )


def simple_handle_summary(test_metadata: Mapping[str, Any]) -> SummaryHandler:
    """Summary handler with default options and no custom processing."""
    return SummaryHandler(test_metadata)


def write_outputs(outputs: Mapping[str, str], base_dir: Path | str = ".") -> list[Path]:
    """Write every non-stdout output below `base_dir`.

    Args:
        outputs: Output name to content, as returned by SummaryHandler
        base_dir: Directory the relative output names are resolved against

    Returns:
        Paths of the written files
    """
    written = []
    for name, content in outputs.items():
        if name == STDOUT_KEY:
            continue
        path = Path(base_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        written.append(path)
        logger.debug(f"Wrote {path}")
    return written
