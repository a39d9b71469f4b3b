# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import orjson
from rich.console import Console
from rich.table import Table

from perfkit.common.config import (
    ConfigLoader,
    ReporterConfig,
    SummaryOptions,
    load_json_config,
)
from perfkit.common.enums import LatencyUnit
from perfkit.common.environment import Environment
from perfkit.common.exceptions import ConfigurationError, ReportingError
from perfkit.common.logging import setup_rich_logging

logger = logging.getLogger(__name__)


def _load_results(results_file: Path) -> dict[str, Any]:
    """Read a results file, exiting with an error when it is not a JSON object."""
    try:
        data = orjson.loads(Path(results_file).read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.error(f"Could not read results from {results_file}: {e}")
        sys.exit(1)
    if not isinstance(data, dict):
        logger.error(f"Results file {results_file} does not contain a JSON object")
        sys.exit(1)
    return data


def _build_metadata(test_name: str | None, metadata_file: Path | None) -> dict[str, Any]:
    from perfkit.reporting.handle_summary import create_test_metadata

    extra = load_json_config(metadata_file) if metadata_file else {}
    name = test_name or extra.get("testName") or extra.get("name")
    if name:
        return create_test_metadata(name, **extra)
    return extra


def run_transform(
    results_file: Path,
    *,
    test_name: str | None = None,
    metadata_file: Path | None = None,
    environment: str | None = None,
    latency_unit: LatencyUnit = LatencyUnit.AUTO,
    output: Path | None = None,
    log_level: str | None = None,
) -> None:
    """Transform a results file and print or write the summary JSON."""
    from perfkit.reporting.transform import transform_results

    setup_rich_logging(log_level)
    summary = transform_results(
        _load_results(results_file),
        _build_metadata(test_name, metadata_file),
        environment=environment or Environment.REPORTING.ENVIRONMENT,
        latency_unit=latency_unit,
    )
    content = orjson.dumps(summary.to_payload(), option=orjson.OPT_INDENT_2)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(content)
        logger.info(f"Summary written to {output}")
    else:
        Console().print_json(content.decode("utf-8"))


def _reporter_config(
    config_file: Path | None, overrides: dict[str, Any]
) -> ReporterConfig:
    values: dict[str, Any] = {}
    if config_file is not None:
        loader = ConfigLoader()
        loader.load(config_file)
        section = loader.get("reporting", {})
        if isinstance(section, dict):
            values.update(
                {k: v for k, v in section.items() if k in ReporterConfig.model_fields}
            )
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ReporterConfig.from_environment(**values)


def run_report(
    results_file: Path,
    *,
    test_name: str | None = None,
    metadata_file: Path | None = None,
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
    log_level: str | None = None,
) -> None:
    """Deliver a results file to the collector, exiting non-zero on failure."""
    from perfkit.reporting.reporter import ResultReporter

    setup_rich_logging(log_level)
    data = _load_results(results_file)
    metadata = _build_metadata(test_name, metadata_file)

    try:
        reporter = ResultReporter(_reporter_config(config_file, overrides or {}))
    except ConfigurationError as e:
        logger.error(f"{e}. Set REPORTING_API_URL and REPORTING_API_KEY or pass --api-url/--api-key")
        sys.exit(1)

    try:
        delivery = asyncio.run(reporter.report_results(data, metadata))
    except ReportingError as e:
        logger.error(f"Failed to send performance report: {e}")
        sys.exit(1)
    logger.info(
        f"Performance report delivered (status {delivery.status_code}) "
        f"after {delivery.attempts} attempt(s)"
    )


def run_summary(
    results_file: Path,
    *,
    test_name: str | None = None,
    metadata_file: Path | None = None,
    options: SummaryOptions | None = None,
    log_level: str | None = None,
) -> None:
    """Run the summary handler, print its text summary and write its files."""
    from perfkit.reporting.handle_summary import (
        STDOUT_KEY,
        SummaryHandler,
        write_outputs,
    )

    setup_rich_logging(log_level)
    handler = SummaryHandler(_build_metadata(test_name, metadata_file), options)
    outputs = asyncio.run(handler(_load_results(results_file)))

    print(outputs.get(STDOUT_KEY, ""))
    for path in write_outputs(outputs):
        logger.info(f"Wrote {path}")


def run_presets(name: str | None = None) -> None:
    """Print the preset table, or a single preset's engine options."""
    from perfkit.stages import get_preset, list_presets

    console = Console()
    if name is not None:
        try:
            preset = get_preset(name)
        except ConfigurationError as e:
            console.print(f"[red]{e}[/]")
            sys.exit(1)
        console.print_json(orjson.dumps(preset.to_options()).decode("utf-8"))
        return

    table = Table(title="Stage presets")
    table.add_column("Name", style="bold cyan")
    table.add_column("Peak VUs", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Description")
    for preset in list_presets():
        minutes = preset.total_duration_seconds / 60
        table.add_row(
            str(preset.name),
            str(preset.peak_target),
            f"{minutes:.1f} min",
            preset.description,
        )
    console.print(table)
