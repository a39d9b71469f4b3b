# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Command line interface for perfkit."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from perfkit.common.enums import LatencyUnit

app = App(
    name="perfkit",
    help="Transform, report and summarise load-test results.",
)

_ResultsFile = Annotated[
    Path, Parameter(help="JSON file with the engine's end-of-test summary.")
]
_TestName = Annotated[
    str | None, Parameter(name=("--test-name", "-n"), help="Name of the test.")
]
_MetadataFile = Annotated[
    Path | None,
    Parameter(help="JSON file with extra test metadata merged into the summary."),
]
_LogLevel = Annotated[
    str | None, Parameter(help="Log level. Defaults to LOG_LEVEL or INFO.")
]


@app.command
def transform(
    results_file: _ResultsFile,
    *,
    test_name: _TestName = None,
    metadata_file: _MetadataFile = None,
    environment: Annotated[
        str | None, Parameter(help="Environment label. Defaults to TEST_ENVIRONMENT.")
    ] = None,
    latency_unit: Annotated[
        LatencyUnit, Parameter(help="Unit of the raw p95 latency.")
    ] = LatencyUnit.AUTO,
    output: Annotated[
        Path | None, Parameter(name=("--output", "-o"), help="Write the JSON here.")
    ] = None,
    log_level: _LogLevel = None,
) -> None:
    """Print the collector payload for a results file without sending it."""
    from perfkit.cli_runner import run_transform

    run_transform(
        results_file,
        test_name=test_name,
        metadata_file=metadata_file,
        environment=environment,
        latency_unit=latency_unit,
        output=output,
        log_level=log_level,
    )


@app.command
def report(
    results_file: _ResultsFile,
    *,
    test_name: _TestName = None,
    metadata_file: _MetadataFile = None,
    config: Annotated[
        Path | None,
        Parameter(help="Layered JSON config; its `reporting` section sets defaults."),
    ] = None,
    api_url: Annotated[
        str | None, Parameter(help="Collector URL. Defaults to REPORTING_API_URL.")
    ] = None,
    api_key: Annotated[
        str | None, Parameter(help="Collector API key. Defaults to REPORTING_API_KEY.")
    ] = None,
    environment: Annotated[
        str | None, Parameter(help="Environment label. Defaults to TEST_ENVIRONMENT.")
    ] = None,
    max_retries: Annotated[
        int | None, Parameter(help="Delivery attempts. Defaults to REPORTING_MAX_RETRIES.")
    ] = None,
    timeout: Annotated[
        int | None, Parameter(help="Request timeout in ms. Defaults to REPORTING_TIMEOUT.")
    ] = None,
    latency_unit: Annotated[
        LatencyUnit | None, Parameter(help="Unit of the raw p95 latency.")
    ] = None,
    log_level: _LogLevel = None,
) -> None:
    """Transform a results file and deliver it to the collector."""
    from perfkit.cli_runner import run_report

    run_report(
        results_file,
        test_name=test_name,
        metadata_file=metadata_file,
        config_file=config,
        overrides={
            "api_url": api_url,
            "api_key": api_key,
            "environment": environment,
            "max_retries": max_retries,
            "timeout": timeout,
            "latency_unit": latency_unit,
        },
        log_level=log_level,
    )


@app.command
def summary(
    results_file: _ResultsFile,
    *,
    test_name: _TestName = None,
    metadata_file: _MetadataFile = None,
    reports_dir: Annotated[
        str, Parameter(help="Directory for generated reports.")
    ] = "reports",
    report_prefix: Annotated[
        str | None, Parameter(help="Report file prefix. Defaults to the test name.")
    ] = None,
    description: Annotated[
        str | None, Parameter(help="Description shown in the HTML report.")
    ] = None,
    html: Annotated[bool, Parameter(help="Generate the HTML report.")] = True,
    generate_files: Annotated[
        bool, Parameter(help="Also write raw and reported JSON files.")
    ] = False,
    log_level: _LogLevel = None,
) -> None:
    """Run the end-of-test summary handler on a results file."""
    from perfkit.cli_runner import run_summary
    from perfkit.common.config import SummaryOptions

    run_summary(
        results_file,
        test_name=test_name,
        metadata_file=metadata_file,
        options=SummaryOptions(
            reports_dir=reports_dir,
            report_prefix=report_prefix,
            description=description,
            generate_html_report=html,
            generate_files=generate_files,
        ),
        log_level=log_level,
    )


@app.command
def presets(
    name: Annotated[
        str | None, Parameter(help="Preset to print as engine options.")
    ] = None,
) -> None:
    """List the stage presets, or print one preset's engine options."""
    from perfkit.cli_runner import run_presets

    run_presets(name)


if __name__ == "__main__":
    app()
