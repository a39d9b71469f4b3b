# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Annotated

from pydantic import Field

from perfkit.common.config.base_config import BaseConfig
from perfkit.common.config.config_defaults import SummaryDefaults


class SummaryOptions(BaseConfig):
    """Options for the end-of-run summary handler."""

    generate_html_report: Annotated[
        bool, Field(description="Render an HTML report of the run.")
    ] = True

    generate_files: Annotated[
        bool,
        Field(
            description="Also dump the raw results and the reported summary as JSON.",
        ),
    ] = False

    report_prefix: Annotated[
        str | None,
        Field(description="File name prefix. Defaults to the test name."),
    ] = None

    reports_dir: Annotated[
        str, Field(description="Directory prefix for generated report files.")
    ] = SummaryDefaults.REPORTS_DIR

    description: Annotated[
        str | None, Field(description="Description shown in the HTML report.")
    ] = None

    send_report: Annotated[
        bool,
        Field(description="Deliver the summary to the collector when one is configured."),
    ] = True
