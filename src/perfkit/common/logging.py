# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging

from rich.console import Console
from rich.logging import RichHandler

from perfkit.common.environment import Environment

_ROOT_LOGGER_NAME = "perfkit"


def setup_rich_logging(level: str | int | None = None, console: Console | None = None) -> None:
    """Install a rich handler on the perfkit logger.

    Calling this more than once replaces the previously installed handler
    instead of stacking duplicates.

    Args:
        level: Log level name or number. Defaults to LOG_LEVEL from the environment.
        console: Console to log to. Defaults to stderr.
    """
    if level is None:
        level = Environment.LOGGING.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        log_time_format="%H:%M:%S",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
