# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from perfkit.common.config.auth_config import AuthConfig, TokenCoordinatorConfig
from perfkit.common.config.base_config import BaseConfig
from perfkit.common.config.config_loader import (
    ConfigLoader,
    load_json_config,
    merge_configs,
    resolve_config_value,
)
from perfkit.common.config.reporting_config import ReporterConfig
from perfkit.common.config.summary_config import SummaryOptions

__all__ = [
    "AuthConfig",
    "BaseConfig",
    "ConfigLoader",
    "ReporterConfig",
    "SummaryOptions",
    "TokenCoordinatorConfig",
    "load_json_config",
    "merge_configs",
    "resolve_config_value",
]
