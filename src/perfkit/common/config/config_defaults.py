# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass

from perfkit.common.enums import LatencyUnit


@dataclass(frozen=True)
class ReporterDefaults:
    ENVIRONMENT = "test"
    MAX_RETRIES = 3
    RETRY_DELAYS_MS = (1000, 2000, 4000)
    TIMEOUT_MS = 10000
    LATENCY_UNIT = LatencyUnit.AUTO


@dataclass(frozen=True)
class TokenDefaults:
    EXPIRY_BUFFER = 60.0
    RETRY_DELAY = 5.0
    MAX_RETRIES = 3
    WAIT_POLL_INTERVAL = 0.5
    WAIT_MAX_POLLS = 10
    TOKEN_TYPE = "Bearer"


@dataclass(frozen=True)
class SummaryDefaults:
    REPORTS_DIR = "reports"
    DEBUG_DUMP_NAME = "perf-run-data.json"
    FALLBACK_PREFIX = "TestReport"


@dataclass(frozen=True)
class ConfigLoaderDefaults:
    DEFAULT_CONFIG_PATH = "config/default.json"
    CONFIG_ENV_KEY = "CONFIG_ENV"
    CONFIG_PATH_PREFIX = "CONFIG_PATH_"
    LOCAL_CONFIG_KEY = "LOCAL_CONFIG_PATH"


@dataclass(frozen=True)
class GrpcDefaults:
    ADDRESS = "localhost:50051"
    TIMEOUT_SECONDS = 60.0
