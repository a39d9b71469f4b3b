# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

MILLIS_PER_SECOND = 1000
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

DEFAULT_TEST_NAME = "performance-test"
DEFAULT_ENVIRONMENT = "test"

PERFORMANCE_RUNS_PATH = "/api/performance-runs"

# Raw p95 values below this are assumed to be seconds when the unit is "auto".
P95_SECONDS_HEURISTIC_LIMIT = 10

# Token expiry used when a login response carries neither expires_in nor exp.
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
