# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""HTTP client wrapper and per-scenario metrics."""

from perfkit.http.client import PerfHttpClient
from perfkit.http.metrics import (
    HttpMetrics,
    extract_endpoint,
    status_class,
    trend_statistics,
)

__all__ = [
    "HttpMetrics",
    "PerfHttpClient",
    "extract_endpoint",
    "status_class",
    "trend_statistics",
]
