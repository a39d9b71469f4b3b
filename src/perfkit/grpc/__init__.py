# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""gRPC client wrapper and per-scenario metrics."""

from perfkit.grpc.client import (
    HEALTH_CHECK_METHOD,
    GrpcResponse,
    PerfGrpcClient,
    TokenSource,
    full_method_path,
    serialize_message,
)
from perfkit.grpc.metrics import GrpcMetrics, extract_service_method, status_number

__all__ = [
    "HEALTH_CHECK_METHOD",
    "GrpcMetrics",
    "GrpcResponse",
    "PerfGrpcClient",
    "TokenSource",
    "extract_service_method",
    "full_method_path",
    "serialize_message",
    "status_number",
]
