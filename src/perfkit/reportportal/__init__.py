# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""ReportPortal launch tracking."""

from perfkit.reportportal.client import PRODUCT_BUG_ISSUE, RpClient
from perfkit.reportportal.config import ReportPortalConfig
from perfkit.reportportal.grpc_lifecycle import (
    GrpcEndpoint,
    GrpcEndpointCheck,
    GrpcTestLifecycleManager,
    default_grpc_checks,
)
from perfkit.reportportal.lifecycle import (
    BaseLifecycleManager,
    EndpointCall,
    EndpointCheck,
    TestLifecycleManager,
    TestResults,
    create_rp_metadata,
    default_checks,
)

__all__ = [
    "PRODUCT_BUG_ISSUE",
    "BaseLifecycleManager",
    "EndpointCall",
    "EndpointCheck",
    "GrpcEndpoint",
    "GrpcEndpointCheck",
    "GrpcTestLifecycleManager",
    "ReportPortalConfig",
    "RpClient",
    "TestLifecycleManager",
    "TestResults",
    "create_rp_metadata",
    "default_checks",
    "default_grpc_checks",
]
