# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Authentication flows and token lifecycle management."""

from perfkit.auth.auth_manager import (
    AuthManager,
    CustomLoginFunc,
    TokenAuth,
    create_auth_manager,
)
from perfkit.auth.login_flows import (
    LOGIN_FLOWS,
    basic_auth,
    calculate_expiry,
    extract_csrf_token,
    form_login,
    oauth2_client_credentials,
    oauth2_password,
)
from perfkit.auth.token_coordinator import (
    AuthToken,
    LoginFunc,
    LoginResult,
    TokenCoordinator,
)

__all__ = [
    "LOGIN_FLOWS",
    "AuthManager",
    "AuthToken",
    "CustomLoginFunc",
    "LoginFunc",
    "LoginResult",
    "TokenAuth",
    "TokenCoordinator",
    "basic_auth",
    "calculate_expiry",
    "create_auth_manager",
    "extract_csrf_token",
    "form_login",
    "oauth2_client_credentials",
    "oauth2_password",
]
