# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""perfkit - Performance Testing Helper SDK."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("perfkit")
except PackageNotFoundError:
    __version__ = "unknown"
