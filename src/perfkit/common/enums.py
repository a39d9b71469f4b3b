# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from enum import Enum


class CaseInsensitiveStrEnum(str, Enum):
    """String enum that matches values case-insensitively.

    Lets config files, environment variables and CLI input use any casing
    (e.g. "SMOKE", "Smoke" and "smoke" all resolve to the same member).
    """

    def __str__(self) -> str:
        return self.value

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class StageType(CaseInsensitiveStrEnum):
    """Test-stage preset names."""

    BASELINE = "baseline"
    BREAKPOINT = "breakpoint"
    BURST = "burst"
    CAPACITY = "capacity"
    ENDURANCE = "endurance"
    LIGHT = "light"
    LOAD = "load"
    RAMP = "ramp"
    RECOVERY = "recovery"
    SCALABILITY = "scalability"
    SMOKE = "smoke"
    SOAK = "soak"
    SPIKE = "spike"
    STRESS = "stress"
    VOLUME = "volume"


class AuthType(CaseInsensitiveStrEnum):
    """Supported authentication flows."""

    BASIC = "basic"
    OAUTH2_CLIENT_CREDENTIALS = "oauth2_client_credentials"
    OAUTH2_PASSWORD = "oauth2_password"
    FORM = "form"
    CUSTOM = "custom"


class TokenState(CaseInsensitiveStrEnum):
    """Lifecycle states of a TokenCoordinator."""

    EMPTY = "empty"
    VALID = "valid"
    EXPIRING = "expiring"
    REFRESHING = "refreshing"
    FAILED = "failed"


class LatencyUnit(CaseInsensitiveStrEnum):
    """Unit of the raw p95 latency value in a run result.

    AUTO treats values below 10 as seconds and anything else as milliseconds.
    """

    AUTO = "auto"
    MILLISECONDS = "ms"
    SECONDS = "s"


class RpItemType(CaseInsensitiveStrEnum):
    """ReportPortal test item types."""

    SUITE = "suite"
    TEST = "test"
    STEP = "step"


class RpItemStatus(CaseInsensitiveStrEnum):
    """ReportPortal test item statuses."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class RpLogLevel(CaseInsensitiveStrEnum):
    """ReportPortal log levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
