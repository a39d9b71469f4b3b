# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for perfkit.

Reporting errors are local to the reporting call and are caught at the
teardown boundary. Authentication errors propagate to the caller, since an
unauthenticated request blocks the test iteration.
"""


class PerfKitError(Exception):
    """Base class for all perfkit errors."""


class ConfigurationError(PerfKitError):
    """Raised when a component is constructed with unusable configuration."""


# -----------------------------------------------------------------------------
# Reporting
# -----------------------------------------------------------------------------


class ReportingError(PerfKitError):
    """Base class for errors raised while delivering a run report."""


class ReportTransportError(ReportingError):
    """A single delivery attempt failed below the HTTP status level."""


class ReportClientRejected(ReportingError):
    """The collector rejected the report with a 4xx status. Never retried."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"API returned client error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ReportDeliveryFailed(ReportingError):
    """Every delivery attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(
            f"Reporting failed after {attempts} attempts. Last error: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


# -----------------------------------------------------------------------------
# Authentication
# -----------------------------------------------------------------------------


class AuthenticationError(PerfKitError):
    """Base class for credential acquisition errors."""


class LoginFlowError(AuthenticationError):
    """A login exchange returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TokenAcquisitionFailed(AuthenticationError):
    """The login function failed on every attempt."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(
            f"Failed to refresh token after {attempts} attempts: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class TokenRefreshTimeout(AuthenticationError):
    """Waiting on another caller's in-flight refresh exceeded the wait ceiling."""

    def __init__(self, waited_seconds: float) -> None:
        super().__init__(
            f"Timed out waiting for token refresh after {waited_seconds:.2f}s"
        )
        self.waited_seconds = waited_seconds
