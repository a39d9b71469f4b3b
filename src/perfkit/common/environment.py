# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Environment variable settings for perfkit.

Settings are grouped by subsystem and read once at import time:

    Environment.REPORTING     REPORTING_API_URL, REPORTING_API_KEY, TEST_ENVIRONMENT, ...
    Environment.REPORTPORTAL  RP_BASE_URL, RP_PROJECT, RP_API_TOKEN, RP_ENABLED, ...
    Environment.LOGGING       LOG_LEVEL

Missing values never raise here. Components that need them check for their
presence and disable themselves with a warning instead.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class _ReportingSettings(BaseSettings):
    """Collector reporting settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPORTING_", extra="ignore", populate_by_name=True
    )

    API_URL: str | None = Field(
        default=None,
        description="Base URL of the performance-run collector API.",
    )
    API_KEY: str | None = Field(
        default=None,
        description="API key sent as a bearer token to the collector.",
    )
    ENVIRONMENT: str = Field(
        default="test",
        validation_alias="TEST_ENVIRONMENT",
        description="Environment label attached to every reported run.",
    )
    MAX_RETRIES: int = Field(
        default=3,
        ge=1,
        description="Maximum number of delivery attempts per report.",
    )
    TIMEOUT: int = Field(
        default=10000,
        gt=0,
        description="Collector request timeout in milliseconds.",
    )

    @property
    def enabled(self) -> bool:
        """Whether both the collector URL and API key are configured."""
        return bool(self.API_URL and self.API_KEY)


class _ReportPortalSettings(BaseSettings):
    """ReportPortal launch-tracking settings."""

    model_config = SettingsConfigDict(env_prefix="RP_", extra="ignore")

    BASE_URL: str | None = Field(default=None, description="ReportPortal base URL.")
    PROJECT: str | None = Field(default=None, description="ReportPortal project.")
    API_TOKEN: str | None = Field(default=None, description="ReportPortal API token.")
    LAUNCH_NAME: str = Field(
        default="Performance Test", description="Base name for created launches."
    )
    ENABLED: bool = Field(default=False, description="Publish results to ReportPortal.")
    DEBUG: bool = Field(default=False, description="Verbose ReportPortal logging.")
    MODULE_NAME: str = Field(
        default="performance-tests", description="Module attribute for launches."
    )


class _LoggingSettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(extra="ignore")

    LOG_LEVEL: str = Field(default="INFO", description="Root perfkit log level.")


class _Environment(BaseSettings):
    """All perfkit environment settings."""

    model_config = SettingsConfigDict(extra="ignore")

    REPORTING: _ReportingSettings = Field(default_factory=_ReportingSettings)
    REPORTPORTAL: _ReportPortalSettings = Field(default_factory=_ReportPortalSettings)
    LOGGING: _LoggingSettings = Field(default_factory=_LoggingSettings)


Environment = _Environment()
