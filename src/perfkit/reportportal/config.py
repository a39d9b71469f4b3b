# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Annotated, Any

from pydantic import Field, field_validator

from perfkit.common.config.base_config import BaseConfig
from perfkit.common.environment import Environment


class ReportPortalConfig(BaseConfig):
    """Connection and publishing settings for ReportPortal launch tracking."""

    endpoint: Annotated[str | None, Field(description="ReportPortal base URL.")] = None
    project: Annotated[str | None, Field(description="ReportPortal project name.")] = None
    token: Annotated[str | None, Field(description="ReportPortal API token.")] = None
    launch: Annotated[
        str, Field(description="Launch name. The test type is appended per run.")
    ] = "Performance Test"
    publish_result: Annotated[
        bool, Field(description="Whether anything is sent to ReportPortal.")
    ] = False
    debug: Annotated[bool, Field(description="Log every ReportPortal exchange.")] = False
    module_name: Annotated[
        str, Field(description="Module attribute attached to launches.")
    ] = "performance-tests"

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @property
    def enabled(self) -> bool:
        """Publishing is on and both the token and the endpoint are set."""
        return bool(self.publish_result and self.token and self.endpoint)

    @property
    def disabled_reason(self) -> str | None:
        if not self.publish_result:
            return "publish_result is false"
        if not self.token:
            return "no token provided"
        if not self.endpoint:
            return "no endpoint provided"
        return None

    @property
    def api_base(self) -> str:
        return f"{self.endpoint}/api/v1/{self.project}"

    @classmethod
    def from_environment(cls, **overrides: Any) -> "ReportPortalConfig":
        """Build a config from the RP_* environment variables."""
        settings = Environment.REPORTPORTAL
        values: dict[str, Any] = {
            "endpoint": settings.BASE_URL,
            "project": settings.PROJECT,
            "token": settings.API_TOKEN,
            "launch": settings.LAUNCH_NAME,
            "publish_result": settings.ENABLED,
            "debug": settings.DEBUG,
            "module_name": settings.MODULE_NAME,
        }
        values.update(overrides)
        return cls(**values)
