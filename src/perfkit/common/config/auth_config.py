# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Annotated, Any

from pydantic import Field, model_validator

from perfkit.common.config.base_config import BaseConfig
from perfkit.common.config.config_defaults import TokenDefaults
from perfkit.common.enums import AuthType


class TokenCoordinatorConfig(BaseConfig):
    """Refresh and wait budgets for a TokenCoordinator."""

    expiry_buffer: Annotated[
        float,
        Field(
            ge=0,
            description="Seconds before expiry at which a token stops being served "
            "and a refresh is forced.",
        ),
    ] = TokenDefaults.EXPIRY_BUFFER

    retry_delay: Annotated[
        float,
        Field(ge=0, description="Seconds slept between failed login attempts."),
    ] = TokenDefaults.RETRY_DELAY

    max_retries: Annotated[
        int,
        Field(ge=1, description="Total login attempts per refresh."),
    ] = TokenDefaults.MAX_RETRIES

    wait_poll_interval: Annotated[
        float,
        Field(
            gt=0,
            description="Seconds per wait slice when joining another caller's refresh.",
        ),
    ] = TokenDefaults.WAIT_POLL_INTERVAL

    wait_max_polls: Annotated[
        int,
        Field(
            ge=1,
            description="Number of wait slices before giving up on an in-flight refresh.",
        ),
    ] = TokenDefaults.WAIT_MAX_POLLS

    @property
    def wait_timeout(self) -> float:
        """Ceiling in seconds for joining an in-flight refresh."""
        return self.wait_poll_interval * self.wait_max_polls


# Fields each flow cannot work without.
_REQUIRED_FIELDS: dict[AuthType, tuple[str, ...]] = {
    AuthType.BASIC: ("url", "username", "password"),
    AuthType.OAUTH2_CLIENT_CREDENTIALS: ("url", "client_id", "client_secret"),
    AuthType.OAUTH2_PASSWORD: ("url", "client_id", "username", "password"),
    AuthType.FORM: ("login_page_url", "form_action_url", "username", "password"),
    AuthType.CUSTOM: (),
}


class AuthConfig(BaseConfig):
    """Configuration for one authentication flow and its token coordinator."""

    type: Annotated[AuthType, Field(description="Authentication flow to use.")]

    url: Annotated[
        str | None,
        Field(description="Login or token endpoint URL. Requests to it skip auth."),
    ] = None

    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    scope: str = ""

    extra_params: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra fields merged into the basic-auth JSON payload.",
    )

    login_page_url: Annotated[
        str | None, Field(description="Form login: page that carries the CSRF token.")
    ] = None
    form_action_url: Annotated[
        str | None, Field(description="Form login: URL the form is posted to.")
    ] = None
    username_field: str = "username"
    password_field: str = "password"

    token_type: Annotated[
        str,
        Field(description="Scheme used in the Authorization header."),
    ] = TokenDefaults.TOKEN_TYPE

    token: TokenCoordinatorConfig = Field(
        default_factory=TokenCoordinatorConfig,
        description="Refresh and wait budgets.",
    )

    @model_validator(mode="after")
    def _check_required_fields(self) -> "AuthConfig":
        missing = [name for name in _REQUIRED_FIELDS[self.type] if not getattr(self, name)]
        if missing:
            raise ValueError(
                f"Authentication type '{self.type}' requires: {', '.join(missing)}"
            )
        return self
