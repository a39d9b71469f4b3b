# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Authentication manager wiring a login flow to a TokenCoordinator."""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from functools import partial

import httpx

from perfkit.auth.login_flows import LOGIN_FLOWS
from perfkit.auth.token_coordinator import LoginResult, SleepFunc, TokenCoordinator
from perfkit.common.config import AuthConfig
from perfkit.common.enums import AuthType
from perfkit.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "AuthManager",
    "CustomLoginFunc",
    "TokenAuth",
    "create_auth_manager",
]

CustomLoginFunc = Callable[[httpx.AsyncClient], Awaitable[LoginResult]]


class TokenAuth(httpx.Auth):
    """httpx auth that adds `Authorization: <token_type> <token>` to requests.

    Requests to the login endpoints are sent untouched so that a login flow
    can share the authenticated client. A 401 reply clears the token and the
    request is retried once with a fresh one.

    Args:
        coordinator: Source of tokens
        token_type: Authorization scheme
        skip_urls: URLs that are never authenticated
    """

    def __init__(
        self,
        coordinator: TokenCoordinator,
        token_type: str = "Bearer",
        skip_urls: tuple[str, ...] = (),
    ):
        self.coordinator = coordinator
        self.token_type = token_type
        self.skip_urls = {url for url in skip_urls if url}

    def _skips(self, request: httpx.Request) -> bool:
        return str(request.url) in self.skip_urls

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if self._skips(request):
            yield request
            return

        token = await self.coordinator.get_token()
        request.headers["Authorization"] = f"{self.token_type} {token}"
        response = yield request

        if response.status_code == 401:
            logger.info(f"Received 401 from {request.url}, refreshing token")
            self.coordinator.clear_token()
            token = await self.coordinator.get_token()
            request.headers["Authorization"] = f"{self.token_type} {token}"
            yield request

    def sync_auth_flow(self, request: httpx.Request):
        raise RuntimeError("TokenAuth only supports httpx.AsyncClient")


class AuthManager:
    """Login flow, token coordinator and request auth for one test run.

    Args:
        config: Flow selection, credentials and token budgets
        client: Client the login flow sends its requests with
        login_fn: Login function taking the client. Required for `custom`,
            overrides the built-in flow otherwise.
        sleep: Async sleep used between failed login attempts
        clock: Returns the current time in epoch seconds

    Raises:
        ConfigurationError: If `custom` auth is configured without a login_fn
    """

    def __init__(
        self,
        config: AuthConfig,
        client: httpx.AsyncClient,
        login_fn: CustomLoginFunc | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        if login_fn is None:
            if config.type == AuthType.CUSTOM:
                raise ConfigurationError(
                    "Custom authentication requires a login_fn function"
                )
            flow = partial(LOGIN_FLOWS[config.type], client, config)
        else:
            flow = partial(login_fn, client)

        self.config = config
        self.client = client
        self.coordinator = TokenCoordinator(
            flow, config=config.token, sleep=sleep, clock=clock
        )
        self.auth = TokenAuth(
            self.coordinator,
            token_type=config.token_type,
            skip_urls=(config.url, config.login_page_url, config.form_action_url),
        )

    async def get_token(self) -> str:
        return await self.coordinator.get_token()

    async def refresh_token(self) -> str:
        return await self.coordinator.refresh_token()

    def set_token(self, value: str, expires_at: float) -> None:
        self.coordinator.set_token(value, expires_at)

    def clear_token(self) -> None:
        self.coordinator.clear_token()

    def is_authenticated(self) -> bool:
        return self.coordinator.is_valid()

    async def get_auth_headers(self) -> dict[str, str]:
        """Return the Authorization header for callers not using `auth`."""
        token = await self.get_token()
        return {"Authorization": f"{self.config.token_type} {token}"}


def create_auth_manager(
    config: AuthConfig,
    client: httpx.AsyncClient,
    login_fn: CustomLoginFunc | None = None,
) -> AuthManager:
    """Create an AuthManager for the flow named by `config.type`."""
    manager = AuthManager(config, client, login_fn=login_fn)
    logger.debug(f"Created {config.type} auth manager")
    return manager
