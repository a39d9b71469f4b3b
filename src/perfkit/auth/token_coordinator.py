# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Single-flight bearer token lifecycle for one test run.

Concurrent callers that find no valid token share one refresh: the first
caller runs the login function, the others wait on the refresh's completion
event (bounded by `wait_poll_interval * wait_max_polls`) and observe the same
token or the same failure.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from perfkit.common.config import TokenCoordinatorConfig
from perfkit.common.constants import DEFAULT_TOKEN_LIFETIME_SECONDS
from perfkit.common.enums import TokenState
from perfkit.common.exceptions import (
    AuthenticationError,
    LoginFlowError,
    TokenAcquisitionFailed,
    TokenRefreshTimeout,
)

logger = logging.getLogger(__name__)

__all__ = [
    "AuthToken",
    "LoginFunc",
    "LoginResult",
    "TokenCoordinator",
]


@dataclass(frozen=True, slots=True)
class LoginResult:
    """What a login function returns.

    Attributes:
        token: Bearer credential. An empty token counts as a failed login.
        expires_at: Absolute expiry in epoch seconds
        refresh_token: Refresh credential, when the server issues one
        token_type: Token type reported by the server
        scope: Granted scope
    """

    token: str | None
    expires_at: float | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    scope: str | None = None


@dataclass(frozen=True, slots=True)
class AuthToken:
    """An installed bearer credential and its absolute expiry (epoch seconds)."""

    value: str
    expires_at: float

    def is_valid(self, now: float, expiry_buffer: float) -> bool:
        return now < self.expires_at - expiry_buffer


LoginFunc = Callable[[], Awaitable[LoginResult]]
SleepFunc = Callable[[float], Awaitable[Any]]


class _Refresh:
    """One in-flight refresh and its outcome, shared with joining callers."""

    __slots__ = ("done", "token", "error")

    def __init__(self) -> None:
        self.done = asyncio.Event()
        self.token: AuthToken | None = None
        self.error: TokenAcquisitionFailed | None = None


class TokenCoordinator:
    """Maintains one bearer token, refreshing it lazily with bounded retries.

    Args:
        login_fn: Async callable returning a LoginResult or raising
        config: Expiry buffer and retry/wait budgets
        sleep: Async sleep used between failed login attempts
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        login_fn: LoginFunc,
        config: TokenCoordinatorConfig | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.login_fn = login_fn
        self.config = config or TokenCoordinatorConfig()
        self._sleep = sleep
        self._clock = clock
        self._token: AuthToken | None = None
        self._refresh: _Refresh | None = None
        self._failed = False

    @property
    def token(self) -> AuthToken | None:
        return self._token

    @property
    def state(self) -> TokenState:
        if self._refresh is not None:
            return TokenState.REFRESHING
        if self._failed:
            return TokenState.FAILED
        if self._token is None:
            return TokenState.EMPTY
        if self.is_valid():
            return TokenState.VALID
        return TokenState.EXPIRING

    @property
    def is_refreshing(self) -> bool:
        return self._refresh is not None

    def is_valid(self) -> bool:
        """Whether the current token can be served without a refresh."""
        if self._token is None:
            return False
        return self._token.is_valid(self._clock(), self.config.expiry_buffer)

    async def get_token(self) -> str:
        """Return a valid token, refreshing or joining a refresh when needed.

        Raises:
            TokenAcquisitionFailed: The refresh this call ran or joined failed
            TokenRefreshTimeout: Another caller's refresh did not finish in time
        """
        if self.is_valid():
            return self._token.value
        if self._refresh is not None:
            return await self._join(self._refresh)
        return await self.refresh_token()

    async def refresh_token(self) -> str:
        """Acquire a new token, joining the in-flight refresh if there is one.

        Raises:
            TokenAcquisitionFailed: Every login attempt failed
            TokenRefreshTimeout: A joined refresh did not finish in time
        """
        if self._refresh is not None:
            return await self._join(self._refresh)

        refresh = _Refresh()
        self._refresh = refresh
        self._failed = False
        try:
            token = await self._login_with_retries()
        except TokenAcquisitionFailed as e:
            refresh.error = e
            self._failed = True
            raise
        else:
            refresh.token = token
            self._token = token
        finally:
            self._refresh = None
            refresh.done.set()

        return token.value

    async def _login_with_retries(self) -> AuthToken:
        max_attempts = self.config.max_retries
        last_error: BaseException | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                result = await self.login_fn()
                if not result.token:
                    raise LoginFlowError("Login function returned an empty token")
            except Exception as e:
                last_error = e
                if attempt < max_attempts:
                    logger.warning(
                        f"Token refresh failed, retrying ({attempt}/{max_attempts}): {e}"
                    )
                    await self._sleep(self.config.retry_delay)
                continue

            expires_at = result.expires_at
            if expires_at is None:
                expires_at = self._clock() + DEFAULT_TOKEN_LIFETIME_SECONDS
            logger.debug(f"Token acquired on attempt {attempt}, expires at {expires_at}")
            return AuthToken(value=result.token, expires_at=float(expires_at))

        logger.error(f"Failed to refresh token after {max_attempts} attempts: {last_error}")
        raise TokenAcquisitionFailed(max_attempts, last_error)

    async def _join(self, refresh: _Refresh) -> str:
        timeout = self.config.wait_timeout
        try:
            await asyncio.wait_for(refresh.done.wait(), timeout)
        except asyncio.TimeoutError:
            raise TokenRefreshTimeout(timeout) from None

        if refresh.error is not None:
            raise TokenAcquisitionFailed(
                refresh.error.attempts, refresh.error.last_error
            ) from refresh.error
        if refresh.token is None:
            raise AuthenticationError("Token refresh was cancelled before completing")
        return refresh.token.value

    def set_token(self, value: str, expires_at: float) -> None:
        """Install a token manually, e.g. one obtained outside the coordinator."""
        self._token = AuthToken(value=value, expires_at=float(expires_at))
        self._failed = False

    def clear_token(self) -> None:
        """Forget the current token. The next get_token() logs in again."""
        self._token = None
        self._failed = False
