# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for single-flight token refresh."""

import asyncio

import pytest

from perfkit.auth.token_coordinator import AuthToken, LoginResult, TokenCoordinator
from perfkit.common.config import TokenCoordinatorConfig
from perfkit.common.enums import TokenState
from perfkit.common.exceptions import TokenAcquisitionFailed, TokenRefreshTimeout

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

NOW = 1_700_000_000.0


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class ScriptedLogin:
    """Login function that fails a set number of times before succeeding.

    Each call yields to the event loop first, so concurrent callers really
    overlap with the in-flight refresh.
    """

    def __init__(self, failures: int = 0, lifetime: float = 3600.0, clock=None):
        self.failures = failures
        self.lifetime = lifetime
        self.clock = clock or FakeClock()
        self.calls = 0

    async def __call__(self) -> LoginResult:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError(f"login failed #{self.calls}")
        return LoginResult(
            token=f"token-{self.calls}", expires_at=self.clock() + self.lifetime
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> TokenCoordinatorConfig:
    return TokenCoordinatorConfig(
        expiry_buffer=60, retry_delay=5, max_retries=3, wait_poll_interval=0.01, wait_max_polls=10
    )


@pytest.fixture
def make_coordinator(config, clock, recording_sleep):
    def _make(login_fn, **overrides) -> TokenCoordinator:
        cfg = config.model_copy(update=overrides) if overrides else config
        return TokenCoordinator(login_fn, cfg, sleep=recording_sleep, clock=clock)

    return _make


# -----------------------------------------------------------------------------
# Tests
# -----------------------------------------------------------------------------


class TestAuthToken:
    def test_valid_outside_buffer(self):
        assert AuthToken("t", NOW + 61).is_valid(NOW, 60)

    def test_invalid_inside_buffer(self):
        assert not AuthToken("t", NOW + 30).is_valid(NOW, 60)
        assert not AuthToken("t", NOW + 60).is_valid(NOW, 60)


class TestGetToken:
    @pytest.mark.asyncio
    async def test_first_call_logs_in(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)

        assert coordinator.state == TokenState.EMPTY
        assert await coordinator.get_token() == "token-1"
        assert coordinator.state == TokenState.VALID
        assert coordinator.token.expires_at == NOW + 3600

    @pytest.mark.asyncio
    async def test_valid_token_is_reused(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)

        await coordinator.get_token()
        await coordinator.get_token()

        assert login.calls == 1

    @pytest.mark.asyncio
    async def test_token_inside_expiry_buffer_is_refreshed(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)
        coordinator.set_token("old", NOW + 30)

        assert not coordinator.is_valid()
        assert coordinator.state == TokenState.EXPIRING
        assert await coordinator.get_token() == "token-1"

    @pytest.mark.asyncio
    async def test_expiry_after_clock_advances(self, make_coordinator, clock):
        login = ScriptedLogin(lifetime=120, clock=clock)
        coordinator = make_coordinator(login)

        assert await coordinator.get_token() == "token-1"
        clock.now += 61
        assert await coordinator.get_token() == "token-2"

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)

        tokens = await asyncio.gather(*(coordinator.get_token() for _ in range(20)))

        assert login.calls == 1
        assert set(tokens) == {"token-1"}
        assert not coordinator.is_refreshing

    @pytest.mark.asyncio
    async def test_missing_expiry_defaults_to_one_hour(self, make_coordinator, clock):
        async def login():
            return LoginResult(token="abc")

        coordinator = make_coordinator(login)
        await coordinator.get_token()

        assert coordinator.token.expires_at == NOW + 3600


class TestRefreshRetries:
    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(
        self, make_coordinator, clock, recording_sleep
    ):
        login = ScriptedLogin(failures=2, clock=clock)
        coordinator = make_coordinator(login)

        assert await coordinator.get_token() == "token-3"
        assert login.calls == 3
        assert recording_sleep.delays == [5, 5]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_and_sets_failed_state(
        self, make_coordinator, clock, recording_sleep
    ):
        login = ScriptedLogin(failures=3, clock=clock)
        coordinator = make_coordinator(login)

        with pytest.raises(TokenAcquisitionFailed) as exc_info:
            await coordinator.get_token()

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert coordinator.state == TokenState.FAILED
        assert coordinator.token is None
        # No sleep after the final attempt.
        assert recording_sleep.delays == [5, 5]

    @pytest.mark.asyncio
    async def test_next_call_after_failure_starts_fresh(self, make_coordinator, clock):
        login = ScriptedLogin(failures=3, clock=clock)
        coordinator = make_coordinator(login)

        with pytest.raises(TokenAcquisitionFailed):
            await coordinator.get_token()

        assert await coordinator.get_token() == "token-4"
        assert coordinator.state == TokenState.VALID

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_token(self, make_coordinator, clock):
        login = ScriptedLogin(failures=3, clock=clock)
        coordinator = make_coordinator(login)
        coordinator.set_token("old", NOW + 10)

        with pytest.raises(TokenAcquisitionFailed):
            await coordinator.get_token()

        assert coordinator.token.value == "old"

    @pytest.mark.asyncio
    async def test_empty_token_counts_as_failure(self, make_coordinator):
        calls = 0

        async def login():
            nonlocal calls
            calls += 1
            return LoginResult(token=None if calls == 1 else "good")

        coordinator = make_coordinator(login)
        assert await coordinator.get_token() == "good"
        assert calls == 2

    @pytest.mark.asyncio
    async def test_waiters_share_the_failure(self, make_coordinator, clock):
        login = ScriptedLogin(failures=3, clock=clock)
        coordinator = make_coordinator(login)

        results = await asyncio.gather(
            *(coordinator.get_token() for _ in range(5)), return_exceptions=True
        )

        assert login.calls == 3
        assert all(isinstance(r, TokenAcquisitionFailed) for r in results)


class TestRefreshWaiting:
    @pytest.mark.asyncio
    async def test_waiter_times_out_on_stuck_refresh(self, make_coordinator):
        release = asyncio.Event()

        async def slow_login():
            await release.wait()
            return LoginResult(token="late", expires_at=NOW + 3600)

        coordinator = make_coordinator(slow_login)
        refresher = asyncio.create_task(coordinator.get_token())
        await asyncio.sleep(0)
        assert coordinator.state == TokenState.REFRESHING

        with pytest.raises(TokenRefreshTimeout):
            await coordinator.get_token()

        release.set()
        assert await refresher == "late"
        assert coordinator.state == TokenState.VALID

    @pytest.mark.asyncio
    async def test_refresh_token_joins_in_flight_refresh(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)

        first, second = await asyncio.gather(
            coordinator.refresh_token(), coordinator.refresh_token()
        )

        assert first == second == "token-1"
        assert login.calls == 1

    @pytest.mark.asyncio
    async def test_explicit_refresh_replaces_valid_token(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)

        await coordinator.get_token()
        assert await coordinator.refresh_token() == "token-2"


class TestManualTokens:
    def test_set_token(self, make_coordinator):
        coordinator = make_coordinator(ScriptedLogin())
        coordinator.set_token("manual", NOW + 3600)

        assert coordinator.is_valid()
        assert coordinator.token == AuthToken("manual", NOW + 3600)

    @pytest.mark.asyncio
    async def test_clear_token_forces_login(self, make_coordinator, clock):
        login = ScriptedLogin(clock=clock)
        coordinator = make_coordinator(login)
        coordinator.set_token("manual", NOW + 3600)

        coordinator.clear_token()

        assert coordinator.state == TokenState.EMPTY
        assert await coordinator.get_token() == "token-1"

    @pytest.mark.asyncio
    async def test_set_token_clears_failed_state(self, make_coordinator, clock):
        coordinator = make_coordinator(ScriptedLogin(failures=3, clock=clock))
        with pytest.raises(TokenAcquisitionFailed):
            await coordinator.get_token()

        coordinator.set_token("manual", NOW + 3600)
        assert coordinator.state == TokenState.VALID
