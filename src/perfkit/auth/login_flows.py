# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Common login flows. Each one performs a single exchange and returns a LoginResult."""

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from html.parser import HTMLParser
from typing import Any

import httpx
import orjson

from perfkit.auth.token_coordinator import LoginResult
from perfkit.common.config import AuthConfig
from perfkit.common.constants import DEFAULT_TOKEN_LIFETIME_SECONDS
from perfkit.common.enums import AuthType
from perfkit.common.exceptions import LoginFlowError

logger = logging.getLogger(__name__)

__all__ = [
    "LOGIN_FLOWS",
    "LoginFlow",
    "basic_auth",
    "calculate_expiry",
    "extract_csrf_token",
    "form_login",
    "oauth2_client_credentials",
    "oauth2_password",
]

LoginFlow = Callable[[httpx.AsyncClient, AuthConfig], Awaitable[LoginResult]]

_CSRF_INPUT_NAMES = ("csrf_token", "_csrf")
_CSRF_META_NAME = "csrf-token"


def calculate_expiry(
    auth_response: Mapping[str, Any], now: float | None = None
) -> float:
    """Return the absolute expiry (epoch seconds) of a token response.

    `expires_in` (relative) wins over `exp` (absolute). Without either the
    token is assumed to live one hour.
    """
    now = time.time() if now is None else now
    expires_in = auth_response.get("expires_in")
    if expires_in:
        return now + float(expires_in)
    exp = auth_response.get("exp")
    if exp:
        return float(exp)
    return now + DEFAULT_TOKEN_LIFETIME_SECONDS


def _json_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _require_token(
    response: httpx.Response, token_key: str, flow_name: str
) -> dict[str, Any]:
    body = _json_body(response)
    if response.status_code != 200 or not body or body.get(token_key) is None:
        raise LoginFlowError(
            f"{flow_name} failed: {response.status_code} {response.text}",
            status_code=response.status_code,
        )
    return body


async def basic_auth(client: httpx.AsyncClient, config: AuthConfig) -> LoginResult:
    """Username/password login posting JSON and reading `token` from the reply."""
    payload = {
        "username": config.username,
        "password": config.password,
        **config.extra_params,
    }
    response = await client.post(config.url, json=payload)
    body = _require_token(response, "token", "Authentication")
    return LoginResult(
        token=body["token"],
        expires_at=calculate_expiry(body),
        refresh_token=body.get("refresh_token"),
    )


def _oauth2_result(body: dict[str, Any]) -> LoginResult:
    return LoginResult(
        token=body["access_token"],
        expires_at=calculate_expiry(body),
        refresh_token=body.get("refresh_token"),
        token_type=body.get("token_type"),
        scope=body.get("scope"),
    )


async def oauth2_client_credentials(
    client: httpx.AsyncClient, config: AuthConfig
) -> LoginResult:
    """OAuth2 client-credentials grant."""
    form = {
        "grant_type": "client_credentials",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "scope": config.scope,
    }
    response = await client.post(config.url, data=form)
    return _oauth2_result(_require_token(response, "access_token", "OAuth authentication"))


async def oauth2_password(client: httpx.AsyncClient, config: AuthConfig) -> LoginResult:
    """OAuth2 resource-owner password grant. `client_secret` is sent only when set."""
    form = {
        "grant_type": "password",
        "client_id": config.client_id,
        "username": config.username,
        "password": config.password,
        "scope": config.scope,
    }
    if config.client_secret:
        form["client_secret"] = config.client_secret
    response = await client.post(config.url, data=form)
    return _oauth2_result(_require_token(response, "access_token", "OAuth authentication"))


class _CsrfTokenParser(HTMLParser):
    """Collects CSRF token candidates from inputs and meta tags."""

    def __init__(self) -> None:
        super().__init__()
        self.inputs: dict[str, str] = {}
        self.meta: str | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attributes = dict(attrs)
        name = attributes.get("name")
        if tag == "input" and name in _CSRF_INPUT_NAMES:
            self.inputs.setdefault(name, attributes.get("value") or "")
        elif tag == "meta" and name == _CSRF_META_NAME and self.meta is None:
            self.meta = attributes.get("content")


def extract_csrf_token(html: str) -> str | None:
    """Find a CSRF token in a login page.

    Looks at `<input name="csrf_token">`, then `<input name="_csrf">`, then
    `<meta name="csrf-token">`. Returns None when no non-empty token exists.
    """
    parser = _CsrfTokenParser()
    parser.feed(html)
    parser.close()
    for name in _CSRF_INPUT_NAMES:
        if parser.inputs.get(name):
            return parser.inputs[name]
    return parser.meta or None


def _extract_form_token(response: httpx.Response) -> LoginResult:
    body = _json_body(response)
    if body and (body.get("token") or body.get("access_token")):
        return LoginResult(
            token=body.get("token") or body.get("access_token"),
            expires_at=calculate_expiry(body),
            refresh_token=body.get("refresh_token"),
        )

    for cookie in response.cookies.jar:
        lowered = cookie.name.lower()
        if "token" in lowered or "auth" in lowered:
            expires_at = cookie.expires or time.time() + DEFAULT_TOKEN_LIFETIME_SECONDS
            return LoginResult(token=cookie.value, expires_at=float(expires_at))

    return LoginResult(token=None, expires_at=None)


async def form_login(client: httpx.AsyncClient, config: AuthConfig) -> LoginResult:
    """Website form login.

    Fetches the login page for a CSRF token, posts the credentials, and reads
    the token from a JSON reply or a token/auth cookie. A reply without a
    token yields an empty LoginResult, which the coordinator treats as a
    failed attempt.
    """
    page = await client.get(config.login_page_url)
    csrf_token = extract_csrf_token(page.text)

    form = {
        config.username_field: config.username,
        config.password_field: config.password,
    }
    if csrf_token:
        form["csrf_token"] = csrf_token
    else:
        logger.debug(f"No CSRF token found on {config.login_page_url}")

    response = await client.post(
        config.form_action_url,
        data=form,
        headers={"Referer": config.login_page_url},
        follow_redirects=False,
    )
    if response.status_code not in (200, 302):
        raise LoginFlowError(
            f"Form login failed: {response.status_code} {response.text}",
            status_code=response.status_code,
        )
    return _extract_form_token(response)


LOGIN_FLOWS: dict[AuthType, LoginFlow] = {
    AuthType.BASIC: basic_auth,
    AuthType.OAUTH2_CLIENT_CREDENTIALS: oauth2_client_credentials,
    AuthType.OAUTH2_PASSWORD: oauth2_password,
    AuthType.FORM: form_login,
}
