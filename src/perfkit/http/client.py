# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""httpx client wrapper with request logging and metrics recording."""

import logging
import time
from typing import Any

import httpx

from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.http.metrics import HttpMetrics, extract_endpoint

logger = logging.getLogger(__name__)

__all__ = [
    "PerfHttpClient",
]

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
DEFAULT_TIMEOUT_SECONDS = 30.0

# Response bodies longer than this are truncated in logs.
_MAX_LOGGED_BODY = 1000


def _truncate(text: str) -> str:
    if len(text) > _MAX_LOGGED_BODY:
        return text[:_MAX_LOGGED_BODY] + "..."
    return text


class PerfHttpClient:
    """Async HTTP client for test scenarios.

    Relative paths are joined to `base_url`, absolute URLs pass through.
    Default headers and tags apply to every request, and a static bearer
    token is added unless the request sets its own Authorization header.
    Every response is recorded in `metrics`.

    Args:
        base_url: Prefix for relative request paths
        default_headers: Headers sent with every request
        token: Static bearer token
        tags: Default tags. `endpoint` or `name` picks the metrics endpoint.
        timeout: Default per-request timeout in seconds
        auth: httpx auth applied to every request, e.g. AuthManager.auth
        metrics: Metrics context to record into (a new one by default)
        client: Underlying httpx client (created and owned when omitted)
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: dict[str, str] | None = None,
        token: str | None = None,
        tags: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        auth: httpx.Auth | None = None,
        metrics: HttpMetrics | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.default_headers = dict(default_headers or {})
        self.token = token
        self.tags = dict(tags or {})
        self.timeout = timeout
        self.auth = auth
        self.metrics = metrics or HttpMetrics()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def __aenter__(self) -> "PerfHttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    def _build_headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        merged = {**self.default_headers, **(headers or {})}
        has_auth = any(key.lower() == "authorization" for key in merged)
        if self.token and not has_auth:
            merged["Authorization"] = f"Bearer {self.token}"
        return merged

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        tags: dict[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and record it.

        Args:
            method: HTTP method, one of SUPPORTED_METHODS
            path: Path relative to `base_url`, or an absolute URL
            headers: Per-request headers, merged over the defaults
            tags: Per-request tags, merged over the defaults
            timeout: Per-request timeout in seconds
            **kwargs: Passed to httpx (`json`, `data`, `content`, `params`, ...)

        Returns:
            The httpx response

        Raises:
            ValueError: For an unsupported method
            httpx.HTTPError: When no response was received
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = self.build_url(path)
        request_tags = {**self.tags, **(tags or {}), "url": url, "method": method}
        endpoint = (
            request_tags.get("endpoint")
            or request_tags.get("name")
            or extract_endpoint(url)
        )
        if self.auth is not None:
            kwargs["auth"] = self.auth

        logger.debug(f"{method} {url}")
        start = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                url,
                headers=self._build_headers(headers),
                timeout=self.timeout if timeout is None else timeout,
                **kwargs,
            )
        except httpx.HTTPError as e:
            elapsed_ms = (time.perf_counter() - start) * MILLIS_PER_SECOND
            self.metrics.record(elapsed_ms, 0, endpoint)
            logger.error(f"{method} {url} failed: {e!r}")
            raise
        elapsed_ms = (time.perf_counter() - start) * MILLIS_PER_SECOND

        if response.status_code >= 400:
            logger.warning(
                f"{response.status_code} {method} {url} ({elapsed_ms:.2f}ms): "
                f"{_truncate(response.text)}"
            )
        else:
            logger.debug(f"{response.status_code} {method} {url} ({elapsed_ms:.2f}ms)")

        self.metrics.record(elapsed_ms, response.status_code, endpoint)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def head(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", path, **kwargs)

    async def options(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("OPTIONS", path, **kwargs)

    def set_token(self, token: str | None) -> None:
        self.token = token

    def add_default_headers(self, headers: dict[str, str]) -> None:
        self.default_headers.update(headers)

    def get_config(self) -> dict[str, Any]:
        """Return a copy of the client's settings."""
        return {
            "base_url": self.base_url,
            "default_headers": dict(self.default_headers),
            "token": self.token,
            "tags": dict(self.tags),
            "timeout": self.timeout,
        }
