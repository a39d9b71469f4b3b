# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""HTTP transport used by ResultReporter to reach the collector."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from perfkit.common.exceptions import ReportTransportError

__all__ = [
    "HttpxReportTransport",
    "ReportTransport",
    "TransportResponse",
]


@dataclass(frozen=True)
class TransportResponse:
    """Status and body of one collector response."""

    status_code: int
    body: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


@runtime_checkable
class ReportTransport(Protocol):
    """Sends one POST request and returns the response.

    Implementations raise ReportTransportError when no response was received.
    """

    async def post(
        self, url: str, content: bytes, headers: dict[str, str], timeout: float
    ) -> TransportResponse: ...


class HttpxReportTransport:
    """ReportTransport backed by an httpx.AsyncClient.

    Args:
        client: Client to send requests with. When omitted, a short-lived client
            is created for every request.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    async def post(
        self, url: str, content: bytes, headers: dict[str, str], timeout: float
    ) -> TransportResponse:
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, content=content, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, content=content, headers=headers, timeout=timeout
                    )
        except httpx.HTTPError as e:
            raise ReportTransportError(
                f"{e.__class__.__name__} while posting to {url}: {e}"
            ) from e
        return TransportResponse(status_code=response.status_code, body=response.text)
