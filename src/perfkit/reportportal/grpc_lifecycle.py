# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Launch/suite/test lifecycle for gRPC endpoint tests tracked in ReportPortal."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from perfkit.common.enums import RpItemStatus
from perfkit.grpc.client import Deserializer, GrpcResponse, PerfGrpcClient, Serializer
from perfkit.reportportal.lifecycle import BaseLifecycleManager

logger = logging.getLogger(__name__)

__all__ = [
    "GrpcEndpoint",
    "GrpcEndpointCheck",
    "GrpcTestLifecycleManager",
    "default_grpc_checks",
]

GrpcEndpointCheck = Callable[[GrpcResponse | None], bool]


@dataclass(frozen=True)
class GrpcEndpoint:
    """One gRPC method to exercise as a ReportPortal test item."""

    method: str
    request: Any = b""
    description: str | None = None
    request_serializer: Serializer | None = None
    response_deserializer: Deserializer | None = None


def default_grpc_checks(name: str) -> dict[str, GrpcEndpointCheck]:
    return {
        f"{name} works": lambda r: r is not None,
        f"{name} returns OK": lambda r: r is not None and r.ok,
    }


class GrpcTestLifecycleManager(BaseLifecycleManager):
    """Wraps gRPC endpoint tests in a ReportPortal launch and suite.

    A call that cannot be made at all (connection or serializer failure) is
    logged and counts as a failed test, the same as a call that returns a
    non-OK status.
    """

    async def _call(
        self, name: str, endpoint: GrpcEndpoint, grpc_client: PerfGrpcClient
    ) -> GrpcResponse | None:
        try:
            return await grpc_client.invoke(
                endpoint.method,
                endpoint.request,
                request_serializer=endpoint.request_serializer,
                response_deserializer=endpoint.response_deserializer,
            )
        except Exception:
            logger.exception(f"gRPC request failed for {name} ({endpoint.method})")
            return None

    async def test_grpc_endpoint(
        self,
        name: str,
        endpoint: GrpcEndpoint,
        grpc_client: PerfGrpcClient,
        checks: Mapping[str, GrpcEndpointCheck] | None = None,
    ) -> bool:
        """Invoke one gRPC method as a ReportPortal test item.

        Args:
            name: Endpoint name, used for the item and check names
            endpoint: Method and request to send
            grpc_client: Client making the call
            checks: Extra checks merged over the defaults (response, OK status)

        Returns:
            Whether every check passed
        """
        test_id = await self.client.start_test(
            self.suite_id, f"{name} Test", endpoint.description or f"Testing {name}"
        )
        response = await self._call(name, endpoint, grpc_client)

        all_checks = {**default_grpc_checks(name), **(checks or {})}
        failed_checks = [
            check_name for check_name, check in all_checks.items() if not check(response)
        ]
        status = RpItemStatus.FAILED if failed_checks else RpItemStatus.PASSED
        if failed_checks:
            logger.warning(f"{name}: failed checks: {', '.join(failed_checks)}")

        call_status = response.status.name if response is not None else "UNAVAILABLE"
        await self._finish_test(
            test_id,
            status,
            f"{name} gRPC call - Status: {call_status}, "
            f"Response: {'Failed' if failed_checks else 'Success'}",
        )
        return not failed_checks

    async def test_grpc_endpoints(
        self,
        endpoints: Mapping[str, GrpcEndpoint],
        grpc_client: PerfGrpcClient,
        checks: Mapping[str, GrpcEndpointCheck] | None = None,
    ) -> dict[str, bool]:
        """Run `test_grpc_endpoint` for every named endpoint, in order."""
        return {
            name: await self.test_grpc_endpoint(name, endpoint, grpc_client, checks)
            for name, endpoint in endpoints.items()
        }
