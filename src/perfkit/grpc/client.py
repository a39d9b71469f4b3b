# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""grpc.aio client wrapper with call logging and metrics recording."""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import grpc
from grpc_health.v1 import health_pb2

from perfkit.common.config.config_defaults import GrpcDefaults
from perfkit.common.constants import MILLIS_PER_SECOND
from perfkit.grpc.metrics import GrpcMetrics

logger = logging.getLogger(__name__)

__all__ = [
    "HEALTH_CHECK_METHOD",
    "Deserializer",
    "GrpcResponse",
    "PerfGrpcClient",
    "Serializer",
    "TokenSource",
    "full_method_path",
    "serialize_message",
]

HEALTH_CHECK_METHOD = "/grpc.health.v1.Health/Check"

Serializer = Callable[[Any], bytes]
Deserializer = Callable[[bytes], Any]

# Messages longer than this are truncated in logs.
_MAX_LOGGED_MESSAGE = 1000


class TokenSource(Protocol):
    """Anything with an async `get_token`, such as TokenCoordinator or AuthManager."""

    async def get_token(self) -> str: ...


def full_method_path(method: str) -> str:
    """Normalize `pkg.Service/Method` to the `/pkg.Service/Method` wire path."""
    return method if method.startswith("/") else f"/{method}"


def serialize_message(message: Any) -> bytes:
    """Default request serializer: bytes pass through, protobuf messages are encoded.

    Raises:
        TypeError: For anything else. Pass a `request_serializer` for such requests.
    """
    if isinstance(message, bytes):
        return message
    serialize = getattr(message, "SerializeToString", None)
    if serialize is None:
        raise TypeError(
            f"Cannot serialize {type(message).__name__} for gRPC, pass a request_serializer"
        )
    return serialize()


def _truncate(value: Any) -> str:
    text = repr(value)
    if len(text) > _MAX_LOGGED_MESSAGE:
        return text[:_MAX_LOGGED_MESSAGE] + "..."
    return text


def _metadata_dict(metadata: Iterable[tuple[str, Any]] | None) -> dict[str, Any]:
    if metadata is None:
        return {}
    return {key: value for key, value in metadata}


@dataclass
class GrpcResponse:
    """Outcome of one gRPC call.

    A call that ends in a non-OK status still produces a response, with
    `message` set to None and the status details in `error`.

    Attributes:
        method: Full method path that was called
        status: Final status code
        message: Deserialized response (a list of messages for streaming calls)
        error: Status details for non-OK calls
        headers: Initial metadata sent by the server
        trailers: Trailing metadata sent by the server
        duration_ms: Call duration in milliseconds
    """

    method: str
    status: grpc.StatusCode
    message: Any = None
    error: str | None = None
    headers: dict[str, Any] = field(default_factory=dict)
    trailers: dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == grpc.StatusCode.OK


class PerfGrpcClient:
    """Async gRPC client for test scenarios.

    The channel is opened lazily on the first call. Default metadata and tags
    apply to every call, and a bearer token is sent as `authorization`
    metadata unless the call sets its own. The token comes from `token_source`
    when one is given, otherwise from the static `token`. Every call is
    recorded in `metrics`.

    Requests are serialized with `serialize_message` unless a call passes its
    own serializer. Responses are returned as raw bytes unless a call passes a
    `response_deserializer`, e.g. a generated message's `FromString`.

    Args:
        address: Server address as `host:port`
        plaintext: Use an insecure channel instead of TLS
        credentials: TLS channel credentials (system roots when omitted)
        default_metadata: Metadata sent with every call
        token: Static bearer token
        token_source: Provides a fresh token per call, e.g. a TokenCoordinator
        tags: Default tags. `endpoint` overrides the metrics endpoint name.
        timeout: Default per-call deadline in seconds
        metrics: Metrics context to record into (a new one by default)
        channel: Existing channel to use (created and owned when omitted)
        channel_options: gRPC channel arguments for a created channel
    """

    def __init__(
        self,
        address: str = GrpcDefaults.ADDRESS,
        *,
        plaintext: bool = False,
        credentials: grpc.ChannelCredentials | None = None,
        default_metadata: Mapping[str, str] | None = None,
        token: str | None = None,
        token_source: TokenSource | None = None,
        tags: Mapping[str, str] | None = None,
        timeout: float = GrpcDefaults.TIMEOUT_SECONDS,
        metrics: GrpcMetrics | None = None,
        channel: grpc.aio.Channel | None = None,
        channel_options: Iterable[tuple[str, Any]] = (),
    ):
        self.address = address
        self.plaintext = plaintext
        self.credentials = credentials
        self.default_metadata = dict(default_metadata or {})
        self.token = token
        self.token_source = token_source
        self.tags = dict(tags or {})
        self.timeout = timeout
        self.metrics = metrics or GrpcMetrics()
        self.channel_options = list(channel_options)
        self._owns_channel = channel is None
        self._channel = channel

    async def __aenter__(self) -> "PerfGrpcClient":
        self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._channel is not None

    def connect(self) -> grpc.aio.Channel:
        """Open the channel if it is not open yet and return it."""
        if self._channel is None:
            if self.plaintext:
                self._channel = grpc.aio.insecure_channel(
                    self.address, options=self.channel_options
                )
            else:
                self._channel = grpc.aio.secure_channel(
                    self.address,
                    self.credentials or grpc.ssl_channel_credentials(),
                    options=self.channel_options,
                )
            logger.debug(f"Opened gRPC channel to {self.address}")
        return self._channel

    async def close(self) -> None:
        if self._channel is not None and self._owns_channel:
            await self._channel.close()
            self._channel = None

    async def _build_metadata(
        self, metadata: Mapping[str, str] | None
    ) -> tuple[tuple[str, str], ...]:
        # gRPC metadata keys must be lowercase.
        merged = {
            key.lower(): value
            for key, value in {**self.default_metadata, **(metadata or {})}.items()
        }
        if "authorization" not in merged:
            if self.token_source is not None:
                token = await self.token_source.get_token()
            else:
                token = self.token
            if token:
                merged["authorization"] = f"Bearer {token}"
        return tuple(merged.items())

    async def invoke(
        self,
        method: str,
        request: Any = b"",
        *,
        request_serializer: Serializer | None = None,
        response_deserializer: Deserializer | None = None,
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> GrpcResponse:
        """Make a unary call and record it.

        Args:
            method: `pkg.Service/Method`, with or without the leading slash
            request: Request message
            request_serializer: Encodes the request (`serialize_message` by default)
            response_deserializer: Decodes the response (raw bytes by default)
            metadata: Per-call metadata, merged over the defaults
            tags: Per-call tags, merged over the defaults
            timeout: Per-call deadline in seconds

        Returns:
            The call's GrpcResponse, also for non-OK statuses

        Raises:
            Exception: Anything other than an RPC error, e.g. a serializer failure
        """
        return await self._execute(
            method,
            request,
            streaming=False,
            request_serializer=request_serializer,
            response_deserializer=response_deserializer,
            metadata=metadata,
            tags=tags,
            timeout=timeout,
        )

    async def invoke_stream(
        self,
        method: str,
        request: Any = b"",
        *,
        request_serializer: Serializer | None = None,
        response_deserializer: Deserializer | None = None,
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> GrpcResponse:
        """Make a server-streaming call, collecting every message.

        Takes the same arguments as `invoke`. The response's `message` is the
        list of received messages.
        """
        return await self._execute(
            method,
            request,
            streaming=True,
            request_serializer=request_serializer,
            response_deserializer=response_deserializer,
            metadata=metadata,
            tags=tags,
            timeout=timeout,
        )

    async def _execute(
        self,
        method: str,
        request: Any,
        *,
        streaming: bool,
        request_serializer: Serializer | None,
        response_deserializer: Deserializer | None,
        metadata: Mapping[str, str] | None,
        tags: Mapping[str, str] | None,
        timeout: float | None,
    ) -> GrpcResponse:
        path = full_method_path(method)
        channel = self.connect()
        call_metadata = await self._build_metadata(metadata)
        call_tags = {**self.tags, **(tags or {})}
        endpoint = call_tags.get("endpoint") or path
        kind = "GRPC_STREAM" if streaming else "GRPC"
        deadline = self.timeout if timeout is None else timeout

        logger.debug(f"{kind} {self.address}{path}")
        logger.debug(
            f"Request metadata keys: {[key for key, _ in call_metadata]}, "
            f"message: {_truncate(request)}"
        )

        serializer = request_serializer or serialize_message
        start = time.perf_counter()
        try:
            if streaming:
                call = channel.unary_stream(
                    path,
                    request_serializer=serializer,
                    response_deserializer=response_deserializer,
                )(request, metadata=call_metadata, timeout=deadline)
                message: Any = [item async for item in call]
            else:
                call = channel.unary_unary(
                    path,
                    request_serializer=serializer,
                    response_deserializer=response_deserializer,
                )(request, metadata=call_metadata, timeout=deadline)
                message = await call
            response = GrpcResponse(
                method=path,
                status=await call.code(),
                message=message,
                headers=_metadata_dict(await call.initial_metadata()),
                trailers=_metadata_dict(await call.trailing_metadata()),
            )
        except grpc.aio.AioRpcError as e:
            response = GrpcResponse(
                method=path,
                status=e.code(),
                error=e.details(),
                headers=_metadata_dict(e.initial_metadata()),
                trailers=_metadata_dict(e.trailing_metadata()),
            )
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * MILLIS_PER_SECOND
            self.metrics.record(elapsed_ms, grpc.StatusCode.UNKNOWN, endpoint)
            logger.exception(
                f"gRPC {'stream ' if streaming else ''}invoke failed: {self.address}{path}"
            )
            raise
        response.duration_ms = (time.perf_counter() - start) * MILLIS_PER_SECOND

        if response.ok:
            logger.debug(
                f"gRPC status={response.status.name} {path} ({response.duration_ms:.2f}ms)"
            )
        else:
            logger.error(
                f"gRPC status={response.status.name} {path} "
                f"({response.duration_ms:.2f}ms): {response.error}"
            )
        self.metrics.record(response.duration_ms, response.status, endpoint)
        return response

    async def healthcheck(self, service: str = "", **kwargs: Any) -> GrpcResponse:
        """Call the standard `grpc.health.v1.Health/Check` method.

        Args:
            service: Service to check, empty for the server as a whole
            **kwargs: Passed to `invoke` (`metadata`, `tags`, `timeout`)

        Returns:
            GrpcResponse whose `message` is a `HealthCheckResponse`
        """
        return await self.invoke(
            HEALTH_CHECK_METHOD,
            health_pb2.HealthCheckRequest(service=service),
            response_deserializer=health_pb2.HealthCheckResponse.FromString,
            **kwargs,
        )

    def set_token(self, token: str | None) -> None:
        self.token = token

    def add_default_metadata(self, metadata: Mapping[str, str]) -> None:
        self.default_metadata.update(metadata)

    def get_config(self) -> dict[str, Any]:
        """Return a copy of the client's settings."""
        return {
            "address": self.address,
            "plaintext": self.plaintext,
            "default_metadata": dict(self.default_metadata),
            "token": self.token,
            "tags": dict(self.tags),
            "timeout": self.timeout,
        }
