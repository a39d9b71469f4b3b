# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for PerfGrpcClient against an in-process grpc.aio server."""

from contextlib import asynccontextmanager

import grpc
import orjson
import pytest
from grpc_health.v1 import health_pb2

from perfkit.grpc import (
    GrpcMetrics,
    PerfGrpcClient,
    full_method_path,
    serialize_message,
)


async def say(request: bytes, context: grpc.aio.ServicerContext) -> bytes:
    metadata = {key: value for key, value in context.invocation_metadata()}
    context.set_trailing_metadata((("x-served-by", "echo"),))
    return orjson.dumps(
        {
            "echo": request.decode(),
            "authorization": metadata.get("authorization"),
            "team": metadata.get("x-team"),
        }
    )


async def fail(request: bytes, context: grpc.aio.ServicerContext) -> bytes:
    await context.abort(grpc.StatusCode.NOT_FOUND, "no such order")


async def count(request: bytes, context: grpc.aio.ServicerContext):
    for i in range(int(request)):
        yield str(i).encode()


async def check(
    request: health_pb2.HealthCheckRequest, context: grpc.aio.ServicerContext
) -> health_pb2.HealthCheckResponse:
    status = (
        health_pb2.HealthCheckResponse.SERVING
        if request.service in ("", "test.Echo")
        else health_pb2.HealthCheckResponse.SERVICE_UNKNOWN
    )
    return health_pb2.HealthCheckResponse(status=status)


@asynccontextmanager
async def echo_server():
    """Serve the echo and health handlers on a free local port."""
    server = grpc.aio.server()
    server.add_generic_rpc_handlers(
        (
            grpc.method_handlers_generic_handler(
                "test.Echo",
                {
                    "Say": grpc.unary_unary_rpc_method_handler(say),
                    "Fail": grpc.unary_unary_rpc_method_handler(fail),
                    "Count": grpc.unary_stream_rpc_method_handler(count),
                },
            ),
            grpc.method_handlers_generic_handler(
                "grpc.health.v1.Health",
                {
                    "Check": grpc.unary_unary_rpc_method_handler(
                        check,
                        request_deserializer=health_pb2.HealthCheckRequest.FromString,
                        response_serializer=health_pb2.HealthCheckResponse.SerializeToString,
                    ),
                },
            ),
        )
    )
    port = server.add_insecure_port("127.0.0.1:0")
    await server.start()
    try:
        yield f"127.0.0.1:{port}"
    finally:
        await server.stop(None)


class CountingTokenSource:
    def __init__(self) -> None:
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        return f"token-{self.calls}"


class BrokenChannel:
    """Channel whose calls fail before reaching the network."""

    def unary_unary(self, *args, **kwargs):
        def call(*args, **kwargs):
            raise RuntimeError("channel closed")

        return call

    async def close(self) -> None:
        raise AssertionError("a borrowed channel must not be closed")


@pytest.mark.parametrize(
    "method,expected",
    [("test.Echo/Say", "/test.Echo/Say"), ("/test.Echo/Say", "/test.Echo/Say")],
)
def test_full_method_path(method, expected):
    assert full_method_path(method) == expected


class TestSerializeMessage:
    def test_bytes_pass_through(self):
        assert serialize_message(b"\x01\x02") == b"\x01\x02"

    def test_protobuf_messages_are_encoded(self):
        request = health_pb2.HealthCheckRequest(service="test.Echo")
        assert serialize_message(request) == request.SerializeToString()

    def test_other_types_are_rejected(self):
        with pytest.raises(TypeError, match="request_serializer"):
            serialize_message({"id": 1})


class TestPerfGrpcClient:
    @pytest.mark.asyncio
    async def test_unary_call(self):
        async with echo_server() as address:
            async with PerfGrpcClient(address, plaintext=True) as client:
                response = await client.invoke(
                    "test.Echo/Say", b"hello", response_deserializer=orjson.loads
                )

        assert response.ok
        assert response.status == grpc.StatusCode.OK
        assert response.method == "/test.Echo/Say"
        assert response.message["echo"] == "hello"
        assert response.message["authorization"] is None
        assert response.trailers["x-served-by"] == "echo"
        assert response.duration_ms > 0
        assert client.metrics.total_requests == 1
        assert client.metrics.failed_requests == 0

    @pytest.mark.asyncio
    async def test_non_ok_status_is_returned_and_recorded(self, caplog):
        metrics = GrpcMetrics()
        async with echo_server() as address:
            async with PerfGrpcClient(address, plaintext=True, metrics=metrics) as client:
                response = await client.invoke("test.Echo/Fail")

        assert not response.ok
        assert response.status == grpc.StatusCode.NOT_FOUND
        assert response.error == "no such order"
        assert response.message is None
        assert "status=NOT_FOUND" in caplog.text

        snapshot = metrics.snapshot()
        assert snapshot["grpc_req_failed"]["values"] == {"rate": 1.0, "passes": 1, "fails": 0}
        assert snapshot["grpc_status_5"]["values"]["count"] == 1
        assert snapshot["endpoint_Echo_Fail_error_rate"]["values"]["rate"] == 1.0

    @pytest.mark.asyncio
    async def test_static_token_and_default_metadata(self):
        async with echo_server() as address:
            async with PerfGrpcClient(
                address,
                plaintext=True,
                token="static",
                default_metadata={"X-Team": "payments"},
            ) as client:
                response = await client.invoke(
                    "test.Echo/Say", b"hi", response_deserializer=orjson.loads
                )

        assert response.message["authorization"] == "Bearer static"
        assert response.message["team"] == "payments"

    @pytest.mark.asyncio
    async def test_token_source_is_asked_per_call(self):
        tokens = CountingTokenSource()
        async with echo_server() as address:
            async with PerfGrpcClient(
                address, plaintext=True, token="ignored", token_source=tokens
            ) as client:
                first = await client.invoke(
                    "test.Echo/Say", b"1", response_deserializer=orjson.loads
                )
                second = await client.invoke(
                    "test.Echo/Say", b"2", response_deserializer=orjson.loads
                )

        assert first.message["authorization"] == "Bearer token-1"
        assert second.message["authorization"] == "Bearer token-2"

    @pytest.mark.asyncio
    async def test_explicit_authorization_wins(self):
        tokens = CountingTokenSource()
        async with echo_server() as address:
            async with PerfGrpcClient(address, plaintext=True, token_source=tokens) as client:
                response = await client.invoke(
                    "test.Echo/Say",
                    b"hi",
                    metadata={"Authorization": "Basic abc"},
                    response_deserializer=orjson.loads,
                )

        assert response.message["authorization"] == "Basic abc"
        assert tokens.calls == 0

    @pytest.mark.asyncio
    async def test_server_streaming(self):
        async with echo_server() as address:
            async with PerfGrpcClient(address, plaintext=True) as client:
                response = await client.invoke_stream(
                    "test.Echo/Count", b"3", response_deserializer=bytes.decode
                )

        assert response.ok
        assert response.message == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_endpoint_tag_names_the_metrics(self):
        async with echo_server() as address:
            async with PerfGrpcClient(
                address, plaintext=True, tags={"endpoint": "greeting"}
            ) as client:
                await client.invoke("test.Echo/Say", b"hi")

        assert "endpoint_greeting_duration" in client.metrics.snapshot()

    @pytest.mark.asyncio
    async def test_healthcheck(self):
        async with echo_server() as address:
            async with PerfGrpcClient(address, plaintext=True) as client:
                serving = await client.healthcheck()
                unknown = await client.healthcheck("other.Service")

        assert serving.message.status == health_pb2.HealthCheckResponse.SERVING
        assert unknown.message.status == health_pb2.HealthCheckResponse.SERVICE_UNKNOWN

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_recorded_and_raised(self, caplog):
        client = PerfGrpcClient(channel=BrokenChannel())

        with pytest.raises(RuntimeError, match="channel closed"):
            await client.invoke("test.Echo/Say")
        await client.close()

        assert client.connected
        assert client.metrics.failed_requests == 1
        assert client.metrics.snapshot()["grpc_status_2"]["values"]["count"] == 1
        assert "gRPC invoke failed" in caplog.text

    def test_channel_is_opened_lazily(self):
        client = PerfGrpcClient("localhost:1", plaintext=True)
        assert not client.connected

    def test_config_and_metadata_updates(self):
        client = PerfGrpcClient("orders:443", token="a", tags={"service": "orders"})
        client.set_token("b")
        client.add_default_metadata({"x-team": "payments"})

        assert client.get_config() == {
            "address": "orders:443",
            "plaintext": False,
            "default_metadata": {"x-team": "payments"},
            "token": "b",
            "tags": {"service": "orders"},
            "timeout": 60.0,
        }
