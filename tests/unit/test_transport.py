# PATH: tests/unit/test_transport.py
"""
Tests for chains/transport.py using httpx.MockTransport.
"""

import base64
import json

import httpx
import pytest

from chains.transport import RPCTransport, build_request
from core.constants import AuthType, ErrorCode
from core.exceptions import TransportError
from core.models import Provider


def _transport(handler) -> RPCTransport:
    return RPCTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestBuildRequest:

    def test_payload_shape(self):
        provider = Provider("p", "https://rpc.example.com/v1")

        url, payload, auth = build_request(provider, "eth_getBalance", ("0xabc", "latest"), request_id=7)

        assert str(url) == "https://rpc.example.com/v1"
        assert payload == {"jsonrpc": "2.0", "method": "eth_getBalance", "params": ["0xabc", "latest"], "id": 7}
        assert auth is None

    def test_basic_auth(self):
        provider = Provider("p", "https://rpc.example.com", auth_type=AuthType.BASIC,
                            auth_login="user", auth_password="secret")

        _, _, auth = build_request(provider, "eth_chainId", ())

        assert auth == ("user", "secret")

    def test_token_auth_replaces_query(self):
        provider = Provider("p", "https://rpc.example.com/v2?old=1", auth_type=AuthType.TOKEN,
                            auth_token="apikey=abc123")

        url, _, auth = build_request(provider, "eth_chainId", ())

        assert url.query == b"apikey=abc123"
        assert url.path == "/v2"
        assert auth is None


class TestRPCTransport:

    @pytest.mark.asyncio
    async def test_success_returns_raw_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["method"] = request.method
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

        transport = _transport(handler)
        outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_blockNumber", [], 1.0)
        await transport.close()

        assert outcome.success
        assert json.loads(outcome.response)["result"] == "0x10"
        assert outcome.error is None
        assert seen["method"] == "POST"
        assert seen["body"]["jsonrpc"] == "2.0"
        assert seen["body"]["method"] == "eth_blockNumber"
        assert seen["body"]["params"] == []

    @pytest.mark.asyncio
    async def test_basic_auth_header_sent(self):
        seen = {}

        def handler(request):
            seen["authorization"] = request.headers.get("authorization")
            return httpx.Response(200, json={"result": "0x1"})

        provider = Provider("p", "https://rpc.example.com", auth_type=AuthType.BASIC,
                            auth_login="user", auth_password="secret")
        async with _transport(handler) as transport:
            outcome = await transport.invoke(provider, "eth_chainId", [], 1.0)

        assert outcome.success
        expected = "Basic " + base64.b64encode(b"user:secret").decode()
        assert seen["authorization"] == expected

    @pytest.mark.asyncio
    async def test_token_sent_as_query(self):
        seen = {}

        def handler(request):
            seen["query"] = request.url.query
            return httpx.Response(200, json={"result": "0x1"})

        provider = Provider("p", "https://rpc.example.com", auth_type=AuthType.TOKEN, auth_token="key=xyz")
        async with _transport(handler) as transport:
            await transport.invoke(provider, "eth_chainId", [], 1.0)

        assert seen["query"] == b"key=xyz"

    @pytest.mark.asyncio
    async def test_non_2xx_is_failure(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_chainId", [], 1.0)

        assert not outcome.success
        assert outcome.response == ""
        assert isinstance(outcome.error, TransportError)
        assert outcome.error.code == ErrorCode.TRANSPORT_BAD_STATUS
        assert outcome.error.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_malformed_body_is_failure(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_chainId", [], 1.0)

        assert not outcome.success
        assert outcome.error.code == ErrorCode.TRANSPORT_BAD_BODY

    @pytest.mark.asyncio
    async def test_deeply_nested_body_is_failure(self):
        def handler(request):
            return httpx.Response(200, text="[" * 100_000 + "]" * 100_000)

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_chainId", [], 1.0)

        assert not outcome.success
        assert outcome.error.code == ErrorCode.TRANSPORT_BAD_BODY

    @pytest.mark.asyncio
    async def test_jsonrpc_error_body_is_transport_success(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}})

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_foo", [], 1.0)

        assert outcome.success
        assert "nope" in outcome.response

    @pytest.mark.asyncio
    async def test_network_error_is_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_chainId", [], 1.0)

        assert not outcome.success
        assert outcome.error.code == ErrorCode.TRANSPORT_ERROR
        assert "connection refused" in str(outcome.error)

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _transport(handler) as transport:
            outcome = await transport.invoke(Provider("p", "https://rpc.example.com"), "eth_chainId", [], 0.5)

        assert not outcome.success
        assert outcome.error.code == ErrorCode.TRANSPORT_TIMEOUT

    @pytest.mark.asyncio
    async def test_stats_tracked(self):
        responses = iter([httpx.Response(200, json={"result": "0x1"}), httpx.Response(500)])

        def handler(request):
            return next(responses)

        provider = Provider("p", "https://rpc.example.com")
        async with _transport(handler) as transport:
            await transport.invoke(provider, "eth_chainId", [], 1.0)
            await transport.invoke(provider, "eth_chainId", [], 1.0)
            summary = transport.get_stats_summary()

        stats = summary["https://rpc.example.com"]
        assert stats["total_requests"] == 2
        assert stats["success_rate"] == 0.5
        assert "500" in stats["last_error"]

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        transport = RPCTransport(client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()
