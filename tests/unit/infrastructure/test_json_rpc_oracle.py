"""Tests for JsonRpcChainOracle against a mocked JSON-RPC node."""

import json

import httpx
import pytest

from paychat.domain.entities import LookupStatus
from paychat.infrastructure.chain.json_rpc_oracle import JsonRpcChainOracle, is_tx_hash
from tests.conftest import make_tx_hash

RPC_URL = "https://rpc.test"


def _oracle(handler) -> JsonRpcChainOracle:
    return JsonRpcChainOracle(RPC_URL, transport=httpx.MockTransport(handler))


def _rpc_result(result):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return handler


def test_is_tx_hash():
    assert is_tx_hash(make_tx_hash(1))
    assert is_tx_hash("0x" + "AbCdEf" * 10 + "0123")
    assert not is_tx_hash("0x1234")
    assert not is_tx_hash("not-a-hash")
    assert not is_tx_hash(make_tx_hash(1) + "0")


@pytest.mark.asyncio
async def test_receipt_request_shape():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"status": "0x1"}})

    tx_hash = make_tx_hash(7)
    async with _oracle(handler) as oracle:
        lookup = await oracle.get_receipt(tx_hash)

    assert lookup.status is LookupStatus.FOUND
    assert lookup.value == {"status": "0x1"}
    [(url, body)] = seen
    assert httpx.URL(url).host == "rpc.test"
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "eth_getTransactionReceipt"
    assert body["params"] == [tx_hash]


@pytest.mark.asyncio
async def test_transaction_uses_get_by_hash():
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(json.loads(request.content)["method"])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"value": "0x1"}})

    async with _oracle(handler) as oracle:
        lookup = await oracle.get_transaction(make_tx_hash(7))

    assert lookup.found
    assert methods == ["eth_getTransactionByHash"]


@pytest.mark.asyncio
async def test_null_result_is_not_found():
    async with _oracle(_rpc_result(None)) as oracle:
        lookup = await oracle.get_receipt(make_tx_hash(1))

    assert lookup.status is LookupStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_malformed_hash_skips_the_node():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    async with _oracle(handler) as oracle:
        lookup = await oracle.get_receipt("0xnothex")

    assert lookup.status is LookupStatus.NOT_FOUND
    assert calls == []


@pytest.mark.asyncio
async def test_transport_error_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _oracle(handler) as oracle:
        lookup = await oracle.get_receipt(make_tx_hash(1))

    assert lookup.status is LookupStatus.UNAVAILABLE
    assert "ConnectError" in lookup.error


@pytest.mark.asyncio
async def test_http_error_status_is_unavailable():
    async with _oracle(lambda request: httpx.Response(503, text="busy")) as oracle:
        lookup = await oracle.get_receipt(make_tx_hash(1))

    assert lookup.status is LookupStatus.UNAVAILABLE
    assert lookup.error == "HTTP 503"


@pytest.mark.asyncio
async def test_malformed_json_is_unavailable():
    async with _oracle(lambda request: httpx.Response(200, text="<html>")) as oracle:
        lookup = await oracle.get_receipt(make_tx_hash(1))

    assert lookup.status is LookupStatus.UNAVAILABLE
    assert lookup.error == "malformed JSON response"


@pytest.mark.asyncio
async def test_node_error_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}},
        )

    async with _oracle(handler) as oracle:
        lookup = await oracle.get_receipt(make_tx_hash(1))

    assert lookup.status is LookupStatus.UNAVAILABLE
    assert "header not found" in lookup.error


@pytest.mark.asyncio
async def test_invalid_params_error_is_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "invalid argument"}},
        )

    async with _oracle(handler) as oracle:
        lookup = await oracle.get_transaction(make_tx_hash(1))

    assert lookup.status is LookupStatus.NOT_FOUND
