import json

import httpx
import pytest

from rpc.abi import encode_call
from rpc.client import JsonRpcClient, RpcError
from rpc.readers import CoreChainReader, ESpaceChainReader
from rpc.schemas import Block

from .conftest import POOL_V2, word


def rpc_transport(handler):
    """handler(method, params) -> result, or raises RpcError to answer with an error."""
    seen = []

    def _handle(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        try:
            result = handler(body["method"], body["params"])
        except RpcError as e:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": e.code, "message": "nope"}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.MockTransport(_handle), seen


async def test_core_reader_uses_epoch_methods():
    def handler(method, params):
        if method == "cfx_epochNumber":
            assert params == ["latest_mined"]
            return "0x64"
        if method == "cfx_getBlockByEpochNumber":
            return {"epochNumber": params[0], "timestamp": "0x5dc"}
        raise AssertionError(method)

    transport, _ = rpc_transport(handler)
    async with CoreChainReader(JsonRpcClient("http://node", transport=transport)) as reader:
        assert await reader.get_latest_height() == 100
        assert await reader.get_block(50) == Block(height=50, timestamp=1500)


async def test_espace_reader_returns_none_for_unknown_block():
    transport, seen = rpc_transport(lambda method, params: None)
    async with ESpaceChainReader(JsonRpcClient("http://node", transport=transport)) as reader:
        assert await reader.get_block(10**9) is None
    assert seen[0]["method"] == "eth_getBlockByNumber"
    assert seen[0]["params"] == [hex(10**9), False]


async def test_contract_call_is_pinned_to_height():
    transport, seen = rpc_transport(lambda method, params: "0x" + word(9).hex())
    async with ESpaceChainReader(JsonRpcClient("http://node", transport=transport)) as reader:
        out = await reader.call_contract_method(POOL_V2, "stakerAddress(uint256)", (4,), 1234)

    assert out == word(9)
    assert seen[0]["method"] == "eth_call"
    assert seen[0]["params"] == [
        {"to": POOL_V2, "data": encode_call("stakerAddress(uint256)", (4,))},
        hex(1234),
    ]


async def test_error_object_raises_rpc_error():
    def handler(method, params):
        raise RpcError("nope", -32005)

    transport, _ = rpc_transport(handler)
    client = JsonRpcClient("http://node", transport=transport)
    with pytest.raises(RpcError) as info:
        await client.request("eth_blockNumber")
    assert info.value.code == -32005
    await client.aclose()


async def test_http_error_status_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, text="slow down"))
    client = JsonRpcClient("http://node", transport=transport)
    with pytest.raises(httpx.HTTPStatusError):
        await client.request("eth_blockNumber")
    await client.aclose()


def test_block_parses_hex_and_int_quantities():
    assert Block(height="0x10", timestamp=5) == Block(height=16, timestamp=5)
