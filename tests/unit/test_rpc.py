"""Unit tests for the JSON-RPC client and ERC20 metadata reader."""

import json

import pytest
import requests
import responses

from katana_devkit.exceptions import RpcError
from katana_devkit.rpc import (
    check_connection,
    decode_string,
    decode_uint,
    get_block_number,
    read_erc20_metadata,
    rpc_call,
    selector,
)
from tests._fixtures.sources import AUSD_TATARA

RPC_URL = "http://test-rpc.example.com"


def encode_uint(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def encode_string(value: str) -> str:
    data = value.encode()
    padded = data + b"\x00" * (-len(data) % 32)
    return "0x" + (32).to_bytes(32, "big").hex() + len(data).to_bytes(32, "big").hex() + padded.hex()


TOKEN_RESULTS = {
    "0x06fdde03": encode_string("AUSD"),
    "0x95d89b41": encode_string("AUSD"),
    "0x313ce567": encode_uint(6),
    "0x18160ddd": encode_uint(1_500_000),
}


def token_node_callback(request):
    """Answer eth_blockNumber, eth_chainId and eth_call like a Tatara node."""
    body = json.loads(request.body)
    method = body["method"]
    if method == "eth_blockNumber":
        result = "0x1a4"
    elif method == "eth_chainId":
        result = hex(129399)
    else:
        call, block = body["params"]
        assert block == "latest"
        result = TOKEN_RESULTS[call["data"]]
    return 200, {}, json.dumps({"jsonrpc": "2.0", "id": body["id"], "result": result})


class TestRpcCall:
    """Test the JSON-RPC transport."""

    @responses.activate
    def test_request_format(self):
        """Test that the request is a JSON-RPC 2.0 envelope."""

        def request_callback(request):
            body = json.loads(request.body)
            assert body == {"jsonrpc": "2.0", "method": "eth_blockNumber", "params": [], "id": 1}
            return 200, {}, json.dumps({"jsonrpc": "2.0", "id": 1, "result": "0x10"})

        responses.add_callback(responses.POST, RPC_URL, callback=request_callback, content_type="application/json")

        assert get_block_number(RPC_URL) == 16

    @responses.activate
    def test_rpc_error_member(self):
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}},
            status=200,
        )

        with pytest.raises(RpcError, match="Method not found"):
            rpc_call(RPC_URL, "eth_foo")

    @responses.activate
    def test_http_error(self):
        responses.add(responses.POST, RPC_URL, body="Bad gateway", status=502)

        with pytest.raises(RpcError, match="502"):
            rpc_call(RPC_URL, "eth_chainId")

    @responses.activate
    def test_non_json_body(self):
        responses.add(responses.POST, RPC_URL, body="<html>", status=200)

        with pytest.raises(RpcError, match="not JSON"):
            rpc_call(RPC_URL, "eth_chainId")

    @responses.activate
    def test_missing_result(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1}, status=200)

        with pytest.raises(RpcError, match="no result"):
            rpc_call(RPC_URL, "eth_chainId")

    @responses.activate
    def test_network_error(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        with pytest.raises(RpcError, match="Network error"):
            rpc_call(RPC_URL, "eth_chainId")


class TestDecoding:
    """Test ABI return value decoding."""

    def test_selector(self):
        assert selector("name()") == "0x06fdde03"
        assert selector("totalSupply()") == "0x18160ddd"

    def test_decode_uint(self):
        assert decode_uint(encode_uint(18)) == 18

    def test_decode_uint_short_data(self):
        with pytest.raises(RpcError):
            decode_uint("0x")

    def test_decode_string(self):
        assert decode_string(encode_string("Wrapped Ether")) == "Wrapped Ether"

    def test_decode_bytes32_string(self):
        assert decode_string("0x" + b"MKR".ljust(32, b"\x00").hex()) == "MKR"

    def test_decode_string_truncated(self):
        with pytest.raises(RpcError):
            decode_string(encode_string("Wrapped Ether")[:-64])


class TestReadErc20Metadata:
    """Test token metadata reads."""

    @responses.activate
    def test_sequential_calls(self):
        """Test that metadata is read with four separate eth_call requests."""
        responses.add_callback(responses.POST, RPC_URL, callback=token_node_callback, content_type="application/json")

        info = read_erc20_metadata(RPC_URL, AUSD_TATARA)

        assert (info.name, info.symbol, info.decimals, info.total_supply) == ("AUSD", "AUSD", 6, 1_500_000)
        assert info.formatted_supply == "1.5"
        sent = [json.loads(call.request.body) for call in responses.calls]
        assert [body["params"][0]["data"] for body in sent] == ["0x06fdde03", "0x95d89b41", "0x313ce567", "0x18160ddd"]
        assert not any(isinstance(body, list) for body in sent)


class TestCheckConnection:
    """Test the connection check."""

    @responses.activate
    def test_report(self):
        responses.add_callback(responses.POST, RPC_URL, callback=token_node_callback, content_type="application/json")

        report = check_connection(RPC_URL, {"AUSD": AUSD_TATARA})

        assert report.block_number == 420
        assert report.chain_id == 129399
        assert report.tokens["AUSD"].decimals == 6

    @responses.activate
    def test_unreachable_node(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        with pytest.raises(RpcError):
            check_connection(RPC_URL, {})
