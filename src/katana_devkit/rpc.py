"""Minimal JSON-RPC client for checking a node and reading ERC20 metadata."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

import requests
from eth_utils import function_signature_to_4byte_selector

from .exceptions import RpcError
from .logging import get_logger

logger = get_logger("rpc")

RPC_TIMEOUT = 30


def rpc_call(rpc_url: str, method: str, params: Optional[List[Any]] = None, timeout: float = RPC_TIMEOUT) -> Any:
    """
    Perform one JSON-RPC 2.0 request.

    Args:
        rpc_url: RPC endpoint URL
        method: RPC method, e.g. "eth_blockNumber"
        params: Positional parameters
        timeout: Request timeout in seconds

    Returns:
        The "result" member of the response

    Raises:
        RpcError: On HTTP errors, JSON-RPC errors, malformed responses or
            network failures
    """
    try:
        response = requests.post(
            rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": 1,
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RpcError(f"Network error during RPC call {method}: {e}") from e

    # Check for HTTP errors
    if response.status_code != 200:
        raise RpcError(f"RPC request {method} failed with status {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise RpcError(f"RPC response for {method} is not JSON") from e

    # Check for RPC errors
    if "error" in payload:
        raise RpcError(f"RPC error: {payload['error']}")
    if "result" not in payload:
        raise RpcError(f"RPC response for {method} has no result")

    return payload["result"]


def get_block_number(rpc_url: str) -> int:
    """Return the latest block number."""
    return int(rpc_call(rpc_url, "eth_blockNumber"), 16)


def get_chain_id(rpc_url: str) -> int:
    """Return the chain ID reported by the node."""
    return int(rpc_call(rpc_url, "eth_chainId"), 16)


def selector(signature: str) -> str:
    """4-byte function selector as 0x-prefixed hex, e.g. "name()" -> "0x06fdde03"."""
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def eth_call(rpc_url: str, to: str, data: str) -> str:
    """Execute a read-only call against the latest block and return the raw hex result."""
    return rpc_call(rpc_url, "eth_call", [{"to": to, "data": data}, "latest"])


def _result_bytes(result: str) -> bytes:
    return bytes.fromhex(result[2:] if result.startswith("0x") else result)


def decode_uint(result: str) -> int:
    """Decode a single uint256 return value."""
    data = _result_bytes(result)
    if len(data) < 32:
        raise RpcError(f"Cannot decode uint256 from {result!r}")
    return int.from_bytes(data[:32], "big")


def decode_string(result: str) -> str:
    """
    Decode a single string return value.

    Tokens that return bytes32 instead of string (e.g. early MKR) are
    decoded by stripping trailing zero bytes.
    """
    data = _result_bytes(result)
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    if len(data) < 64:
        raise RpcError(f"Cannot decode string from {result!r}")

    offset = int.from_bytes(data[:32], "big")
    length = int.from_bytes(data[offset:offset + 32], "big")
    start = offset + 32
    if start + length > len(data):
        raise RpcError(f"String length {length} exceeds returned data")
    return data[start:start + length].decode("utf-8", errors="replace")


@dataclass
class TokenInfo:
    """ERC20 metadata read from chain."""

    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int

    @property
    def formatted_supply(self) -> str:
        """Total supply scaled by decimals, e.g. "1.5"."""
        value = Decimal(self.total_supply).scaleb(-self.decimals)
        text = format(value, "f")
        return text.rstrip("0").rstrip(".") if "." in text else text


def read_erc20_metadata(rpc_url: str, address: str) -> TokenInfo:
    """
    Read name, symbol, decimals and totalSupply of an ERC20 token.

    Calls are made one after another, never batched.
    """
    name = decode_string(eth_call(rpc_url, address, selector("name()")))
    symbol = decode_string(eth_call(rpc_url, address, selector("symbol()")))
    decimals = decode_uint(eth_call(rpc_url, address, selector("decimals()")))
    total_supply = decode_uint(eth_call(rpc_url, address, selector("totalSupply()")))
    return TokenInfo(address=address, name=name, symbol=symbol, decimals=decimals, total_supply=total_supply)


@dataclass
class ConnectionReport:
    """Result of check_connection."""

    rpc_url: str
    block_number: int
    chain_id: int
    tokens: Dict[str, TokenInfo] = field(default_factory=dict)


def check_connection(rpc_url: str, tokens: Mapping[str, str]) -> ConnectionReport:
    """
    Check that a node answers and that token contracts are readable.

    Args:
        rpc_url: RPC endpoint URL
        tokens: Label -> token address

    Returns:
        ConnectionReport

    Raises:
        RpcError: If any call fails
    """
    logger.info("Testing connection to %s", rpc_url)
    report = ConnectionReport(
        rpc_url=rpc_url,
        block_number=get_block_number(rpc_url),
        chain_id=get_chain_id(rpc_url),
    )
    logger.info("Connected at block %d (chain %d)", report.block_number, report.chain_id)

    for label, address in tokens.items():
        logger.debug("Reading %s at %s", label, address)
        report.tokens[label] = read_erc20_metadata(rpc_url, address)

    return report
