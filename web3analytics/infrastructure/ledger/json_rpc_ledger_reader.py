"""JSON-RPC ledger reader — implements the LedgerReader interface.

Performs ``eth_call`` against a JSON-RPC node using httpx. Arguments and
results are ABI-encoded with eth-abi using the registry ABI fragments.
"""

import itertools
import logging
from typing import Any

import httpx
from eth_abi import decode, encode
from eth_utils import to_checksum_address

from web3analytics.application.interfaces import LedgerReader
from web3analytics.domain.exceptions import LedgerError
from web3analytics.infrastructure.ledger.registry_abi import ContractFunction, get_function

logger = logging.getLogger(__name__)


def encode_call(fn: ContractFunction, args: list[Any]) -> str:
    """0x-prefixed call data: selector followed by the encoded arguments."""
    return "0x" + (fn.selector + encode(list(fn.inputs), _prepare_args(fn, args))).hex()


def _prepare_args(fn: ContractFunction, args: list[Any]) -> list[Any]:
    if len(args) != len(fn.inputs):
        raise ValueError(f"{fn.signature} expects {len(fn.inputs)} arguments, got {len(args)}")
    return [
        to_checksum_address(value) if abi_type == "address" else value
        for abi_type, value in zip(fn.inputs, args)
    ]


class JsonRpcClient:
    """Minimal async JSON-RPC 2.0 client shared by the ledger reader and relay client."""

    def __init__(self, url: str, http_client: httpx.AsyncClient | None = None):
        self._url = url
        self._http_client = http_client
        self._ids = itertools.count(1)

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=30.0)

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request. Raises LedgerError on transport or RPC errors."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        client = await self._get_client()
        should_close = self._http_client is None
        try:
            response = await client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise LedgerError(method, f"JSON-RPC request failed: {exc}") from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            raise LedgerError(method, f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise LedgerError(method, f"Invalid JSON-RPC response: {exc}") from exc

        if data.get("error"):
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise LedgerError(method, message)
        return data.get("result")


class JsonRpcLedgerReader(LedgerReader):
    """Infrastructure adapter — read-only registry calls over JSON-RPC."""

    def __init__(self, json_rpc_url: str, http_client: httpx.AsyncClient | None = None):
        self._rpc = JsonRpcClient(json_rpc_url, http_client=http_client)

    async def call(self, contract_address: str, method: str, args: list[Any]) -> Any:
        fn = get_function(method)
        try:
            data = encode_call(fn, args)
        except (TypeError, ValueError) as exc:
            raise LedgerError(method, f"Could not encode arguments: {exc}") from exc

        result = await self._rpc.request(
            "eth_call", [{"to": contract_address, "data": data}, "latest"]
        )
        logger.debug("eth_call %s(%s) → %s", method, args, result)

        if not isinstance(result, str) or not result.startswith("0x") or len(result) <= 2:
            raise LedgerError(method, f"Empty or malformed call result: {result!r}")
        try:
            decoded = decode(list(fn.outputs), bytes.fromhex(result[2:]))
        except Exception as exc:
            raise LedgerError(method, f"Could not decode result: {exc}") from exc
        return decoded[0] if len(decoded) == 1 else decoded
