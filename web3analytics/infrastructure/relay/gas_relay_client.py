"""Gas relay client — implements the RelayWriteClient interface.

Contract writes are signed locally as EIP-712 relay requests and handed to a
relay server, which submits them on-chain with gas paid by the paymaster.
Confirmation is observed through the regular JSON-RPC node.
"""

import asyncio
import logging
from typing import Any

import httpx
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import keccak, to_checksum_address

from web3analytics.application.interfaces import RelayWriteClient
from web3analytics.domain.entities import TransactionHandle, TransactionReceipt
from web3analytics.domain.exceptions import LedgerError, RelayError
from web3analytics.infrastructure.ledger.json_rpc_ledger_reader import JsonRpcClient, encode_call
from web3analytics.infrastructure.ledger.registry_abi import get_function

logger = logging.getLogger(__name__)

RELAY_REQUEST_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "RelayRequest": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "gas", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "paymaster", "type": "address"},
    ],
}


class GasRelayClient(RelayWriteClient):
    """Infrastructure adapter — paymaster-sponsored writes to the registry contract."""

    def __init__(
        self,
        *,
        relay_url: str,
        json_rpc_url: str,
        contract_address: str,
        paymaster_address: str,
        http_client: httpx.AsyncClient | None = None,
        poll_interval: float = 2.0,
        max_polls: int = 150,
    ):
        self._relay_url = relay_url.rstrip("/")
        self._contract_address = to_checksum_address(contract_address)
        self._paymaster_address = to_checksum_address(paymaster_address)
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=60.0)
        self._rpc = JsonRpcClient(json_rpc_url, http_client=self._http_client)
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._account: LocalAccount | None = None
        self._relay_info: dict[str, Any] | None = None

    async def init(self) -> None:
        try:
            response = await self._http_client.get(f"{self._relay_url}/getaddr")
        except httpx.HTTPError as exc:
            raise RelayError(f"Relay unreachable: {exc}") from exc
        if response.status_code != 200:
            raise RelayError(f"Relay /getaddr returned HTTP {response.status_code}")

        info = response.json()
        if not info.get("ready"):
            raise RelayError("Relay is not ready")
        self._relay_info = info
        logger.debug("Relay ready: worker=%s hub=%s", info.get("relayWorkerAddress"), info.get("relayHubAddress"))

    def add_account(self, private_key: str) -> str:
        self._account = Account.from_key(private_key)
        return self._account.address

    async def send(self, method: str, args: list[Any], *, gas_limit: int) -> TransactionHandle:
        if self._relay_info is None:
            raise RelayError("Relay client used before init()")
        if self._account is None:
            raise RelayError("No signing account added")

        data = encode_call(get_function(method), args)
        try:
            nonce = int(await self._rpc.request(
                "eth_getTransactionCount", [self._account.address, "pending"]
            ), 16)
        except (LedgerError, TypeError, ValueError) as exc:
            raise RelayError(f"Could not read signer nonce: {exc}") from exc

        relay_request = {
            "from": self._account.address,
            "to": self._contract_address,
            "value": 0,
            "gas": gas_limit,
            "nonce": nonce,
            "data": data,
            "paymaster": self._paymaster_address,
        }
        signature = self._sign(relay_request)

        body = {
            "relayRequest": {**relay_request, "value": "0", "gas": str(gas_limit), "nonce": str(nonce)},
            "signature": signature,
            "metadata": {
                "relayHubAddress": self._relay_info.get("relayHubAddress"),
                "relayWorkerAddress": self._relay_info.get("relayWorkerAddress"),
            },
        }
        try:
            response = await self._http_client.post(f"{self._relay_url}/relay", json=body)
        except httpx.HTTPError as exc:
            raise RelayError(f"Relay request failed: {exc}") from exc
        if response.status_code != 200:
            raise RelayError(f"Relay rejected request: HTTP {response.status_code} {response.text[:200]}")

        result = response.json()
        if result.get("error"):
            raise RelayError(f"Relay rejected request: {result['error']}")
        return TransactionHandle(hash=self._transaction_hash(result))

    async def wait_for_confirmation(self, handle: TransactionHandle) -> TransactionReceipt:
        for _ in range(self._max_polls):
            try:
                receipt = await self._rpc.request("eth_getTransactionReceipt", [handle.hash])
            except LedgerError as exc:
                raise RelayError(f"Could not read receipt for {handle.hash}: {exc}") from exc
            if receipt:
                # Receipts without a status field predate status codes; mined means success.
                return TransactionReceipt(
                    transaction_hash=handle.hash,
                    status=int(receipt["status"], 16) if receipt.get("status") else 1,
                    block_number=int(receipt["blockNumber"], 16) if receipt.get("blockNumber") else None,
                    raw=receipt,
                )
            await asyncio.sleep(self._poll_interval)
        raise RelayError(f"Transaction {handle.hash} not mined after {self._max_polls} polls")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    def _sign(self, relay_request: dict[str, Any]) -> str:
        chain_id = self._relay_info.get("chainId", 1)
        message = {
            "types": RELAY_REQUEST_TYPES,
            "primaryType": "RelayRequest",
            "domain": {
                "name": "GSN Relayed Transaction",
                "version": "3",
                "chainId": int(chain_id, 0) if isinstance(chain_id, str) else int(chain_id),
                "verifyingContract": self._relay_info.get("relayHubAddress") or self._contract_address,
            },
            "message": {**relay_request, "data": bytes.fromhex(relay_request["data"][2:])},
        }
        signed = self._account.sign_message(encode_typed_data(full_message=message))
        return "0x" + bytes(signed.signature).hex()

    @staticmethod
    def _transaction_hash(result: dict[str, Any]) -> str:
        if result.get("transactionHash"):
            return result["transactionHash"]
        signed_tx = result.get("signedTx")
        if not signed_tx:
            raise RelayError("Relay response carried neither transactionHash nor signedTx")
        return "0x" + keccak(hexstr=signed_tx).hex()
