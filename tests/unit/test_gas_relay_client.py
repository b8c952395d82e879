"""Unit tests for the GasRelayClient."""

import json

import httpx
import pytest
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector, keccak

from web3analytics.domain.entities import TransactionHandle
from web3analytics.domain.exceptions import RelayError
from web3analytics.infrastructure.relay import GasRelayClient

RELAY_URL = "http://relay.test"
RPC_URL = "http://rpc.test/"
CONTRACT = "0x" + "25" * 20
PAYMASTER = "0x" + "48" * 20
APP_ID = "0x" + "12" * 20
PRIVATE_KEY = "0x" + "05" * 32
DID = "did:key:zQ3sRelayTest"


# ── Helpers ──


class FakeRelayNetwork:
    """Serves relay (/getaddr, /relay) and JSON-RPC endpoints from one MockTransport."""

    def __init__(self, *, ready: bool = True, receipt_status: str | None = "0x1", pending_polls: int = 1):
        self.ready = ready
        self.receipt_status = receipt_status
        self.pending_polls = pending_polls
        self.relayed: list[dict] = []
        self.rpc_methods: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/getaddr":
            return httpx.Response(200, json={
                "ready": self.ready,
                "relayWorkerAddress": "0x" + "11" * 20,
                "relayHubAddress": "0x" + "22" * 20,
                "chainId": "80001",
            })
        if request.url.path == "/relay":
            self.relayed.append(json.loads(request.content))
            return httpx.Response(200, json={"signedTx": "0xdeadbeef"})

        body = json.loads(request.content)
        self.rpc_methods.append(body["method"])
        if body["method"] == "eth_getTransactionCount":
            result = "0x5"
        elif self.pending_polls > 0:
            self.pending_polls -= 1
            result = None
        else:
            result = {"blockNumber": "0x10", "transactionHash": body["params"][0]}
            if self.receipt_status is not None:
                result["status"] = self.receipt_status
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _client(network: FakeRelayNetwork) -> GasRelayClient:
    return GasRelayClient(
        relay_url=RELAY_URL,
        json_rpc_url=RPC_URL,
        contract_address=CONTRACT,
        paymaster_address=PAYMASTER,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(network.handler)),
        poll_interval=0,
        max_polls=5,
    )


# ── Tests ──


@pytest.mark.asyncio
async def test_full_registration_flow():
    network = FakeRelayNetwork()
    client = _client(network)

    await client.init()
    address = client.add_account(PRIVATE_KEY)
    handle = await client.send("addUser", [DID, APP_ID], gas_limit=1_000_000)
    receipt = await client.wait_for_confirmation(handle)

    assert handle.hash == "0x" + keccak(hexstr="0xdeadbeef").hex()
    assert receipt.succeeded is True
    assert receipt.block_number == 16

    body = network.relayed[0]
    request = body["relayRequest"]
    assert request["from"] == address
    assert request["paymaster"].lower() == PAYMASTER
    assert request["gas"] == "1000000"
    assert request["nonce"] == "5"
    assert body["signature"].startswith("0x")
    assert len(body["signature"]) == 2 + 65 * 2

    data = bytes.fromhex(request["data"][2:])
    assert data[:4] == function_signature_to_4byte_selector("addUser(string,address)")
    did, app = decode(["string", "address"], data[4:])
    assert did == DID
    assert app.lower() == APP_ID


@pytest.mark.asyncio
async def test_init_fails_when_relay_not_ready():
    client = _client(FakeRelayNetwork(ready=False))

    with pytest.raises(RelayError):
        await client.init()


@pytest.mark.asyncio
async def test_send_before_init_is_rejected():
    client = _client(FakeRelayNetwork())
    client.add_account(PRIVATE_KEY)

    with pytest.raises(RelayError):
        await client.send("addUser", [DID, APP_ID], gas_limit=1_000_000)


@pytest.mark.asyncio
async def test_reverted_transaction_has_failed_receipt():
    network = FakeRelayNetwork(receipt_status="0x0", pending_polls=0)
    client = _client(network)

    receipt = await client.wait_for_confirmation(TransactionHandle(hash="0xabc"))

    assert receipt.succeeded is False


@pytest.mark.asyncio
async def test_receipt_without_status_counts_as_mined():
    network = FakeRelayNetwork(receipt_status=None, pending_polls=0)
    client = _client(network)

    receipt = await client.wait_for_confirmation(TransactionHandle(hash="0xabc"))

    assert receipt.succeeded is True
    assert receipt.block_number == 16


@pytest.mark.asyncio
async def test_unmined_transaction_gives_up_after_max_polls():
    network = FakeRelayNetwork(pending_polls=100)
    client = _client(network)

    with pytest.raises(RelayError):
        await client.wait_for_confirmation(TransactionHandle(hash="0xabc"))
    assert network.rpc_methods.count("eth_getTransactionReceipt") == 5
