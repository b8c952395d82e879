"""Unit tests for the RegistrationGate."""

import logging
from typing import Any

import pytest

from web3analytics.application.interfaces import LedgerReader, RelayWriteClient
from web3analytics.application.services.registration_gate import RegistrationGate
from web3analytics.domain.entities import TransactionHandle, TransactionReceipt, UserStatus
from web3analytics.domain.exceptions import RegistrationError, RelayError

CONTRACT = "0x" + "25" * 20
APP_ID = "0x" + "12" * 20
PRIVATE_KEY = "0x" + "05" * 32
DID = "did:key:zQ3sGateTest"


# ── Fakes ──


class FakeLedgerReader(LedgerReader):
    """Answers registry calls from in-memory sets and records every call."""

    def __init__(self, apps: set[str] | None = None, users: set[tuple[str, str]] | None = None):
        self.apps = {a.lower() for a in (apps or set())}
        self.users = {(a.lower(), u.lower()) for a, u in (users or set())}
        self.calls: list[tuple[str, str, list[Any]]] = []

    async def call(self, contract_address: str, method: str, args: list[Any]) -> Any:
        self.calls.append((contract_address, method, list(args)))
        if method == "isAppRegistered":
            return args[0].lower() in self.apps
        if method == "isUserRegistered":
            return (args[0].lower(), args[1].lower()) in self.users
        raise AssertionError(f"unexpected method {method}")


class FakeRelayClient(RelayWriteClient):
    """Scripted relay: can fail at init, at send, or return a reverted receipt."""

    def __init__(self, *, fail_init: bool = False, fail_send: bool = False, status: int = 1):
        self.fail_init = fail_init
        self.fail_send = fail_send
        self.status = status
        self.steps: list[str] = []
        self.sent: list[tuple[str, list[Any], int]] = []
        self.closed = False

    async def init(self) -> None:
        self.steps.append("init")
        if self.fail_init:
            raise RelayError("relay not ready")

    def add_account(self, private_key: str) -> str:
        self.steps.append("add_account")
        return RegistrationGate.signer_address(private_key)

    async def send(self, method: str, args: list[Any], *, gas_limit: int) -> TransactionHandle:
        self.steps.append("send")
        if self.fail_send:
            raise RelayError("paymaster rejected request")
        self.sent.append((method, list(args), gas_limit))
        return TransactionHandle(hash="0xabc")

    async def wait_for_confirmation(self, handle: TransactionHandle) -> TransactionReceipt:
        self.steps.append("wait")
        return TransactionReceipt(transaction_hash=handle.hash, status=self.status, block_number=7)

    async def aclose(self) -> None:
        self.closed = True


def _gate(ledger: FakeLedgerReader, relays: list[FakeRelayClient] | None = None) -> RegistrationGate:
    relays = relays if relays is not None else [FakeRelayClient()]
    created = iter(relays)
    return RegistrationGate(ledger, lambda: next(created), contract_address=CONTRACT, gas_limit=1_000_000)


# ── App registration ──


@pytest.mark.asyncio
@pytest.mark.parametrize("app_id", ["", "not-an-address", "0x1234", "0x" + "zz" * 20, None])
async def test_malformed_app_id_is_unregistered_without_network(app_id):
    ledger = FakeLedgerReader(apps={APP_ID})
    gate = _gate(ledger)

    assert await gate.check_app_registration(app_id) is False
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_malformed_app_id_is_logged_as_configuration_error(caplog):
    caplog.set_level(logging.WARNING, logger="web3analytics.application.services.registration_gate")
    gate = _gate(FakeLedgerReader())

    await gate.check_app_registration("0x1234")

    assert "Invalid configuration value for 'app_id': '0x1234'" in caplog.text


@pytest.mark.asyncio
async def test_app_registration_is_read_from_ledger():
    ledger = FakeLedgerReader(apps={APP_ID})
    gate = _gate(ledger)

    assert await gate.check_app_registration(APP_ID) is True
    assert ledger.calls == [(CONTRACT, "isAppRegistered", [APP_ID])]


@pytest.mark.asyncio
async def test_app_registration_check_is_idempotent():
    ledger = FakeLedgerReader()
    gate = _gate(ledger)

    first = await gate.check_app_registration(APP_ID)
    second = await gate.check_app_registration(APP_ID)

    assert first == second is False
    assert len(ledger.calls) == 2


# ── User registration ──


@pytest.mark.asyncio
async def test_registered_user_submits_nothing():
    address = RegistrationGate.signer_address(PRIVATE_KEY)
    relay = FakeRelayClient()
    gate = _gate(FakeLedgerReader(users={(APP_ID, address)}), [relay])

    status = await gate.ensure_user_registered(APP_ID, PRIVATE_KEY, DID)

    assert status is UserStatus.REGISTERED
    assert relay.steps == []
    assert await gate.wait_for_registrations() == []


@pytest.mark.asyncio
async def test_unregistered_user_is_registered_in_background():
    relay = FakeRelayClient()
    gate = _gate(FakeLedgerReader(), [relay])

    status = await gate.ensure_user_registered(APP_ID, PRIVATE_KEY, DID)

    assert status is UserStatus.REGISTERING
    assert await gate.wait_for_registrations() == [UserStatus.REGISTERED]
    assert relay.steps == ["init", "add_account", "send", "wait"]
    assert relay.sent == [("addUser", [DID, APP_ID], 1_000_000)]
    assert relay.closed is True


@pytest.mark.asyncio
async def test_user_check_uses_signer_address():
    ledger = FakeLedgerReader()
    gate = _gate(ledger)

    await gate.ensure_user_registered(APP_ID, PRIVATE_KEY, DID)
    await gate.wait_for_registrations()

    address = RegistrationGate.signer_address(PRIVATE_KEY)
    assert ledger.calls == [(CONTRACT, "isUserRegistered", [APP_ID, address])]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "relay",
    [
        FakeRelayClient(fail_init=True),
        FakeRelayClient(fail_send=True),
        FakeRelayClient(status=0),
    ],
    ids=["relay-init", "send", "revert"],
)
async def test_register_user_failures_raise_registration_error(relay: FakeRelayClient):
    gate = _gate(FakeLedgerReader(), [relay])

    with pytest.raises(RegistrationError):
        await gate.register_user(APP_ID, PRIVATE_KEY, DID)
    assert relay.closed is True


@pytest.mark.asyncio
async def test_background_failure_is_not_retried():
    relay = FakeRelayClient(fail_init=True)
    gate = _gate(FakeLedgerReader(), [relay])

    await gate.ensure_user_registered(APP_ID, PRIVATE_KEY, DID)

    assert await gate.wait_for_registrations() == [UserStatus.UNREGISTERED]
    assert relay.steps == ["init"]



def _broken_relay_factory() -> RelayWriteClient:
    raise ValueError("paymaster address is not a valid address")


@pytest.mark.asyncio
async def test_relay_construction_failure_is_registration_error():
    gate = RegistrationGate(FakeLedgerReader(), _broken_relay_factory, contract_address=CONTRACT)

    with pytest.raises(RegistrationError):
        await gate.register_user(APP_ID, PRIVATE_KEY, DID)


@pytest.mark.asyncio
async def test_relay_construction_failure_in_background_leaves_user_unregistered():
    gate = RegistrationGate(FakeLedgerReader(), _broken_relay_factory, contract_address=CONTRACT)

    status = await gate.ensure_user_registered(APP_ID, PRIVATE_KEY, DID)

    assert status is UserStatus.REGISTERING
    assert await gate.wait_for_registrations() == [UserStatus.UNREGISTERED]


def test_signer_address_is_checksummed():
    address = RegistrationGate.signer_address(PRIVATE_KEY)
    assert address.startswith("0x")
    assert len(address) == 42
