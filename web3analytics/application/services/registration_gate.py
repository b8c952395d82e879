"""Registration gate — ledger checks for app/user registration and relayed sign-up.

There is no lock around check-then-register. Two clients sharing a seed can
both observe "unregistered" and both submit ``addUser``; the registry
contract is the only backstop against a duplicate. This gate submits at most
one transaction per observed-unregistered state and never retries.
"""

import asyncio
import logging

from eth_account import Account
from eth_utils import is_address

from web3analytics.application.interfaces import LedgerReader, RelayClientFactory, RelayWriteClient
from web3analytics.domain.entities import TransactionReceipt, UserStatus
from web3analytics.domain.exceptions import ConfigurationError, RegistrationError
from web3analytics.infrastructure.logging.colored_logger import DeliveryLogger, DeliveryStage

logger = logging.getLogger(__name__)
plog = DeliveryLogger(__name__)

DEFAULT_GAS_LIMIT = 1_000_000


def _require_address(field: str, value: object) -> None:
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(field, value)


class RegistrationGate:
    """Reads registration state from the registry contract and registers users via a gas relay."""

    def __init__(
        self,
        ledger: LedgerReader,
        relay_factory: RelayClientFactory,
        *,
        contract_address: str,
        gas_limit: int = DEFAULT_GAS_LIMIT,
    ):
        self._ledger = ledger
        self._relay_factory = relay_factory
        self._contract_address = contract_address
        self._gas_limit = gas_limit
        self._registrations: set[asyncio.Task] = set()

    @staticmethod
    def signer_address(private_key: str) -> str:
        """Checksummed address of the signer derived from the device private key."""
        return Account.from_key(private_key).address

    async def check_app_registration(self, app_id: str) -> bool:
        """True when the registry lists ``app_id``.

        A malformed app id is treated as unregistered without touching the ledger.
        """
        try:
            _require_address("app_id", app_id)
        except ConfigurationError as exc:
            logger.warning("%s", exc)
            return False
        return bool(
            await self._ledger.call(self._contract_address, "isAppRegistered", [app_id])
        )

    async def check_user_registration(self, app_id: str, signer_address: str) -> bool:
        return bool(
            await self._ledger.call(
                self._contract_address, "isUserRegistered", [app_id, signer_address]
            )
        )

    async def register_user(self, app_id: str, private_key: str, did: str) -> TransactionReceipt:
        """Submit ``addUser(did, app_id)`` through the relay and wait for it to be mined.

        Raises RegistrationError on relay, signing, or revert failures.
        """
        relay: RelayWriteClient | None = None
        try:
            relay = self._relay_factory()
            with plog.timed_step(DeliveryStage.REGISTER, "Initializing gas relay"):
                await relay.init()
            address = relay.add_account(private_key)

            logger.info("Registering user Address: %s did: %s", address, did)
            handle = await relay.send("addUser", [did, app_id], gas_limit=self._gas_limit)
            logger.debug("Registration transaction submitted: %s", handle.hash)

            receipt = await relay.wait_for_confirmation(handle)
            logger.debug("Registration receipt: %s", receipt)
        except RegistrationError:
            raise
        except Exception as exc:
            raise RegistrationError(f"User registration failed: {exc}") from exc
        finally:
            if relay is not None:
                await relay.aclose()

        if not receipt.succeeded:
            raise RegistrationError(f"Registration transaction {receipt.transaction_hash} reverted")
        return receipt

    async def ensure_user_registered(self, app_id: str, private_key: str, did: str) -> UserStatus:
        """Check the user and, if unregistered, start registration in the background.

        Returns REGISTERED or REGISTERING without waiting for the transaction.
        """
        address = self.signer_address(private_key)
        if await self.check_user_registration(app_id, address):
            logger.info("User is registered.")
            return UserStatus.REGISTERED

        logger.info("User not registered. Attempting to register.")
        task = asyncio.create_task(
            self._register_in_background(app_id, private_key, did),
            name="web3analytics-registration",
        )
        self._registrations.add(task)
        task.add_done_callback(self._registrations.discard)
        return UserStatus.REGISTERING

    async def wait_for_registrations(self) -> list[UserStatus]:
        """Wait for any in-flight background registrations to settle."""
        if not self._registrations:
            return []
        return list(await asyncio.gather(*self._registrations))

    async def _register_in_background(self, app_id: str, private_key: str, did: str) -> UserStatus:
        try:
            receipt = await self.register_user(app_id, private_key, did)
        except RegistrationError as exc:
            plog.step_error(DeliveryStage.REGISTER, "User registration failed, not retrying", error=exc)
            return UserStatus.UNREGISTERED
        logger.info("User registered in transaction %s", receipt.transaction_hash)
        return UserStatus.REGISTERED
