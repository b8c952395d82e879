"""Abstract interface (port) for gas-relayed contract writes."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from web3analytics.domain.entities import TransactionHandle, TransactionReceipt


class RelayWriteClient(ABC):
    """A write client whose gas is paid by a paymaster rather than the signer.

    Lifecycle: ``init()`` → ``add_account()`` → ``send()`` → ``wait_for_confirmation()``.
    """

    @abstractmethod
    async def init(self) -> None:
        """Open the relay session. Raises RelayError when the relay is unavailable."""
        ...

    @abstractmethod
    def add_account(self, private_key: str) -> str:
        """Register the signing key with the client and return its address."""
        ...

    @abstractmethod
    async def send(self, method: str, args: list[Any], *, gas_limit: int) -> TransactionHandle:
        """Submit a contract call through the relay."""
        ...

    @abstractmethod
    async def wait_for_confirmation(self, handle: TransactionHandle) -> TransactionReceipt:
        """Wait until the transaction is mined and return its receipt."""
        ...

    async def aclose(self) -> None:
        """Release network resources. Optional."""
        return None


# Builds a fresh relay client for each registration attempt.
RelayClientFactory = Callable[[], RelayWriteClient]
