"""Abstract interface (port) for read-only ledger contract calls."""

from abc import ABC, abstractmethod
from typing import Any


class LedgerReader(ABC):
    """Performs view calls against a contract. No signing is involved."""

    @abstractmethod
    async def call(self, contract_address: str, method: str, args: list[Any]) -> Any:
        """Call ``method`` on the contract and return its decoded result.

        Raises LedgerError when the node rejects the call.
        """
        ...
