"""Abstract interface (port) for the decentralized document store."""

from abc import ABC, abstractmethod
from typing import Any

from web3analytics.domain.entities import Identity, StoredDocument


class DocumentStore(ABC):
    """Port for typed document creation and named per-controller records.

    Writes are attributed to the identity passed to ``bind_identity``.
    The binding is a single slot: binding again replaces the previous identity.
    """

    @abstractmethod
    def bind_identity(self, identity: Identity) -> None:
        """Make ``identity`` the signer for all subsequent writes."""
        ...

    @property
    @abstractmethod
    def identity(self) -> Identity | None:
        """The currently bound identity, if any."""
        ...

    @abstractmethod
    async def create_document(self, schema: str, content: dict[str, Any]) -> StoredDocument:
        """Create a new document of the given schema and return it with its assigned id."""
        ...

    @abstractmethod
    async def update_document(self, document_id: str, content: dict[str, Any]) -> None:
        """Replace the content of an existing document."""
        ...

    @abstractmethod
    async def read_named_document(self, name: str) -> dict[str, Any] | None:
        """Read the bound identity's named record. Returns None when it does not exist."""
        ...

    @abstractmethod
    async def set_named_document(self, name: str, content: dict[str, Any]) -> None:
        """Write the bound identity's named record, replacing it entirely."""
        ...
