from .key_value_storage import KeyValueStorage
from .did_provider import DIDProvider
from .document_store import DocumentStore
from .ledger_reader import LedgerReader
from .relay_client import RelayClientFactory, RelayWriteClient

__all__ = [
    "KeyValueStorage",
    "DIDProvider",
    "DocumentStore",
    "LedgerReader",
    "RelayClientFactory",
    "RelayWriteClient",
]
