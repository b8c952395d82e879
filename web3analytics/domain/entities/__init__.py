from .seed import Seed, SEED_LENGTH
from .identity import Identity
from .registration import AppStatus, UserStatus, TransactionHandle, TransactionReceipt
from .session import SessionState
from .event import (
    RAW_PAYLOAD_FIELD,
    EventIndex,
    IndexEntry,
    NormalizedEvent,
    StoredDocument,
)

__all__ = [
    "Seed",
    "SEED_LENGTH",
    "Identity",
    "AppStatus",
    "UserStatus",
    "TransactionHandle",
    "TransactionReceipt",
    "SessionState",
    "RAW_PAYLOAD_FIELD",
    "EventIndex",
    "IndexEntry",
    "NormalizedEvent",
    "StoredDocument",
]
