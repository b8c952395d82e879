"""Domain entities for on-ledger registration state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AppStatus(str, Enum):
    """Registration state of the embedding application."""

    UNKNOWN = "unknown"
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


class UserStatus(str, Enum):
    """Registration state of the (app, signer address) pair.

    UNKNOWN → REGISTERED | UNREGISTERED → REGISTERING → REGISTERED
    """

    UNKNOWN = "unknown"
    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    REGISTERED = "registered"


@dataclass(frozen=True)
class TransactionHandle:
    """A submitted (not yet confirmed) ledger transaction."""

    hash: str


@dataclass(frozen=True)
class TransactionReceipt:
    """A mined transaction. status == 1 means success, 0 means reverted."""

    transaction_hash: str
    status: int
    block_number: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1
