"""Domain entity — the decentralized identifier bound to this device."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """An authenticated DID.

    Exactly one is active per seed per session. Owned by IdentityBootstrap;
    the delivery queue and registration gate only read it.
    """

    id: str
    authenticated: bool = False

    def __str__(self) -> str:
        return self.id
