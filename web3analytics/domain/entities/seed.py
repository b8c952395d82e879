"""Domain entity — the device's 32-byte root key material."""

import json
import secrets
from dataclasses import dataclass, field

SEED_LENGTH = 32


@dataclass(frozen=True)
class Seed:
    """Secret from which the device private key and DID are derived.

    Never transmitted. Stored locally as a JSON array of byte values so that
    seeds written by the browser client can be read back unchanged.
    """

    value: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes) or len(self.value) != SEED_LENGTH:
            raise ValueError(f"Seed must be exactly {SEED_LENGTH} bytes")

    @classmethod
    def generate(cls) -> "Seed":
        """Create a new cryptographically random seed."""
        return cls(secrets.token_bytes(SEED_LENGTH))

    @classmethod
    def from_storage(cls, raw: str) -> "Seed":
        """Parse the stored JSON byte array. Raises ValueError when malformed."""
        try:
            values = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Stored seed is not valid JSON: {exc}") from exc
        if not isinstance(values, list) or not all(
            isinstance(v, int) and not isinstance(v, bool) for v in values
        ):
            raise ValueError("Stored seed must be a JSON array of integers")
        try:
            return cls(bytes(values))
        except ValueError as exc:
            raise ValueError(f"Stored seed is not a valid byte array: {exc}") from exc

    def to_storage(self) -> str:
        return json.dumps(list(self.value))

    @property
    def private_key_hex(self) -> str:
        """The seed as a 0x-prefixed hex private key (ledger signer material)."""
        return "0x" + self.value.hex()
