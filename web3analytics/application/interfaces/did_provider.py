"""Abstract interface (port) for DID derivation and authentication."""

from abc import ABC, abstractmethod

from web3analytics.domain.entities import Identity, Seed


class DIDProvider(ABC):
    """Derives a DID from a seed and completes the authentication handshake."""

    @abstractmethod
    async def authenticate(self, seed: Seed) -> Identity:
        """Return an authenticated Identity. Raises AuthenticationError on rejection."""
        ...
