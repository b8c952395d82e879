"""Seed persistence — load the device seed, or create it on first run."""

import logging

from web3analytics.application.interfaces import KeyValueStorage
from web3analytics.domain.entities import Identity, Seed

logger = logging.getLogger(__name__)

SEED_STORAGE_KEY = "ceramicSeed"
DID_STORAGE_KEY = "authenticatedDID"


class SeedStore:
    """Persists the 32-byte seed under a fixed storage key.

    A seed is created exactly once; every later load returns the same bytes.
    """

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    async def load(self) -> Seed | None:
        """Return the stored seed, or None on first run (or when the stored value is corrupt)."""
        raw = await self._storage.get(SEED_STORAGE_KEY)
        if raw is None:
            return None
        try:
            return Seed.from_storage(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable stored seed: %s", exc)
            return None

    async def save(self, seed: Seed) -> None:
        await self._storage.set(SEED_STORAGE_KEY, seed.to_storage())

    async def load_or_create(self) -> Seed:
        seed = await self.load()
        if seed is not None:
            logger.debug("Using existing seed")
            return seed

        seed = Seed.generate()
        await self.save(seed)
        logger.info("Created new device seed")
        return seed

    async def remember_identity(self, identity: Identity) -> None:
        """Record the last authenticated DID alongside the seed."""
        await self._storage.set(DID_STORAGE_KEY, identity.id)
