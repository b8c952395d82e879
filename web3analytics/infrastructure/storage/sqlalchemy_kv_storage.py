"""Concrete KeyValueStorage backed by SQLAlchemy async sessions."""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from web3analytics.application.interfaces import KeyValueStorage
from web3analytics.domain.exceptions import StorageError
from web3analytics.infrastructure.database import Base, StorageEntryModel, create_session_factory

logger = logging.getLogger(__name__)


class SQLAlchemyKeyValueStorage(KeyValueStorage):
    """Implements the KeyValueStorage port on the 'local_storage' table.

    Each call runs in its own session and commits immediately.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "SQLAlchemyKeyValueStorage":
        return cls(create_session_factory(engine))

    @staticmethod
    async def create_schema(engine: AsyncEngine) -> None:
        """Create the storage table if it does not exist yet."""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def get(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                entry = await session.get(StorageEntryModel, key)
                return entry.value if entry else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not read '{key}' from local storage: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._session_factory() as session:
                entry = await session.get(StorageEntryModel, key)
                if entry is None:
                    session.add(StorageEntryModel(key=key, value=value))
                else:
                    entry.value = value
                    entry.updated_at = datetime.now(timezone.utc)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not write '{key}' to local storage: {exc}") from exc
        logger.debug("Stored local value for '%s'", key)
