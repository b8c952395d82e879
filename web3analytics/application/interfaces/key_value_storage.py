"""Abstract interface (port) for persistent local key/value storage."""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Port for the device-local string store — the browser's localStorage equivalent."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key has never been written."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Write ``value`` under ``key``, replacing any previous value."""
        ...
