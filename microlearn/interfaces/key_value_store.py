"""Protocol for persistent string key-value storage."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Asynchronous string-keyed storage.

    Backs daily statistics, category statistics and completion records.
    Implementations raise PersistenceUnavailableError when the underlying
    storage cannot be used.
    """

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    async def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        ...

    async def multi_remove(self, keys: list[str]) -> None:
        """Remove several keys at once; missing keys are ignored."""
        ...

    async def list_keys(self) -> list[str]:
        """Return every stored key."""
        ...
