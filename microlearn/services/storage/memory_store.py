"""In-memory key-value store."""


class InMemoryKeyValueStore:
    """Ephemeral key-value store kept in a dict.

    Implements the KeyValueStore protocol. Used for guest sessions that
    should leave nothing behind, and as a fast store in tests.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def multi_remove(self, keys: list[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def list_keys(self) -> list[str]:
        return sorted(self._data)

    def snapshot(self) -> dict[str, str]:
        """Copy of the stored data."""
        return dict(self._data)
