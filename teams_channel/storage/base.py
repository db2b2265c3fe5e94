"""Key-value store interface."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Async key-value store partitioned by owner (usually a bot id)."""

    async def get(self, owner_id: str, key: str) -> Any | None:
        """Return the value stored under key, or None if absent."""
        ...

    async def set(self, owner_id: str, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        ...
