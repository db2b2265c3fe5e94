"""In-memory key-value store for local runs and tests."""

import copy
from typing import Any


class InMemoryKeyValueStore:
    """Process-local store. Values are deep-copied in and out."""

    def __init__(self):
        self._data: dict[tuple[str, str], Any] = {}

    async def get(self, owner_id: str, key: str) -> Any | None:
        value = self._data.get((owner_id, key))
        return copy.deepcopy(value)

    async def set(self, owner_id: str, key: str, value: Any) -> None:
        self._data[(owner_id, key)] = copy.deepcopy(value)
