"""Key-value storage used for conversation references."""

from teams_channel.storage.base import KeyValueStore
from teams_channel.storage.memory import InMemoryKeyValueStore
from teams_channel.storage.sql import SqlKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
]
