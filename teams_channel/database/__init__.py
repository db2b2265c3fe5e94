"""Database models and connection."""

from teams_channel.database.connection import AsyncSessionLocal, close_db, init_db
from teams_channel.database.models import Base, KeyValueDB

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "KeyValueDB",
    "close_db",
    "init_db",
]
