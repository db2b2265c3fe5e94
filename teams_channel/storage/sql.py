"""Key-value store backed by the application database."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teams_channel.database.models import KeyValueDB

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """Stores JSON values in the ``kvs`` table, one row per (owner, key)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize the store.

        Args:
            session_factory: Factory producing async sessions bound to the database
        """
        self.session_factory = session_factory

    async def get(self, owner_id: str, key: str) -> Any | None:
        """Look up a value.

        Args:
            owner_id: Owner partition (bot id)
            key: Key within the partition

        Returns:
            The stored JSON value, or None if not found
        """
        async with self.session_factory() as session:
            stmt = select(KeyValueDB.value).where(
                (KeyValueDB.owner_id == owner_id) & (KeyValueDB.key == key)
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def set(self, owner_id: str, key: str, value: Any) -> None:
        """Insert or replace a value.

        Args:
            owner_id: Owner partition (bot id)
            key: Key within the partition
            value: JSON-serializable value
        """
        async with self.session_factory() as session:
            stmt = select(KeyValueDB).where(
                (KeyValueDB.owner_id == owner_id) & (KeyValueDB.key == key)
            )
            result = await session.execute(stmt)
            row = result.scalars().first()

            if row is None:
                session.add(KeyValueDB(owner_id=owner_id, key=key, value=value))
            else:
                row.value = value

            await session.commit()
        logger.debug(f"Stored value for owner={owner_id} key={key}")
