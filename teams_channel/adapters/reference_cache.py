"""Two-tier cache of conversation references."""

import logging

from botbuilder.schema import ConversationReference

from teams_channel.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class ConversationReferenceCache:
    """Maps a conversation (thread) id to the reference needed to post into it.

    Lookups hit an in-process dict first and fall back to the key-value store,
    keyed by ``(owner_id, thread_id)``. Only references actually found are kept
    in memory. Recording is first-write-wins for the lifetime of the cache, so
    known threads do not cause a store write on every inbound activity.

    Store errors propagate to the caller.
    """

    def __init__(self, store: KeyValueStore, owner_id: str):
        """Initialize the cache.

        Args:
            store: Durable key-value store
            owner_id: Partition of the store, the bot id
        """
        self.store = store
        self.owner_id = owner_id
        self._references: dict[str, ConversationReference] = {}

    async def resolve(self, thread_id: str) -> ConversationReference | None:
        """Get the reference of a conversation.

        Args:
            thread_id: Conversation id on the platform

        Returns:
            The reference, or None if the conversation was never recorded
        """
        reference = self._references.get(thread_id)
        if reference is not None:
            return reference

        # cache miss
        stored = await self.store.get(self.owner_id, thread_id)
        if stored is None:
            return None

        reference = ConversationReference.deserialize(stored)
        self._references[thread_id] = reference
        return reference

    async def record(self, thread_id: str, reference: ConversationReference) -> None:
        """Remember the reference of a conversation unless it is already known.

        Args:
            thread_id: Conversation id on the platform
            reference: Reference extracted from an inbound activity
        """
        if thread_id in self._references:
            return

        await self.store.set(self.owner_id, thread_id, reference.serialize())
        self._references[thread_id] = reference
        logger.debug(f"Recorded conversation reference for thread {thread_id}")

    def clear(self) -> None:
        """Forget the in-process references. Stored references are kept."""
        self._references.clear()

    def __len__(self) -> int:
        return len(self._references)
