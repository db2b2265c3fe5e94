"""Base channel client interface and errors."""

from abc import ABC, abstractmethod

from fastapi import APIRouter

from teams_channel.bus.models import Event


# Exception Hierarchy
class ChannelError(Exception):
    """Base exception for all channel client errors."""

    pass


class UnsupportedMessageKindError(ChannelError):
    """Outgoing event type cannot be sent on this channel."""

    def __init__(self, event_type: str):
        super().__init__(f"Unsupported event type: {event_type}")
        self.event_type = event_type


class ChannelNotConfiguredError(ChannelError):
    """Client used before it was initialized."""

    pass


class InvalidActivityError(ChannelError):
    """Inbound activity lacks what is needed to handle it."""

    pass


class ChannelClient(ABC):
    """Base class for the per-bot client of a messaging channel."""

    channel: str

    def __init__(self, bot_id: str):
        self.bot_id = bot_id

    @abstractmethod
    async def initialize(self, router: APIRouter, public_path: str) -> None:
        """Set up the platform connection and register inbound routes on router.

        Args:
            router: Router owned by the bot, included into the app after this call
            public_path: Externally reachable URL of the router
        """
        pass

    @abstractmethod
    async def send_outgoing_event(self, event: Event) -> None:
        """Deliver an outgoing bus event to the platform.

        Args:
            event: Outgoing event targeting this channel

        Raises:
            UnsupportedMessageKindError: If the event type is not supported
        """
        pass

    async def shutdown(self) -> None:
        """Release resources held by the client."""
        return None
