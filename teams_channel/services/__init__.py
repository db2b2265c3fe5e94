"""Core services of the Teams channel."""

from teams_channel.services.channel_client_manager import (
    ChannelClientManager,
    check_middleware_position,
    outgoing_handler,
    setup_middleware,
)

__all__ = [
    "ChannelClientManager",
    "check_middleware_position",
    "outgoing_handler",
    "setup_middleware",
]
