"""Channel client package for delivering bot events to external platforms."""

from teams_channel.adapters.base import (
    ChannelClient,
    ChannelError,
    ChannelNotConfiguredError,
    UnsupportedMessageKindError,
)
from teams_channel.adapters.models import (
    Button,
    Card,
    CarouselMessage,
    OpenUrlButton,
    OutgoingMessage,
    PostbackButton,
    QuickRepliesMessage,
    Reply,
    SayTextButton,
    TextMessage,
    TypingMessage,
    UnknownButton,
)
from teams_channel.adapters.reference_cache import ConversationReferenceCache
from teams_channel.adapters.teams import TeamsChannelClient

__all__ = [
    "Button",
    "Card",
    "CarouselMessage",
    "ChannelClient",
    "ChannelError",
    "ChannelNotConfiguredError",
    "ConversationReferenceCache",
    "OpenUrlButton",
    "OutgoingMessage",
    "PostbackButton",
    "QuickRepliesMessage",
    "Reply",
    "SayTextButton",
    "TeamsChannelClient",
    "TextMessage",
    "TypingMessage",
    "UnknownButton",
    "UnsupportedMessageKindError",
]
