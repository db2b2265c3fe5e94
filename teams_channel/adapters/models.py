"""Outgoing message models for channel clients.

Payload values are carried loosely: whatever the bot produced for a title,
URL or payload is kept as-is and only the Bot Framework connector decides
whether it is acceptable.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Buttons
class OpenUrlButton(BaseModel):
    """Button opening a link."""

    type: Literal["open_url"] = "open_url"
    title: Any = None
    url: Any = None


class SayTextButton(BaseModel):
    """Button making the user say a text back to the bot."""

    type: Literal["say_something"] = "say_something"
    title: Any = None
    text: Any = None


class PostbackButton(BaseModel):
    """Button posting a payload back to the bot."""

    type: Literal["postback"] = "postback"
    title: Any = None
    payload: Any = None


class UnknownButton(BaseModel):
    """Button of a kind this channel cannot render."""

    model_config = ConfigDict(extra="allow")

    type: Any = None


Button = OpenUrlButton | SayTextButton | PostbackButton | UnknownButton


class Card(BaseModel):
    """A carousel card."""

    title: Any = None
    image_url: Any = Field(None, description="Single picture of the card")
    buttons: list[Button] = Field(default_factory=list)


class Reply(BaseModel):
    """A quick reply choice."""

    title: Any = None
    payload: Any = None


# Messages
class TextMessage(BaseModel):
    """Plain message whose payload is sent as-is."""

    kind: Literal["text"] = "text"
    payload: dict[str, Any] = Field(default_factory=dict)


class TypingMessage(BaseModel):
    """Typing indicator."""

    kind: Literal["typing"] = "typing"


class CarouselMessage(BaseModel):
    """Ordered list of cards."""

    kind: Literal["carousel"] = "carousel"
    cards: list[Card] = Field(default_factory=list)


class QuickRepliesMessage(BaseModel):
    """Text followed by a set of choices."""

    kind: Literal["quick_replies"] = "quick_replies"
    text: Any = None
    replies: list[Reply] = Field(default_factory=list)


OutgoingMessage = Annotated[
    TextMessage | TypingMessage | CarouselMessage | QuickRepliesMessage,
    Field(discriminator="kind"),
]
