"""Translation of outgoing bot payloads into Bot Framework activities.

Everything here is pure: the bus payload is parsed into an explicit
OutgoingMessage, which is then rendered into the ``Activity`` handed to
``TurnContext.send_activity``. Malformed payloads are not rejected here;
they fail when the connector receives them.
"""

from typing import Any

from botbuilder.core import CardFactory
from botbuilder.schema import (
    ActionTypes,
    Activity,
    ActivityTypes,
    Attachment,
    AttachmentLayoutTypes,
    CardAction,
    CardImage,
    HeroCard,
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


def parse_button(raw: Any) -> Button:
    """Parse a carousel button by its ``type``."""
    if not isinstance(raw, dict):
        return UnknownButton()

    button_type = raw.get("type")
    if button_type == "open_url":
        return OpenUrlButton(title=raw.get("title"), url=raw.get("url"))
    if button_type == "say_something":
        return SayTextButton(title=raw.get("title"), text=raw.get("text"))
    if button_type == "postback":
        return PostbackButton(title=raw.get("title"), payload=raw.get("payload"))
    return UnknownButton(**{str(k): v for k, v in raw.items()})


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _field(item: Any, name: str) -> Any:
    return item.get(name) if isinstance(item, dict) else None


def parse_outgoing_message(payload: dict[str, Any]) -> OutgoingMessage:
    """Classify a loosely-typed bus payload.

    Typing and carousel are recognized by the payload ``type``, quick replies
    by a non-empty ``quick_replies`` list. Anything else is a text message
    sent untouched.
    """
    payload_type = payload.get("type")

    if payload_type == "typing":
        return TypingMessage()

    if payload_type == "carousel":
        return CarouselMessage(
            cards=[
                Card(
                    title=_field(element, "title"),
                    image_url=_field(element, "picture"),
                    buttons=[parse_button(b) for b in _items(_field(element, "buttons"))],
                )
                for element in _items(payload.get("elements"))
            ]
        )

    if payload.get("quick_replies"):
        return QuickRepliesMessage(
            text=payload.get("text"),
            replies=[
                Reply(title=_field(reply, "title"), payload=_field(reply, "payload"))
                for reply in _items(payload["quick_replies"])
            ],
        )

    return TextMessage(payload=payload)


def translate_button(button: Button) -> CardAction | None:
    """Render a carousel button as a card action.

    Unknown button kinds render as None, leaving a hole in the action list.
    """
    if isinstance(button, OpenUrlButton):
        return CardAction(type=ActionTypes.open_url, value=button.url, title=button.title)
    if isinstance(button, SayTextButton):
        return CardAction(
            type=ActionTypes.message_back,
            title=button.title,
            value=button.text,
            text=button.text,
            display_text=button.text,
        )
    if isinstance(button, PostbackButton):
        return CardAction(
            type=ActionTypes.message_back,
            title=button.title,
            value=button.payload,
            text=button.payload,
        )
    return None


def _hero_card(title: Any, image_urls: list[Any], actions: list[CardAction | None]) -> Attachment:
    return CardFactory.hero_card(
        HeroCard(
            title=title,
            images=[CardImage(url=url) for url in image_urls],
            buttons=actions,
        )
    )


def translate_carousel(message: CarouselMessage) -> Activity:
    """Render a carousel as hero cards laid out side by side."""
    return Activity(
        type=ActivityTypes.message,
        attachments=[
            _hero_card(
                card.title,
                [card.image_url],
                [translate_button(b) for b in card.buttons],
            )
            for card in message.cards
        ],
        attachment_layout=AttachmentLayoutTypes.carousel,
    )


def translate_quick_replies(message: QuickRepliesMessage) -> Activity:
    """Render quick replies as a text plus one untitled hero card of choices."""
    return Activity(
        type=ActivityTypes.message,
        text=message.text,
        attachments=[
            _hero_card(
                "",
                [],
                [
                    CardAction(
                        title=reply.title,
                        type=ActionTypes.message_back,
                        value=reply.payload,
                        text=reply.payload,
                        display_text=reply.title,
                    )
                    for reply in message.replies
                ],
            )
        ],
    )


def translate(message: OutgoingMessage) -> Activity:
    """Render an outgoing message as an activity."""
    if isinstance(message, TypingMessage):
        return Activity(type=ActivityTypes.typing)
    if isinstance(message, CarouselMessage):
        return translate_carousel(message)
    if isinstance(message, QuickRepliesMessage):
        return translate_quick_replies(message)
    if isinstance(message, TextMessage):
        # Keys unknown to the Activity schema are dropped here
        return Activity().deserialize(message.payload)
    raise TypeError(f"Unknown outgoing message: {type(message).__name__}")
