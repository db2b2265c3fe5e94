"""Event and middleware models for the bot event bus."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Get current UTC time with timezone awareness."""
    return datetime.now(UTC)


class EventDirection(str, Enum):
    """Direction of an event relative to the bot."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class Event(BaseModel):
    """An event travelling through the bus (a message, a typing signal, ...)."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    bot_id: str
    channel: str
    direction: EventDirection
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    preview: str | None = None
    thread_id: str | None = None
    target: str
    created_on: datetime = Field(default_factory=utc_now)


class MiddlewareResult(BaseModel):
    """What a middleware tells the bus once it is done with an event.

    forward: hand the event on to the next middleware.
    error: an error raised while handling the event; stops the chain.
    continue_default: False once the event was fully handled and must not
        fall through to the bus's default processing.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    forward: bool = True
    error: BaseException | None = None
    continue_default: bool = True


MiddlewareHandler = Callable[[Event], Awaitable[MiddlewareResult]]


class MiddlewareDefinition(BaseModel):
    """Registration record of a middleware."""

    name: str
    description: str = ""
    direction: EventDirection
    order: int = 0
    handler: MiddlewareHandler


class DispatchOutcome(BaseModel):
    """Result of running an event through its middleware chain."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    event_id: str
    handled: bool = False
    error: BaseException | None = None
    processed_by: list[str] = Field(default_factory=list)
