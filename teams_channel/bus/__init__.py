"""Bot event bus."""

from teams_channel.bus.engine import EventBus, MiddlewareError
from teams_channel.bus.models import (
    DispatchOutcome,
    Event,
    EventDirection,
    MiddlewareDefinition,
    MiddlewareResult,
)

__all__ = [
    "DispatchOutcome",
    "Event",
    "EventBus",
    "EventDirection",
    "MiddlewareDefinition",
    "MiddlewareError",
    "MiddlewareResult",
]
