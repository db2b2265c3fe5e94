"""API endpoints for pushing bot events and inspecting mounted bots."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from teams_channel.adapters.base import UnsupportedMessageKindError
from teams_channel.adapters.teams import CHANNEL_NAME
from teams_channel.bus.engine import EventBus
from teams_channel.bus.models import Event, EventDirection
from teams_channel.services.channel_client_manager import ChannelClientManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bots", tags=["bots"])


class OutgoingEventRequest(BaseModel):
    """Request to send an outgoing event on behalf of a bot."""

    channel: str = CHANNEL_NAME
    type: str = "text"
    payload: dict = Field(default_factory=dict)
    thread_id: str
    target: str = ""
    preview: str | None = None


class OutgoingEventResponse(BaseModel):
    """Outcome of an outgoing event."""

    event_id: str
    handled: bool
    processed_by: list[str]


def get_bus(request: Request) -> EventBus:
    """Get the application's event bus."""
    return request.app.state.bus


def get_manager(request: Request) -> ChannelClientManager:
    """Get the application's channel client manager."""
    return request.app.state.channel_manager


@router.get("", response_model=list[str])
async def list_bots(manager: ChannelClientManager = Depends(get_manager)) -> list[str]:
    """List the bots with a mounted Teams channel."""
    return manager.list_bots()


@router.post("/{bot_id}/events", response_model=OutgoingEventResponse)
async def send_outgoing_event(
    bot_id: str,
    request: OutgoingEventRequest,
    bus: EventBus = Depends(get_bus),
) -> OutgoingEventResponse:
    """Put an outgoing event on the bus, as the bot would after a turn.

    Args:
        bot_id: Bot sending the event
        request: Event to send
        bus: Event bus

    Returns:
        Whether a middleware handled the event

    Raises:
        HTTPException: 502 if delivery failed, 400 if the event type is unsupported
    """
    event = Event(
        bot_id=bot_id,
        channel=request.channel,
        direction=EventDirection.OUTGOING,
        type=request.type,
        payload=request.payload,
        preview=request.preview,
        thread_id=request.thread_id,
        target=request.target,
    )
    outcome = await bus.send_event(event)

    if outcome.error is not None:
        if isinstance(outcome.error, UnsupportedMessageKindError):
            raise HTTPException(status_code=400, detail=str(outcome.error))
        raise HTTPException(status_code=502, detail=f"Delivery failed: {outcome.error}")

    return OutgoingEventResponse(
        event_id=outcome.event_id,
        handled=outcome.handled,
        processed_by=outcome.processed_by,
    )
