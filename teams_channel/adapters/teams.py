"""Microsoft Teams channel client (Bot Framework)."""

import logging
from typing import Any

from botbuilder.core import BotFrameworkAdapter, BotFrameworkAdapterSettings, TurnContext
from botbuilder.schema import Activity
from fastapi import APIRouter, HTTPException, Request
from jwt import PyJWTError
from msrest.exceptions import DeserializationError

from teams_channel.adapters.base import (
    ChannelClient,
    ChannelNotConfiguredError,
    InvalidActivityError,
    UnsupportedMessageKindError,
)
from teams_channel.adapters.reference_cache import ConversationReferenceCache
from teams_channel.adapters.translator import parse_outgoing_message, translate
from teams_channel.bus.engine import EventBus
from teams_channel.bus.models import Event, EventDirection
from teams_channel.config import TeamsConfig

logger = logging.getLogger(__name__)

CHANNEL_NAME = "teams"
OUTGOING_TYPES = ("message", "typing", "carousel", "text")


def parse_activity(body: Any) -> Activity:
    """Deserialize an inbound activity and check it can be answered later.

    Raises:
        InvalidActivityError: If the body is not an activity with a type,
            a service URL and a conversation
    """
    if not isinstance(body, dict):
        raise InvalidActivityError("Activity must be a JSON object")

    try:
        activity = Activity().deserialize(body)
    except DeserializationError as e:
        raise InvalidActivityError(f"Invalid activity: {e}") from e

    if not activity.type:
        raise InvalidActivityError("Activity has no type")
    if not activity.service_url:
        raise InvalidActivityError("Activity has no serviceUrl")
    if activity.conversation is None or not activity.conversation.id:
        raise InvalidActivityError("Activity has no conversation")
    return activity


class TeamsChannelClient(ChannelClient):
    """Per-bot Teams client.

    Inbound activities refresh the conversation reference cache and are put on
    the bus as incoming events. Outgoing events are delivered proactively
    through the cached reference of their thread.
    """

    channel = CHANNEL_NAME

    def __init__(
        self,
        bot_id: str,
        config: TeamsConfig,
        bus: EventBus,
        cache: ConversationReferenceCache,
        adapter: BotFrameworkAdapter | None = None,
    ):
        """Initialize the client.

        Args:
            bot_id: Bot owning this client
            config: Teams configuration of the bot
            bus: Event bus incoming events are sent to
            cache: Conversation reference cache of the bot
            adapter: Prebuilt adapter; built from config on initialize() if None
        """
        super().__init__(bot_id)
        self.config = config
        self.bus = bus
        self.cache = cache
        self.adapter = adapter

    async def initialize(self, router: APIRouter, public_path: str) -> None:
        """Create the Bot Framework adapter and register the messaging endpoint."""
        if self.adapter is None:
            self.adapter = BotFrameworkAdapter(
                BotFrameworkAdapterSettings(
                    app_id=self.config.microsoft_app_id,
                    app_password=self.config.microsoft_app_password,
                )
            )

        if not self.config.microsoft_app_id:
            logger.warning(
                f"No Microsoft App ID configured for bot {self.bot_id}: "
                "inbound activities are accepted without authentication"
            )

        if not public_path.startswith("https://"):
            logger.warning(
                "Teams requires HTTPS to be setup to work properly. "
                "See EXTERNAL_URL in the service configuration."
            )

        router.add_api_route("/api/messages", self._messages_endpoint, methods=["POST"])
        logger.info(f"Teams client initialized for bot {self.bot_id} at {public_path}/api/messages")

    async def _messages_endpoint(self, request: Request) -> dict:
        """Receive an activity from the Bot Framework connector."""
        try:
            body = await request.json()
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid JSON body") from e

        try:
            activity = parse_activity(body)
        except InvalidActivityError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        auth_header = request.headers.get("Authorization", "")

        try:
            await self._get_adapter().process_activity(activity, auth_header, self.on_turn)
        except (PermissionError, PyJWTError) as e:
            logger.warning(f"Rejected unauthenticated activity for bot {self.bot_id}: {e}")
            raise HTTPException(status_code=401, detail="Unauthorized") from e

        return {}

    async def on_turn(self, context: TurnContext) -> None:
        """Handle an inbound activity."""
        activity = context.activity
        reference = TurnContext.get_conversation_reference(activity)

        if not activity.text:
            # Reactions and other non-text activities must not trigger the bot
            logger.debug(f"Ignoring {activity.type} activity without text")
            return

        thread_id = reference.conversation.id
        await self.cache.record(thread_id, reference)

        sender_id = activity.from_property.id if activity.from_property else ""
        await self.bus.send_event(
            Event(
                bot_id=self.bot_id,
                channel=CHANNEL_NAME,
                direction=EventDirection.INCOMING,
                payload={"text": activity.text},
                preview=activity.text,
                thread_id=thread_id,
                target=sender_id,
                type=activity.type,
            )
        )

    async def send_outgoing_event(self, event: Event) -> None:
        """Deliver an outgoing event to its Teams conversation.

        A thread without a known conversation reference is skipped with a
        warning. Translation and delivery errors are logged and re-raised.

        Raises:
            UnsupportedMessageKindError: If the event type cannot be sent to Teams
        """
        message_type = "text" if event.type == "default" else event.type

        if message_type not in OUTGOING_TYPES:
            raise UnsupportedMessageKindError(event.type)

        reference = await self.cache.resolve(event.thread_id) if event.thread_id else None
        if reference is None:
            logger.warning(
                f"No message could be sent to MS Botframework with threadId: {event.thread_id} "
                "as there is no conversation reference"
            )
            return

        adapter = self._get_adapter()

        async def deliver(context: TurnContext) -> None:
            try:
                await context.send_activity(translate(parse_outgoing_message(event.payload)))
            except Exception as e:
                logger.error(
                    f"The following error occurred when sending a payload of type "
                    f"{message_type} to MS Botframework: {e}",
                    exc_info=True,
                )
                raise

        await adapter.continue_conversation(
            reference, deliver, bot_id=self.config.microsoft_app_id
        )

    def _get_adapter(self) -> BotFrameworkAdapter:
        if self.adapter is None:
            raise ChannelNotConfiguredError(f"Teams client of bot {self.bot_id} is not initialized")
        return self.adapter
