"""Manager for per-bot channel clients and outgoing message routing."""

import logging

from fastapi import APIRouter, FastAPI
from starlette.routing import BaseRoute

from teams_channel.adapters.base import ChannelClient
from teams_channel.adapters.reference_cache import ConversationReferenceCache
from teams_channel.adapters.teams import CHANNEL_NAME, TeamsChannelClient
from teams_channel.bus.engine import EventBus
from teams_channel.bus.models import (
    Event,
    EventDirection,
    MiddlewareDefinition,
    MiddlewareHandler,
    MiddlewareResult,
)
from teams_channel.config import TeamsConfig
from teams_channel.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

MIDDLEWARE_NAME = "teams.sendMessages"
MIDDLEWARE_ORDER = 100

# Clients keyed by bot id
ClientRegistry = dict[str, ChannelClient]


def outgoing_handler(clients: ClientRegistry, channel: str = CHANNEL_NAME) -> MiddlewareHandler:
    """Build the outgoing middleware delivering events of channel to their bot's client."""

    async def handler(event: Event) -> MiddlewareResult:
        if event.channel != channel:
            return MiddlewareResult()

        client = clients.get(event.bot_id)
        if client is None:
            return MiddlewareResult()

        try:
            await client.send_outgoing_event(event)
        except Exception as e:
            return MiddlewareResult(error=e)

        return MiddlewareResult(continue_default=False)

    return handler


def setup_middleware(
    bus: EventBus, clients: ClientRegistry, order: int = MIDDLEWARE_ORDER
) -> MiddlewareDefinition:
    """Register the outgoing Teams middleware on the bus.

    Args:
        bus: Event bus
        clients: Registry the middleware looks clients up in, at dispatch time
        order: Position in the outgoing chain; must be the last one

    Returns:
        The registered middleware definition
    """
    middleware = MiddlewareDefinition(
        name=MIDDLEWARE_NAME,
        description=(
            "Sends out messages that targets platform = teams."
            " This middleware should be placed at the end as it swallows events once sent."
        ),
        direction=EventDirection.OUTGOING,
        handler=outgoing_handler(clients),
        order=order,
    )
    bus.register_middleware(middleware)
    check_middleware_position(bus)
    return middleware


def check_middleware_position(bus: EventBus) -> list[str]:
    """Warn about outgoing middleware running after the Teams one.

    Those never see the events this middleware delivered.

    Returns:
        Names of the outgoing middleware placed after it
    """
    chain = bus.list_middleware(EventDirection.OUTGOING)
    if MIDDLEWARE_NAME not in chain:
        return []

    later = chain[chain.index(MIDDLEWARE_NAME) + 1 :]
    if later:
        logger.warning(
            f"Outgoing middleware {', '.join(later)} run after {MIDDLEWARE_NAME} "
            "and will not receive the events it sends to Teams; "
            "set TEAMS_MIDDLEWARE_ORDER above their order"
        )
    return later


class ChannelClientManager:
    """Owns the Teams clients of the mounted bots.

    Each mounted bot gets its own reference cache, client and router; the
    router is included into the app once the client registered its routes.
    """

    def __init__(
        self,
        app: FastAPI,
        bus: EventBus,
        store: KeyValueStore,
        external_url: str,
        middleware_order: int = MIDDLEWARE_ORDER,
    ):
        self.app = app
        self.bus = bus
        self.store = store
        self.external_url = external_url.rstrip("/")
        self.middleware_order = middleware_order
        self.clients: ClientRegistry = {}
        self._routes: dict[str, list[BaseRoute]] = {}
        self._middleware_registered = False

    async def setup(self) -> None:
        """Register the outgoing middleware once."""
        if self._middleware_registered:
            return
        setup_middleware(self.bus, self.clients, order=self.middleware_order)
        self._middleware_registered = True

    @staticmethod
    def route_prefix(bot_id: str) -> str:
        """Path prefix of a bot's channel routes."""
        return f"/api/v1/bots/{bot_id}/mod/channel-teams"

    def get_client(self, bot_id: str) -> ChannelClient:
        """Get the client of a mounted bot.

        Raises:
            KeyError: If the bot is not mounted
        """
        return self.clients[bot_id]

    def list_bots(self) -> list[str]:
        """Get the ids of the mounted bots."""
        return list(self.clients.keys())

    async def mount_bot(self, bot_id: str, config: TeamsConfig) -> ChannelClient | None:
        """Create, initialize and register the client of a bot.

        Args:
            bot_id: Bot to mount
            config: Teams configuration of the bot

        Returns:
            The client, or None if the channel is disabled for the bot
        """
        if not config.enabled:
            logger.info(f"Teams channel disabled for bot {bot_id}")
            return None

        if bot_id in self.clients:
            await self.unmount_bot(bot_id)

        prefix = self.route_prefix(bot_id)
        cache = ConversationReferenceCache(self.store, owner_id=bot_id)
        client = TeamsChannelClient(
            bot_id=bot_id,
            config=config,
            bus=self.bus,
            cache=cache,
        )

        router = APIRouter(prefix=prefix, tags=["channel-teams"])
        await client.initialize(router, f"{self.external_url}{prefix}")

        before = {id(r) for r in self.app.router.routes}
        self.app.include_router(router)
        self._routes[bot_id] = [r for r in self.app.router.routes if id(r) not in before]

        check_middleware_position(self.bus)
        self.clients[bot_id] = client
        logger.info(f"Mounted Teams channel for bot {bot_id}")
        return client

    async def unmount_bot(self, bot_id: str) -> None:
        """Remove a bot's client, routes and in-process references."""
        client = self.clients.pop(bot_id, None)
        if client is None:
            logger.debug(f"Bot {bot_id} has no Teams client to unmount")
            return

        if isinstance(client, TeamsChannelClient):
            client.cache.clear()
        await client.shutdown()

        routes = {id(r) for r in self._routes.pop(bot_id, [])}
        self.app.router.routes[:] = [r for r in self.app.router.routes if id(r) not in routes]
        logger.info(f"Unmounted Teams channel for bot {bot_id}")

    async def shutdown(self) -> None:
        """Unmount every bot."""
        for bot_id in list(self.clients):
            await self.unmount_bot(bot_id)
