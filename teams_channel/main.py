"""Main FastAPI application for the Teams channel service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teams_channel.api.channel_teams import router as bots_router
from teams_channel.bus.engine import EventBus
from teams_channel.bus.models import Event, EventDirection
from teams_channel.config import Settings, get_settings
from teams_channel.services.channel_client_manager import ChannelClientManager
from teams_channel.storage import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> KeyValueStore:
    """Create the key-value store selected by the settings."""
    if settings.kvs_backend == "memory":
        return InMemoryKeyValueStore()

    from teams_channel.database import AsyncSessionLocal

    return SqlKeyValueStore(AsyncSessionLocal)


async def log_incoming_event(event: Event) -> None:
    """Default handler of incoming events nobody consumed."""
    logger.info(
        f"Incoming {event.type} event from {event.target} on {event.channel} "
        f"(bot={event.bot_id}, thread={event.thread_id}): {event.preview}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown tasks."""
    # Startup
    logger.info("Starting Teams channel service")

    if settings.kvs_backend == "sql":
        from teams_channel.database import init_db

        await init_db()
        logger.info("Database initialized")

    bus = EventBus()
    bus.set_default_handler(EventDirection.INCOMING, log_incoming_event)

    manager = ChannelClientManager(
        app=app,
        bus=bus,
        store=build_store(settings),
        external_url=settings.external_url,
        middleware_order=settings.teams_middleware_order,
    )
    await manager.setup()

    app.state.bus = bus
    app.state.channel_manager = manager

    for bot_id in settings.teams_bot_ids:
        await manager.mount_bot(bot_id, settings.teams_config())
    logger.info(f"Mounted {len(manager.list_bots())} bot(s)")

    yield

    # Shutdown
    logger.info("Shutting down Teams channel service")
    await manager.shutdown()

    if settings.kvs_backend == "sql":
        from teams_channel.database import close_db

        await close_db()
        logger.info("Database closed")


app = FastAPI(
    title=settings.app_name,
    description="Bridges the bot event bus to Microsoft Teams through the Bot Framework",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(bots_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
    )
