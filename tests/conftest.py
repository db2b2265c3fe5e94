"""Shared fixtures."""

import os

# Must be set before teams_channel.database creates its engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("KVS_BACKEND", "memory")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from botbuilder.core import BotFrameworkAdapter, BotFrameworkAdapterSettings  # noqa: E402
from botbuilder.schema import (  # noqa: E402
    Activity,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
    ResourceResponse,
)

from teams_channel.adapters.reference_cache import ConversationReferenceCache  # noqa: E402
from teams_channel.adapters.teams import TeamsChannelClient  # noqa: E402
from teams_channel.bus.engine import EventBus  # noqa: E402
from teams_channel.config import TeamsConfig  # noqa: E402
from teams_channel.storage.memory import InMemoryKeyValueStore  # noqa: E402

SERVICE_URL = "https://smba.trafficmanager.net/emea/"


@pytest.fixture
def make_activity():
    def _make(
        text: str | None = "hello",
        conversation_id: str = "conv-1",
        user_id: str = "user-1",
        activity_type: str = "message",
    ) -> Activity:
        return Activity(
            type=activity_type,
            id="activity-1",
            service_url=SERVICE_URL,
            channel_id="msteams",
            from_property=ChannelAccount(id=user_id, name="Ada"),
            recipient=ChannelAccount(id="bot-1", name="Bot"),
            conversation=ConversationAccount(id=conversation_id),
            text=text,
        )

    return _make


@pytest.fixture
def make_reference():
    def _make(conversation_id: str = "conv-1", activity_id: str | None = "activity-1"):
        return ConversationReference(
            activity_id=activity_id,
            user=ChannelAccount(id="user-1", name="Ada"),
            bot=ChannelAccount(id="bot-1", name="Bot"),
            conversation=ConversationAccount(id=conversation_id),
            channel_id="msteams",
            service_url=SERVICE_URL,
        )

    return _make


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(store):
    return ConversationReferenceCache(store, owner_id="bot-a")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def adapter():
    """Real adapter whose connector calls are mocked out."""
    adapter = BotFrameworkAdapter(BotFrameworkAdapterSettings(app_id="app-id", app_password="secret"))
    adapter.send_activities = AsyncMock(return_value=[ResourceResponse(id="sent-1")])
    return adapter


@pytest.fixture
def client(bus, cache, adapter):
    return TeamsChannelClient(
        bot_id="bot-a",
        config=TeamsConfig(microsoft_app_id="app-id", microsoft_app_password="secret"),
        bus=bus,
        cache=cache,
        adapter=adapter,
    )
