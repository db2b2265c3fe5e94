"""Tests for the Teams channel client."""

import logging
from unittest.mock import AsyncMock

import pytest
from botbuilder.core import BotFrameworkAdapter, TurnContext
from fastapi import APIRouter

from teams_channel.adapters.base import (
    ChannelNotConfiguredError,
    InvalidActivityError,
    UnsupportedMessageKindError,
)
from teams_channel.adapters.teams import TeamsChannelClient, parse_activity
from teams_channel.bus.models import Event, EventDirection
from teams_channel.config import TeamsConfig


class NetworkTimeout(Exception):
    pass


def _outgoing(event_type="text", payload=None, thread_id="conv-1"):
    return Event(
        bot_id="bot-a",
        channel="teams",
        direction=EventDirection.OUTGOING,
        type=event_type,
        payload=payload if payload is not None else {"type": "text", "text": "hi"},
        thread_id=thread_id,
        target="user-1",
    )


def _sent(adapter):
    """Last activity handed to the mocked connector."""
    return adapter.send_activities.await_args.args[1][0]


class TestInitialize:
    @pytest.mark.asyncio
    async def test_registers_messages_route(self, client):
        router = APIRouter()
        await client.initialize(router, "https://bot.example/api/v1/bots/bot-a/mod/channel-teams")

        assert [r.path for r in router.routes] == ["/api/messages"]
        assert list(router.routes[0].methods) == ["POST"]

    @pytest.mark.asyncio
    async def test_warns_without_https(self, client, caplog):
        with caplog.at_level(logging.WARNING):
            await client.initialize(APIRouter(), "http://localhost:8000/mod/channel-teams")
        assert "HTTPS" in caplog.text

    @pytest.mark.asyncio
    async def test_no_warning_with_https(self, client, caplog):
        with caplog.at_level(logging.WARNING):
            await client.initialize(APIRouter(), "https://bot.example/mod/channel-teams")
        assert "HTTPS" not in caplog.text

    @pytest.mark.asyncio
    async def test_warns_without_app_id(self, bus, cache, caplog):
        client = TeamsChannelClient(bot_id="bot-a", config=TeamsConfig(), bus=bus, cache=cache)

        with caplog.at_level(logging.WARNING):
            await client.initialize(APIRouter(), "https://bot.example")

        assert "without authentication" in caplog.text

    @pytest.mark.asyncio
    async def test_builds_adapter_from_config(self, bus, cache):
        client = TeamsChannelClient(
            bot_id="bot-a",
            config=TeamsConfig(microsoft_app_id="app-id", microsoft_app_password="secret"),
            bus=bus,
            cache=cache,
        )
        await client.initialize(APIRouter(), "https://bot.example")

        assert isinstance(client.adapter, BotFrameworkAdapter)
        assert client.adapter.settings.app_id == "app-id"
        assert client.adapter.settings.app_password == "secret"


class TestParseActivity:
    def test_valid(self):
        activity = parse_activity(
            {
                "type": "message",
                "serviceUrl": "https://smba.trafficmanager.net/emea/",
                "conversation": {"id": "conv-1"},
                "from": {"id": "user-1"},
                "text": "hi",
            }
        )

        assert activity.conversation.id == "conv-1"
        assert activity.from_property.id == "user-1"

    @pytest.mark.parametrize(
        "body",
        [
            ["not", "an", "object"],
            {"text": "no type"},
            {"type": "message", "conversation": {"id": "conv-1"}},
            {"type": "message", "serviceUrl": "https://x"},
        ],
    )
    def test_invalid(self, body):
        with pytest.raises(InvalidActivityError):
            parse_activity(body)


class TestInbound:
    @pytest.mark.asyncio
    async def test_text_activity_records_and_emits(self, client, bus, cache, adapter, make_activity):
        received = AsyncMock()
        bus.set_default_handler(EventDirection.INCOMING, received)

        await client.on_turn(TurnContext(adapter, make_activity(text="hello there")))

        assert (await cache.resolve("conv-1")).service_url.startswith("https://")
        received.assert_awaited_once()
        event = received.await_args.args[0]
        assert event.bot_id == "bot-a"
        assert event.channel == "teams"
        assert event.direction == EventDirection.INCOMING
        assert event.payload == {"text": "hello there"}
        assert event.preview == "hello there"
        assert event.thread_id == "conv-1"
        assert event.target == "user-1"
        assert event.type == "message"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, ""])
    async def test_activity_without_text_dropped(
        self, client, bus, store, adapter, make_activity, text
    ):
        received = AsyncMock()
        bus.set_default_handler(EventDirection.INCOMING, received)

        await client.on_turn(
            TurnContext(adapter, make_activity(text=text, activity_type="messageReaction"))
        )

        received.assert_not_awaited()
        assert len(client.cache) == 0
        assert await store.get("bot-a", "conv-1") is None


class TestOutbound:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_type", ["file", "video", "login_prompt", "custom"])
    async def test_unsupported_kind_rejected(self, client, cache, adapter, make_reference, event_type):
        await cache.record("conv-1", make_reference())

        with pytest.raises(UnsupportedMessageKindError):
            await client.send_outgoing_event(_outgoing(event_type=event_type))

        adapter.send_activities.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_reference_warns(self, client, adapter, caplog):
        with caplog.at_level(logging.WARNING):
            result = await client.send_outgoing_event(_outgoing(thread_id="unknown-thread"))

        assert result is None
        assert "unknown-thread" in caplog.text
        adapter.send_activities.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_type_sent_as_text(self, client, cache, adapter, make_reference):
        await cache.record("conv-1", make_reference())

        await client.send_outgoing_event(
            _outgoing(event_type="default", payload={"type": "text", "text": "hi"})
        )

        activity = _sent(adapter)
        assert activity.type == "text"
        assert activity.text == "hi"

    @pytest.mark.asyncio
    async def test_typing_addressed_to_conversation(self, client, cache, adapter, make_reference):
        await cache.record("conv-1", make_reference())

        await client.send_outgoing_event(_outgoing(event_type="typing", payload={"type": "typing"}))

        activity = _sent(adapter)
        assert activity.type == "typing"
        assert activity.conversation.id == "conv-1"
        assert activity.from_property.id == "bot-1"
        assert activity.recipient.id == "user-1"
        assert activity.service_url == make_reference().service_url

    @pytest.mark.asyncio
    async def test_quick_replies_message(self, client, cache, adapter, make_reference):
        await cache.record("conv-1", make_reference())

        await client.send_outgoing_event(
            _outgoing(
                event_type="text",
                payload={
                    "type": "text",
                    "text": "Pick one",
                    "quick_replies": [
                        {"title": "Yes", "payload": "yes"},
                        {"title": "No", "payload": "no"},
                    ],
                },
            )
        )

        activity = _sent(adapter)
        assert activity.type == "message"
        assert activity.text == "Pick one"
        buttons = activity.attachments[0].content.buttons
        assert [b.value for b in buttons] == ["yes", "no"]

    @pytest.mark.asyncio
    async def test_loose_carousel_values_reach_connector(self, client, cache, adapter, make_reference):
        await cache.record("conv-1", make_reference())

        await client.send_outgoing_event(
            _outgoing(
                event_type="carousel",
                payload={
                    "type": "carousel",
                    "elements": [{"title": None, "picture": 7, "buttons": [{"type": "postback"}]}],
                },
            )
        )

        card = _sent(adapter).attachments[0].content
        assert card.title is None
        assert card.images[0].url == 7
        assert card.buttons[0].value is None

    @pytest.mark.asyncio
    async def test_reference_resolved_from_store(self, client, store, adapter, make_reference):
        await store.set("bot-a", "conv-1", make_reference().serialize())

        await client.send_outgoing_event(_outgoing())

        adapter.send_activities.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delivery_failure_logged_and_reraised(
        self, client, cache, adapter, make_reference, caplog
    ):
        await cache.record("conv-1", make_reference())
        error = NetworkTimeout("connector timed out")
        adapter.send_activities.side_effect = error

        with caplog.at_level(logging.ERROR):
            with pytest.raises(NetworkTimeout) as exc_info:
                await client.send_outgoing_event(_outgoing())

        assert exc_info.value is error
        assert "connector timed out" in caplog.text
        assert "payload of type text" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_text_payload_fails_at_delivery(
        self, client, cache, adapter, make_reference, caplog
    ):
        await cache.record("conv-1", make_reference())

        with caplog.at_level(logging.ERROR):
            with pytest.raises(Exception):
                await client.send_outgoing_event(
                    _outgoing(payload={"type": "text", "attachments": "not-a-list"})
                )

        assert "payload of type text" in caplog.text
        adapter.send_activities.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_initialized(self, bus, cache, make_reference):
        client = TeamsChannelClient(
            bot_id="bot-a", config=TeamsConfig(), bus=bus, cache=cache
        )
        await cache.record("conv-1", make_reference())

        with pytest.raises(ChannelNotConfiguredError):
            await client.send_outgoing_event(_outgoing())
