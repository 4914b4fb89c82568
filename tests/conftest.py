"""Shared fixtures for the bot core tests."""

from datetime import datetime, timezone

import pytest

from config import ConfigManager
from core.client import LocalActionClient
from core.dispatcher import Dispatcher
from core.identity import BotIdentity
from core.models import MessageEvent
from core.registry import HandlerRegistry
from core.router import EventRouter

BOT_ID = "0xb07b07b07b07b07b07b07b07b07b07b07b07b07b"
CREATED_AT_MS = 1_700_000_000_000


@pytest.fixture
def identity():
    return BotIdentity(bot_id=BOT_ID, display_name="Test Bot")


@pytest.fixture
def config_mgr(tmp_path):
    mgr = ConfigManager(str(tmp_path / "config.yaml"))
    mgr.load()
    return mgr


@pytest.fixture
def client(identity):
    return LocalActionClient(identity)


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def dispatcher(registry, client, identity):
    return Dispatcher(registry=registry, client=client, router=EventRouter(identity))


@pytest.fixture
def make_envelope():
    """Factory for decoded envelopes with sensible base fields."""

    def _make(event_type="message", **fields):
        envelope = {
            "type": event_type,
            "userId": "user-1",
            "spaceId": "space-1",
            "channelId": "channel-1",
            "eventId": "event-1",
            "createdAt": CREATED_AT_MS,
        }
        envelope.update(fields)
        return envelope

    return _make


@pytest.fixture
def make_message():
    """Factory for MessageEvent instances."""

    def _make(text, **fields):
        base = {
            "user_id": "user-1",
            "space_id": "space-1",
            "channel_id": "channel-1",
            "event_id": "event-1",
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        base.update(fields)
        return MessageEvent(text=text, **base)

    return _make
