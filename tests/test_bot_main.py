"""End-to-end tests for bot_main wiring and envelope replay."""

import json

from bot_main import build_dispatcher, decode_line, replay
from core.models import EventCategory
from storage.kv_store import MemoryKeyValueStore


async def lines(*items):
    for item in items:
        yield item


class TestBuildDispatcher:
    def test_features_registered_and_frozen(self, config_mgr):
        dispatcher = build_dispatcher(config_mgr, store=MemoryKeyValueStore())
        registry = dispatcher.registry
        assert registry.frozen
        assert set(registry.categories()) == {
            EventCategory.MESSAGE,
            EventCategory.SLASH_COMMAND,
            EventCategory.REACTION,
            EventCategory.TIP,
            EventCategory.MEMBERSHIP_CHANGE,
        }
        assert dispatcher.handler_timeout == 30

    def test_bot_id_override(self, config_mgr):
        dispatcher = build_dispatcher(config_mgr, store=MemoryKeyValueStore(), bot_id="bot-x")
        assert dispatcher.router.identity.bot_id == "bot-x"


class TestReplay:
    async def test_replays_envelopes(self, config_mgr, make_envelope):
        dispatcher = build_dispatcher(config_mgr, store=MemoryKeyValueStore())
        bot_id = dispatcher.router.identity.bot_id
        count = await replay(
            dispatcher,
            lines(
                json.dumps(make_envelope(message="Hello bot", eventId="e-1")) + "\n",
                "\n",
                json.dumps(make_envelope("slash_command", command="help", eventId="e-2")),
                json.dumps(make_envelope(message="hello", userId=bot_id, eventId="e-3")),
                "not json at all",
            ),
        )

        assert count == 4
        client = dispatcher.client
        replies = sorted(a.opts.reply_id for a in client.actions_of("send_message"))
        assert replies == ["e-1", "e-2"]

    def test_decode_line(self):
        assert decode_line('{"type": "message"}') == {"type": "message"}
        assert decode_line("garbage") == "garbage"
