"""Tests for the example features riding on the dispatch core."""

from datetime import datetime, timezone

import pytest

from core.commands import BOT_COMMANDS, SlashCommandSpec, validate_commands
from core.models import (
    MembershipChangeEvent,
    MembershipKind,
    ReactionEvent,
    SlashCommandEvent,
    TipEvent,
)
from features.keyword_responder import KeywordResponderFeature
from features.reaction_responder import ReactionResponderFeature
from features.slash_commands import SlashCommandsFeature
from features.tip_ledger import TipLedgerFeature, tip_count_key, tip_total_key
from features.welcome import WelcomeFeature
from storage.kv_store import MemoryKeyValueStore
from utils.matching import first_keyword_match, normalize_phrase

BASE = {
    "user_id": "user-1",
    "space_id": "space-1",
    "channel_id": "channel-1",
    "event_id": "event-7",
    "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
}


async def run_feature(feature, client, event):
    if await feature.handles(event):
        await feature.handle(client, event)


class TestMatching:
    def test_normalize(self):
        assert normalize_phrase("  Hello World ") == "hello world"

    def test_first_match_in_table_order(self):
        table = [("hello", 1), ("ping", 2)]
        assert first_keyword_match("PING and HELLO", table) == ("hello", 1)

    def test_no_match(self):
        assert first_keyword_match("nothing here", [("hello", 1)]) is None

    def test_empty_keyword_never_matches(self):
        assert first_keyword_match("anything", [("  ", 1)]) is None


class TestKeywordResponder:
    @pytest.mark.parametrize("text", ["HELLO there", "hello there", "Well, HeLLo!"])
    async def test_case_insensitive(self, config_mgr, client, make_message, text):
        await run_feature(KeywordResponderFeature(config_mgr), client, make_message(text))
        (action,) = client.actions
        assert action.action == "send_message"
        assert action.text == "Hello there! 👋"
        assert action.opts.reply_id == "event-1"

    async def test_first_match_wins_with_one_action(self, config_mgr, client, make_message):
        await run_feature(
            KeywordResponderFeature(config_mgr), client, make_message("ping, hello, react")
        )
        assert len(client.actions) == 1
        assert client.actions[0].text == "Hello there! 👋"

    async def test_react_action(self, config_mgr, client, make_message):
        await run_feature(KeywordResponderFeature(config_mgr), client, make_message("please React"))
        (action,) = client.actions
        assert action.action == "send_reaction"
        assert action.reaction == "👍"
        assert action.event_id == "event-1"

    async def test_no_keyword_no_action(self, config_mgr, client, make_message):
        await run_feature(KeywordResponderFeature(config_mgr), client, make_message("good night"))
        assert client.actions == []

    async def test_disabled(self, config_mgr, client, make_message):
        config_mgr.get()["keyword_responder"]["enabled"] = False
        feature = KeywordResponderFeature(config_mgr)
        assert await feature.handles(make_message("hello")) is False

    async def test_invalid_rules_skipped(self, config_mgr, client, make_message):
        config_mgr.get()["keyword_responder"]["keywords"] = [
            {"keyword": "hello"},
            {"keyword": "hello", "action": "shout", "value": "HI"},
            {"keyword": "hello", "action": "reply", "value": "hi"},
        ]
        await run_feature(KeywordResponderFeature(config_mgr), client, make_message("hello"))
        assert [a.text for a in client.actions] == ["hi"]


class TestSlashCommands:
    def command(self, name):
        return SlashCommandEvent(command=name, **BASE)

    async def test_help_lists_commands(self, config_mgr, client):
        await run_feature(SlashCommandsFeature(config_mgr), client, self.command("help"))
        (action,) = client.actions
        for cmd in BOT_COMMANDS:
            assert f"/{cmd.name}" in action.text
        assert action.opts.reply_id == "event-7"

    async def test_time(self, config_mgr, client):
        clock = lambda: datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)  # noqa: E731
        feature = SlashCommandsFeature(config_mgr, clock=clock)
        await run_feature(feature, client, self.command("time"))
        assert client.actions[0].text == "Current time: 2024-03-04 05:06:07 UTC"

    async def test_unknown_command(self, config_mgr, client):
        await run_feature(SlashCommandsFeature(config_mgr), client, self.command("dance"))
        assert "Unknown command `/dance`" in client.actions[0].text


class TestCommandList:
    def test_defaults(self):
        assert [c.name for c in BOT_COMMANDS] == ["help", "time"]

    def test_invalid_name(self):
        with pytest.raises(ValueError):
            SlashCommandSpec(name="/help", description="Help")

    def test_duplicates(self):
        spec = SlashCommandSpec(name="help", description="Help")
        with pytest.raises(ValueError):
            validate_commands([spec, spec])


class TestReactionResponder:
    async def test_wave(self, config_mgr, client):
        event = ReactionEvent(reaction="👋", target_event_id="event-0", **BASE)
        await run_feature(ReactionResponderFeature(config_mgr), client, event)
        (action,) = client.actions
        assert action.text == "I saw your wave! 👋"
        assert action.opts.thread_id == "event-0"

    async def test_other_reaction_ignored(self, config_mgr, client):
        event = ReactionEvent(reaction="🔥", target_event_id="event-0", **BASE)
        await run_feature(ReactionResponderFeature(config_mgr), client, event)
        assert client.actions == []


class TestTipLedger:
    def tip(self, receiver, amount=100):
        return TipEvent(
            target_event_id="event-0",
            sender_address="0xSender",
            receiver_address=receiver,
            amount=amount,
            currency_address="0xETH",
            **BASE,
        )

    async def test_tallies_in_store(self, config_mgr, identity, client):
        store = MemoryKeyValueStore()
        feature = TipLedgerFeature(config_mgr, identity, store)

        await run_feature(feature, client, self.tip("0xAlice", 100))
        await run_feature(feature, client, self.tip("0xalice", 50))

        assert await store.get(tip_count_key("0xAlice")) == 2
        assert await store.get(tip_total_key("0xAlice", "0xETH")) == 150
        assert client.actions == []

    async def test_thanks_when_bot_is_tipped(self, config_mgr, identity, client):
        feature = TipLedgerFeature(config_mgr, identity, MemoryKeyValueStore())
        await run_feature(feature, client, self.tip(identity.bot_id.upper()))
        (action,) = client.actions
        assert action.text == "Thanks for the tip! 🙏"
        assert action.opts.reply_id == "event-0"


class TestWelcome:
    async def test_join_greeted(self, config_mgr, client):
        event = MembershipChangeEvent(kind=MembershipKind.JOIN, **BASE)
        await run_feature(WelcomeFeature(config_mgr), client, event)
        assert client.actions[0].text == "Welcome to the channel! 🎉"

    async def test_leave_ignored(self, config_mgr, client):
        event = MembershipChangeEvent(kind=MembershipKind.LEAVE, **BASE)
        await run_feature(WelcomeFeature(config_mgr), client, event)
        assert client.actions == []
