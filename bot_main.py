"""Main entry point for running the bot locally.

This module wires configuration, bot identity, handler registry and
features, then replays decoded envelopes (one JSON object per line) from
the file named by BOT_ENVELOPES, or stdin. Outbound actions go through
the in-process LocalActionClient and are logged.
"""
import json
import logging
import os
import sys
from typing import Any, Optional

import trio

from config import ConfigManager
from core.client import LocalActionClient
from core.dispatcher import Dispatcher
from core.identity import BotIdentity
from core.permissions import StaticPermissionSource
from core.registry import HandlerRegistry
from core.router import EventRouter
from features.keyword_responder import KeywordResponderFeature
from features.reaction_responder import ReactionResponderFeature
from features.slash_commands import SlashCommandsFeature
from features.tip_ledger import TipLedgerFeature
from features.welcome import WelcomeFeature
from storage.kv_store import KeyValueStore, YAMLKeyValueStore


logger = logging.getLogger(__name__)


def build_dispatcher(
    config_mgr: ConfigManager,
    store: Optional[KeyValueStore] = None,
    bot_id: Optional[str] = None,
) -> Dispatcher:
    """Set up identity, registry, features and client from config.

    Registration happens here, before any event is accepted.
    """
    config = config_mgr.get()
    identity = BotIdentity.from_config(config)
    if bot_id:
        identity = BotIdentity(bot_id=bot_id, display_name=identity.display_name)

    if store is None:
        store = YAMLKeyValueStore(config_mgr.section("storage").get("path", "bot_data.yaml"))

    client = LocalActionClient(
        identity=identity,
        permissions=StaticPermissionSource(config_mgr.section("permissions")),
    )

    registry = HandlerRegistry()
    features = [
        KeywordResponderFeature(config_mgr),
        SlashCommandsFeature(config_mgr),
        ReactionResponderFeature(config_mgr),
        TipLedgerFeature(config_mgr, identity, store),
        WelcomeFeature(config_mgr),
    ]
    for f in features:
        registry.register_feature(f)
    registry.freeze()

    return Dispatcher(
        registry=registry,
        client=client,
        router=EventRouter(identity),
        handler_timeout=config_mgr.section("dispatch").get("handler_timeout_seconds"),
    )


def decode_line(line: str) -> Any:
    """Parse one replayed line; non-JSON lines are passed on as raw text."""
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        logger.warning("Envelope line is not JSON, dispatching as raw event")
        return line


async def replay(dispatcher: Dispatcher, source: Any) -> int:
    """Dispatch every envelope read from ``source``.

    Each envelope gets its own task, started in arrival order, so a slow
    handler does not hold up later envelopes.

    Returns:
        Number of envelopes read
    """
    count = 0
    async with trio.open_nursery() as nursery:
        async for line in source:
            line = line.strip()
            if not line:
                continue
            count += 1
            nursery.start_soon(dispatcher.dispatch_envelope, decode_line(line))
    return count


async def main() -> None:
    """Initialize the bot and replay envelopes."""
    config_path = os.environ.get("BOT_CONFIG", "config.yaml")
    config_mgr = ConfigManager(config_path)
    config_mgr.load()

    # Basic logging setup
    level = str(config_mgr.section("logging").get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting bot with config %s", config_path)

    dispatcher = build_dispatcher(config_mgr, bot_id=os.environ.get("BOT_ID"))
    logger.info(
        "Registered %s handlers for %s",
        len(dispatcher.registry),
        ", ".join(c.value for c in dispatcher.registry.categories()),
    )

    envelopes_path = os.environ.get("BOT_ENVELOPES")
    if envelopes_path:
        async with await trio.open_file(envelopes_path, "r", encoding="utf-8") as f:
            count = await replay(dispatcher, f)
    else:
        count = await replay(dispatcher, trio.wrap_file(sys.stdin))
    logger.info("Processed %s envelopes", count)


def cli() -> None:
    trio.run(main)


if __name__ == "__main__":
    cli()
