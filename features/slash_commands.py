"""Built-in slash command handling.

Answers the commands advertised in core.commands.BOT_COMMANDS:
``/help`` lists them and ``/time`` tells the current UTC time.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from config import ConfigManager
from core.actions import ActionClient, MessageOptions
from core.commands import BOT_COMMANDS, SlashCommandSpec
from core.models import EventCategory, SlashCommandEvent
from core.registry import FeatureHandler

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SlashCommandsFeature(FeatureHandler):
    """Replies to /help and /time.

    Attributes:
        config_mgr: Configuration manager
        commands: Commands advertised to the protocol
        clock: Time source, replaceable in tests
    """

    category = EventCategory.SLASH_COMMAND

    def __init__(
        self,
        config_mgr: ConfigManager,
        commands: Sequence[SlashCommandSpec] = BOT_COMMANDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config_mgr = config_mgr
        self.commands = tuple(commands)
        self.clock = clock

    async def handles(self, event: SlashCommandEvent) -> bool:  # type: ignore[override]
        return bool(self.config_mgr.section("slash_commands").get("enabled", False))

    async def handle(self, client: ActionClient, event: SlashCommandEvent) -> None:  # type: ignore[override]
        if event.command == "help":
            text = self._help_text()
        elif event.command == "time":
            text = f"Current time: {self.clock().strftime('%Y-%m-%d %H:%M:%S %Z')}"
        else:
            logger.info("Unknown slash command /%s from event_id=%s", event.command, event.event_id)
            text = f"Unknown command `/{event.command}`. Try `/help`."

        await client.send_message(
            event.channel_id,
            text,
            MessageOptions(reply_id=event.event_id, thread_id=event.thread_id),
        )

    def _help_text(self) -> str:
        lines = ["**Available commands:**"]
        for cmd in self.commands:
            lines.append(f"• `/{cmd.name}` - {cmd.description}")
        return "\n".join(lines)
