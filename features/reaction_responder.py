import logging

from config import ConfigManager
from core.actions import ActionClient, MessageOptions
from core.models import EventCategory, ReactionEvent
from core.registry import FeatureHandler

logger = logging.getLogger(__name__)


class ReactionResponderFeature(FeatureHandler):
    """
    Replies in-thread when someone reacts with the configured reaction.
    """

    category = EventCategory.REACTION

    def __init__(self, config_mgr: ConfigManager) -> None:
        self.config_mgr = config_mgr

    async def handles(self, event: ReactionEvent) -> bool:  # type: ignore[override]
        cfg = self.config_mgr.section("reaction_responder")
        if not cfg.get("enabled", False):
            return False
        return event.reaction == cfg.get("reaction", "👋")

    async def handle(self, client: ActionClient, event: ReactionEvent) -> None:  # type: ignore[override]
        cfg = self.config_mgr.section("reaction_responder")
        await client.send_message(
            event.channel_id,
            cfg.get("reply", "I saw your wave! 👋"),
            MessageOptions(thread_id=event.target_event_id),
        )
