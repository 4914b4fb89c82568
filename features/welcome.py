from config import ConfigManager
from core.actions import ActionClient
from core.models import EventCategory, MembershipChangeEvent, MembershipKind
from core.registry import FeatureHandler


class WelcomeFeature(FeatureHandler):
    """
    Greets users joining a channel.
    """

    category = EventCategory.MEMBERSHIP_CHANGE

    def __init__(self, config_mgr: ConfigManager) -> None:
        self.config_mgr = config_mgr

    async def handles(self, event: MembershipChangeEvent) -> bool:  # type: ignore[override]
        if not self.config_mgr.section("welcome").get("enabled", False):
            return False
        return event.kind is MembershipKind.JOIN

    async def handle(self, client: ActionClient, event: MembershipChangeEvent) -> None:  # type: ignore[override]
        message = self.config_mgr.section("welcome").get("message", "Welcome to the channel! 🎉")
        await client.send_message(event.channel_id, message)
