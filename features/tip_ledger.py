"""Tip tallying feature.

Keeps per-receiver tip counts and totals in the injected key-value store
and thanks the sender when the bot itself was tipped.
"""
import logging

from config import ConfigManager
from core.actions import ActionClient, MessageOptions
from core.identity import BotIdentity
from core.models import EventCategory, TipEvent
from core.registry import FeatureHandler
from storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


def tip_count_key(receiver: str) -> str:
    return f"tips:{receiver.lower()}:count"


def tip_total_key(receiver: str, currency: str) -> str:
    return f"tips:{receiver.lower()}:{currency.lower()}:total"


class TipLedgerFeature(FeatureHandler):
    """Tallies tips by receiver address.

    Attributes:
        config_mgr: Configuration manager
        identity: The bot's identity, to recognize tips sent to the bot
        store: Key-value store holding the tallies
    """

    category = EventCategory.TIP

    def __init__(
        self,
        config_mgr: ConfigManager,
        identity: BotIdentity,
        store: KeyValueStore,
    ) -> None:
        self.config_mgr = config_mgr
        self.identity = identity
        self.store = store

    async def handles(self, event: TipEvent) -> bool:  # type: ignore[override]
        return bool(self.config_mgr.section("tip_ledger").get("enabled", False))

    async def handle(self, client: ActionClient, event: TipEvent) -> None:  # type: ignore[override]
        count = await self.store.incr(tip_count_key(event.receiver_address))
        total = await self.store.incr(
            tip_total_key(event.receiver_address, event.currency_address), event.amount
        )
        logger.info(
            "TipLedger: receiver=%s tips=%s total=%s currency=%s",
            event.receiver_address,
            count,
            total,
            event.currency_address,
        )

        if event.receiver_address.lower() != self.identity.bot_id.lower():
            return
        cfg = self.config_mgr.section("tip_ledger")
        await client.send_message(
            event.channel_id,
            cfg.get("thank_you", "Thanks for the tip! 🙏"),
            MessageOptions(reply_id=event.target_event_id),
        )
