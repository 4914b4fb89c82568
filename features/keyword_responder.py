import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from config import ConfigManager
from core.actions import ActionClient, MessageOptions
from core.models import EventCategory, MessageEvent
from core.registry import FeatureHandler
from utils.matching import first_keyword_match

logger = logging.getLogger(__name__)

ACTIONS = ("reply", "react")


@dataclass
class KeywordRule:
    keyword: str
    action: str  # "reply" or "react"
    value: str


class KeywordResponderFeature(FeatureHandler):
    """
    Answers messages containing a configured keyword. Only the first
    matching keyword fires, with exactly one outbound action.
    """

    category = EventCategory.MESSAGE

    def __init__(self, config_mgr: ConfigManager) -> None:
        self.config_mgr = config_mgr

    def _load_rules(self) -> List[KeywordRule]:
        cfg = self.config_mgr.section("keyword_responder")
        if not cfg.get("enabled", False):
            return []
        rules_conf: List[Dict[str, Any]] = cfg.get("keywords", [])
        rules: List[KeywordRule] = []
        for r in rules_conf:
            try:
                rule = KeywordRule(
                    keyword=str(r["keyword"]),
                    action=str(r["action"]),
                    value=str(r["value"]),
                )
            except (KeyError, TypeError):
                logger.warning("Invalid keyword rule in config: %s", r)
                continue
            if rule.action not in ACTIONS:
                logger.warning("Unknown keyword action %r in rule %s", rule.action, r)
                continue
            rules.append(rule)
        return rules

    async def handles(self, event: MessageEvent) -> bool:  # type: ignore[override]
        return bool(event.text.strip()) and bool(self._load_rules())

    async def handle(self, client: ActionClient, event: MessageEvent) -> None:  # type: ignore[override]
        rules = self._load_rules()
        match = first_keyword_match(event.text, [(r.keyword, r) for r in rules])
        if match is None:
            return

        keyword, rule = match
        logger.info(
            "KeywordResponder: keyword %r matched event_id=%s, action=%s",
            keyword,
            event.event_id,
            rule.action,
        )
        if rule.action == "react":
            await client.send_reaction(event.channel_id, event.event_id, rule.value)
        else:
            await client.send_message(
                event.channel_id,
                rule.value,
                MessageOptions(reply_id=event.event_id, thread_id=event.thread_id),
            )
