"""Bot identity used to suppress self-originated events."""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BotIdentity:
    """The bot's own identity on the protocol.

    Attributes:
        bot_id: Opaque user identifier the bot acts as
        display_name: Presentation name, never used for comparisons
    """
    bot_id: str
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.bot_id or not self.bot_id.strip():
            raise ValueError("bot_id must be a non-empty identifier")

    def is_self(self, user_id: Optional[str]) -> bool:
        """Return True if ``user_id`` is the bot itself."""
        return user_id is not None and user_id == self.bot_id

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BotIdentity":
        bot_cfg = config.get("bot", {})
        return cls(
            bot_id=str(bot_cfg.get("id") or ""),
            display_name=str(bot_cfg.get("display_name") or ""),
        )
