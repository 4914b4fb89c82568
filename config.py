"""Configuration management for the bot.

Provides a ConfigManager class that loads bot configuration from a YAML
file, writing sensible defaults on first run.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from storage.file_store import YAMLFileStore

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "bot": {
        "id": "local-bot",
        "display_name": "Local Bot",
    },
    "dispatch": {
        # None disables the per-handler timeout
        "handler_timeout_seconds": 30,
    },
    # channel id (or "*") -> user id -> permissions
    "permissions": {},
    "storage": {
        "path": "bot_data.yaml",
    },
    "keyword_responder": {
        "enabled": True,
        # evaluated in order; the first keyword found in the text wins
        "keywords": [
            {"keyword": "hello", "action": "reply", "value": "Hello there! 👋"},
            {"keyword": "ping", "action": "reply", "value": "Pong! 🏓"},
            {"keyword": "react", "action": "react", "value": "👍"},
        ],
    },
    "slash_commands": {
        "enabled": True,
    },
    "reaction_responder": {
        "enabled": True,
        "reaction": "👋",
        "reply": "I saw your wave! 👋",
    },
    "tip_ledger": {
        "enabled": True,
        "thank_you": "Thanks for the tip! 🙏",
    },
    "welcome": {
        "enabled": True,
        "message": "Welcome to the channel! 🎉",
    },
    "logging": {
        "level": "INFO",
    },
}


@dataclass
class ConfigManager:
    """Loads bot configuration with YAML file persistence.

    Attributes:
        path: Path to the YAML configuration file
    """
    path: str
    _store: YAMLFileStore = field(init=False)
    _config: Dict[str, Any] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self._store = YAMLFileStore(self.path)

    def load(self) -> Dict[str, Any]:
        """Load configuration from file, creating defaults if needed."""
        if not self._store.exists():
            logger.info("Config file %s not found, creating default config", self.path)
            self._store.write(DEFAULT_CONFIG)
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            return self._config

        data = self._store.read()
        if not isinstance(data, dict):
            logger.warning("Config file malformed, resetting to defaults")
            self._store.write(DEFAULT_CONFIG)
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            return self._config

        # Merge defaults with existing config (shallow)
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for k, v in data.items():
            merged[k] = v
        self._config = merged
        return self._config

    def get(self) -> Dict[str, Any]:
        """Get the current configuration dictionary."""
        return self._config

    def section(self, name: str) -> Dict[str, Any]:
        """Get one configuration section, or an empty dict."""
        value = self._config.get(name)
        return value if isinstance(value, dict) else {}
