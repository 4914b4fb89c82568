"""File-based storage utilities for bot config and feature data.

Provides a YAMLFileStore class for reading and writing YAML files with
atomic write operations.
"""
import logging
import os
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


class YAMLFileStore:
    """Handles reading and writing one YAML file with atomic replacement.

    Attributes:
        path: Path to the YAML file
    """
    def __init__(self, path: str) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if the YAML file exists."""
        return os.path.exists(self.path)

    def read(self) -> Any:
        """Read and parse the YAML file.

        Returns:
            Parsed YAML data, or an empty dict if the file is missing,
            empty or unreadable
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            return {}
        except (OSError, yaml.YAMLError):
            logger.exception("Failed to read YAML file %s", self.path)
            return {}

    def write(self, data: Dict[str, Any]) -> None:
        """Write data to the YAML file atomically.

        Writes a sibling temporary file, then renames it over the target.
        The temporary file is removed if serialization fails.

        Args:
            data: Mapping to write as YAML
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
