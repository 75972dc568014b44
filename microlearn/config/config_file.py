"""JSON persistence for the Microlearn configuration."""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .config import MicrolearnConfig
from .defaults import create_default_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".microlearn" / "config.json"


class ConfigFile:
    """Load and save a MicrolearnConfig as JSON.

    Falls back to the default configuration when the file is missing or
    invalid, so a broken config file never prevents a session from starting.
    """

    def __init__(self, path: Path = DEFAULT_CONFIG_PATH):
        self.path = path

    def exists(self) -> bool:
        """Check if the configuration file exists."""
        return self.path.exists()

    def save(self, config: MicrolearnConfig) -> None:
        """Write configuration to the JSON file.

        Raises:
            OSError: If unable to create the directory or write the file
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data: dict[str, Any] = asdict(config)
        data["store_path"] = str(config.store_path)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def load(self, **overrides) -> MicrolearnConfig:
        """Load configuration, applying keyword overrides on top of the file.

        Returns:
            Loaded configuration, or defaults if the file is missing or invalid
        """
        if not self.path.exists():
            return create_default_config(**overrides)

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be an object")
            data.update(overrides)
            return MicrolearnConfig(**data)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Invalid config file {self.path}, using defaults: {e}")
            return create_default_config(**overrides)

    def delete(self) -> None:
        """Delete the configuration file if present."""
        if self.path.exists():
            self.path.unlink()
