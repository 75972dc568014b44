"""Helpers shared by the CLI commands."""

from pathlib import Path

from microlearn.config import ConfigFile, MicrolearnConfig
from microlearn.config.config_file import DEFAULT_CONFIG_PATH


def load_config(args) -> MicrolearnConfig:
    """Load the configuration file named by --config (defaults when absent)."""
    path = Path(args.config) if getattr(args, "config", None) else DEFAULT_CONFIG_PATH
    return ConfigFile(path).load()
