"""Configuration management for Microlearn."""

from .config import REFILL_POLICIES, MicrolearnConfig
from .config_file import ConfigFile
from .defaults import create_default_config

__all__ = ["MicrolearnConfig", "REFILL_POLICIES", "ConfigFile", "create_default_config"]
