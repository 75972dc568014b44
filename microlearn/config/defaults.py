"""Default configuration values for Microlearn."""

from .config import MicrolearnConfig


def create_default_config(**overrides) -> MicrolearnConfig:
    """Create a default configuration with optional overrides.

    Args:
        **overrides: Keyword arguments to override default values

    Returns:
        MicrolearnConfig with defaults and overrides applied

    Example:
        config = create_default_config(
            heart_capacity=10,
            refill_policy="full_reset",
        )
    """
    return MicrolearnConfig(**overrides)
