"""Configuration classes for Microlearn."""

from dataclasses import dataclass, field
from pathlib import Path

REFILL_POLICIES = ("per_heart", "full_reset")


@dataclass(frozen=True)
class MicrolearnConfig:
    """Immutable configuration for the challenge session engine.

    All configuration is frozen (immutable) so that a running session
    can never observe a change to its scoring or refill rules.
    """

    # Backend settings
    api_base_url: str = "http://127.0.0.1:8000"
    auth_token: str | None = None
    api_timeout: float = 10.0  # Seconds per request
    completion_timeout: float = 5.0  # Shorter timeout for fire-and-forget reports
    api_retries: int = 2  # Extra attempts for idempotent reads

    # Session settings
    challenges_per_session: int = 10

    # Scoring settings
    base_correct_xp: int = 10
    # (minimum combo, multiplier percent); the highest tier reached wins
    combo_tiers: tuple[tuple[int, int], ...] = ((2, 120), (3, 150), (5, 200), (10, 300))
    max_combo_multiplier_percent: int = 300
    # (answer faster than N seconds, flat bonus), ascending by seconds
    speed_bonus_tiers: tuple[tuple[float, int], ...] = ((3.0, 10), (6.0, 5), (10.0, 2))

    # Heart settings
    heart_capacity: int = 5
    refill_policy: str = "per_heart"  # "per_heart" or "full_reset"
    refill_interval_seconds: int = 2160  # 36 minutes per heart (3 hours for a full pool of 5)

    # Statistics settings
    streak_grace_days: int = 0  # Missed days tolerated before a streak resets
    stats_max_pending: int = 50  # Queued writes kept while the store is down

    # Storage settings
    store_path: Path = field(default_factory=lambda: Path.home() / ".microlearn" / "store.db")

    def __post_init__(self):
        """Normalize JSON-loaded values and validate ranges."""
        if isinstance(self.store_path, str):
            object.__setattr__(self, "store_path", Path(self.store_path))
        # JSON round-trips tuples as lists
        object.__setattr__(
            self, "combo_tiers", tuple((int(c), int(p)) for c, p in self.combo_tiers)
        )
        object.__setattr__(
            self,
            "speed_bonus_tiers",
            tuple((float(s), int(b)) for s, b in self.speed_bonus_tiers),
        )

        if self.refill_policy not in REFILL_POLICIES:
            raise ValueError(
                f"Unknown refill_policy {self.refill_policy!r}, "
                f"expected one of: {', '.join(REFILL_POLICIES)}"
            )
        if self.heart_capacity <= 0:
            raise ValueError("heart_capacity must be positive")
        if self.refill_interval_seconds <= 0:
            raise ValueError("refill_interval_seconds must be positive")
        if self.challenges_per_session <= 0:
            raise ValueError("challenges_per_session must be positive")
        if self.streak_grace_days < 0:
            raise ValueError("streak_grace_days cannot be negative")
        if self.max_combo_multiplier_percent < 100:
            raise ValueError("max_combo_multiplier_percent must be at least 100")
