"""Data model for answer scoring."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoreResult:
    """XP breakdown for a single answer."""

    base_xp: int
    speed_bonus: int
    multiplier_percent: int = 0

    @property
    def total_xp(self) -> int:
        return self.base_xp + self.speed_bonus
