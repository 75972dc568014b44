"""Data models for daily and per-category statistics."""

from dataclasses import dataclass, field


@dataclass
class StreakInfo:
    """Consecutive-day practice streak."""

    current: int = 0
    longest: int = 0
    last_active_day: str | None = None


@dataclass
class DailyStats:
    """Counters for a single calendar day (local date)."""

    day: str
    total_challenges: int = 0
    correct: int = 0
    total_xp: int = 0
    streak: StreakInfo = field(default_factory=StreakInfo)

    @property
    def incorrect(self) -> int:
        return self.total_challenges - self.correct

    @property
    def accuracy(self) -> float:
        """Accuracy in percent, derived from the stored counters."""
        if self.total_challenges == 0:
            return 0.0
        return self.correct / self.total_challenges * 100


@dataclass
class CategoryStats:
    """Counters for one (language, level, challenge type) category."""

    language: str
    level: str
    category: str
    completed: int = 0
    correct: int = 0
    total: int = 0
    last_practiced: str | None = None

    @property
    def accuracy(self) -> float:
        """Accuracy in percent, derived from the stored counters."""
        if self.completed == 0:
            return 0.0
        return self.correct / self.completed * 100
