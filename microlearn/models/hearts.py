"""Data models for the heart (focus energy) system."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class HeartPool:
    """Consumable hearts for one challenge type."""

    challenge_type: str
    remaining: int
    capacity: int
    next_refill_at: datetime | None = None

    @property
    def is_exhausted(self) -> bool:
        """True when no heart is left."""
        return self.remaining == 0

    @property
    def is_full(self) -> bool:
        """True when the pool is at capacity."""
        return self.remaining >= self.capacity


@dataclass(frozen=True)
class RefillInfo:
    """When the next heart becomes available."""

    next_refill_at: datetime
    wait_seconds: int


@dataclass(frozen=True)
class HeartResponse:
    """Result of consuming a heart."""

    out_of_hearts: bool
    hearts_remaining: int
    refill_info: RefillInfo | None = None
