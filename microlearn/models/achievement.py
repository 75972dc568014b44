"""Data models for session achievements and grades."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Achievement:
    """An achievement unlocked by a single session."""

    id: str
    title: str
    description: str
    xp_bonus: int = 0


@dataclass(frozen=True)
class Grade:
    """Letter grade for a session's accuracy."""

    letter: str
    message: str
