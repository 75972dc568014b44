"""Data models for Microlearn."""

from .achievement import Achievement, Grade
from .challenge import Challenge, ChallengeType
from .hearts import HeartPool, HeartResponse, RefillInfo
from .score import ScoreResult
from .session import (
    AnswerRecord,
    AnswerResult,
    ChallengeSession,
    SessionParams,
    SessionSource,
    SessionState,
    SessionSummary,
)
from .stats import CategoryStats, DailyStats, StreakInfo

__all__ = [
    "Challenge",
    "ChallengeType",
    "HeartPool",
    "HeartResponse",
    "RefillInfo",
    "ScoreResult",
    "ChallengeSession",
    "SessionParams",
    "SessionSource",
    "SessionState",
    "SessionSummary",
    "AnswerRecord",
    "AnswerResult",
    "DailyStats",
    "StreakInfo",
    "CategoryStats",
    "Achievement",
    "Grade",
]
