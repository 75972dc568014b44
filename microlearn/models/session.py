"""Data models for challenge sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .achievement import Achievement, Grade
from .challenge import Challenge, ChallengeType
from .hearts import HeartPool, HeartResponse
from .score import ScoreResult


class SessionSource(Enum):
    """Where the session's challenges come from."""

    REFERENCE = "reference"
    LEARNING_PLAN = "learning_plan"


class SessionState(Enum):
    """Lifecycle state of a challenge session."""

    IDLE = "idle"
    ACTIVE = "active"
    COMPLETING = "completing"
    EXHAUSTED_EARLY = "exhausted_early"
    QUIT_REQUESTED = "quit_requested"
    FINALIZED = "finalized"


@dataclass
class SessionParams:
    """Parameters for starting a session."""

    user_id: str
    language: str
    level: str
    challenge_type: ChallengeType
    source: SessionSource = SessionSource.REFERENCE
    # Review sessions replay exactly these challenges, in this order
    specific_challenges: list[Challenge] | None = None
    is_study_mode: bool = False


@dataclass
class AnswerRecord:
    """A recorded answer within a session."""

    challenge_id: str
    is_correct: bool
    time_spent: float
    xp_earned: int = 0
    combo_at_time: int = 0


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of ChallengeSessionEngine.answer."""

    challenge_id: str
    is_correct: bool
    score: ScoreResult
    heart_response: HeartResponse | None
    combo: int
    state: SessionState
    defers_advance: bool = False


@dataclass
class ChallengeSession:
    """State of one practice session.

    Owned by ChallengeSessionEngine; presentation code reads it but must go
    through the engine to change it.
    """

    id: str
    user_id: str
    language: str
    level: str
    challenge_type: ChallengeType
    source: SessionSource
    challenges: tuple[Challenge, ...]
    current_index: int = 0
    completed_challenges: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    current_combo: int = 0
    max_combo: int = 0
    total_xp: int = 0
    incorrect_challenges: list[Challenge] = field(default_factory=list)
    answers: list[AnswerRecord] = field(default_factory=list)
    heart_pool: HeartPool | None = None
    last_heart_response: HeartResponse | None = None
    is_study_mode: bool = False
    ended_early: bool = False
    was_quit: bool = False
    is_active: bool = True
    is_paused: bool = False
    state: SessionState = SessionState.ACTIVE
    started_at: datetime = field(default_factory=datetime.now)
    challenge_started_at: datetime | None = None
    paused_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def total_challenges(self) -> int:
        return len(self.challenges)

    @property
    def current_challenge(self) -> Challenge | None:
        """The challenge under the cursor, or None past the end."""
        if self.current_index >= len(self.challenges):
            return None
        return self.challenges[self.current_index]

    @property
    def current_answered(self) -> bool:
        """Whether the challenge under the cursor already has an answer."""
        return self.completed_challenges > self.current_index

    @property
    def is_last_challenge(self) -> bool:
        return self.current_index >= len(self.challenges) - 1


@dataclass
class SessionSummary:
    """Final statistics of a finalized session."""

    session_id: str
    user_id: str
    language: str
    level: str
    challenge_type: ChallengeType
    source: SessionSource
    total_challenges: int
    completed_challenges: int
    correct_answers: int
    wrong_answers: int
    total_xp: int
    max_combo: int
    average_time: float
    total_time: float
    incorrect_challenges: list[Challenge] = field(default_factory=list)
    ended_early: bool = False
    was_quit: bool = False
    is_study_mode: bool = False
    achievements: list[Achievement] = field(default_factory=list)
    answer_times: list[float] = field(default_factory=list)
    grade: Grade | None = None

    @property
    def accuracy(self) -> float:
        """Percentage of answered challenges that were correct."""
        if self.completed_challenges == 0:
            return 0.0
        return self.correct_answers / self.completed_challenges * 100

    @property
    def total_xp_with_bonuses(self) -> int:
        """XP from answers plus achievement bonuses."""
        return self.total_xp + sum(a.xp_bonus for a in self.achievements)

    @property
    def has_mistakes(self) -> bool:
        return len(self.incorrect_challenges) > 0
