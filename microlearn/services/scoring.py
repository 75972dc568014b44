"""XP scoring for challenge answers.

Pure functions: every result depends only on the arguments and the
(frozen) configuration, so identical inputs always give identical scores.
"""

import math

from microlearn.config import MicrolearnConfig
from microlearn.models import Grade, ScoreResult

COMBO_MILESTONES = {
    3: "On Fire!",
    5: "Unstoppable!",
    7: "Amazing!",
    10: "LEGENDARY!",
}

GRADE_THRESHOLDS = [
    (100.0, "S", "Perfect!"),
    (90.0, "A", "Excellent!"),
    (80.0, "B", "Great!"),
    (70.0, "C", "Good!"),
    (60.0, "D", "Keep Practicing!"),
]

_DEFAULT_CONFIG = MicrolearnConfig()


def combo_multiplier_percent(combo: int, config: MicrolearnConfig = _DEFAULT_CONFIG) -> int:
    """Multiplier (in percent) for a combo streak.

    The highest tier whose threshold the combo reaches wins; below the
    first tier the multiplier is 100. Capped at max_combo_multiplier_percent.
    """
    percent = 100
    for threshold, tier_percent in sorted(config.combo_tiers):
        if combo >= threshold:
            percent = tier_percent
    return min(percent, config.max_combo_multiplier_percent)


def speed_bonus(elapsed_seconds: float, config: MicrolearnConfig = _DEFAULT_CONFIG) -> int:
    """Flat bonus for answering faster than a tier threshold."""
    for threshold, bonus in sorted(config.speed_bonus_tiers):
        if elapsed_seconds < threshold:
            return bonus
    return 0


def compute_score(
    is_correct: bool,
    elapsed_seconds: float,
    combo: int,
    config: MicrolearnConfig = _DEFAULT_CONFIG,
) -> ScoreResult:
    """Compute the XP earned by one answer.

    Args:
        is_correct: Whether the answer was correct
        elapsed_seconds: Time taken to answer
        combo: Consecutive correct answers including this one
        config: Scoring configuration

    Returns:
        ScoreResult; all zero for an incorrect answer

    Raises:
        ValueError: If combo is negative or elapsed_seconds is negative or NaN
    """
    if combo < 0:
        raise ValueError(f"combo cannot be negative: {combo}")
    if math.isnan(elapsed_seconds) or elapsed_seconds < 0:
        raise ValueError(f"elapsed_seconds must be a non-negative number: {elapsed_seconds}")

    if not is_correct:
        return ScoreResult(base_xp=0, speed_bonus=0, multiplier_percent=0)

    percent = combo_multiplier_percent(combo, config)
    return ScoreResult(
        base_xp=config.base_correct_xp * percent // 100,
        speed_bonus=speed_bonus(elapsed_seconds, config),
        multiplier_percent=percent,
    )


def combo_milestone(combo: int) -> str | None:
    """Celebration message when a combo hits a milestone, else None."""
    return COMBO_MILESTONES.get(combo)


def session_grade(correct_answers: int, total_challenges: int) -> Grade:
    """Letter grade for a session's accuracy."""
    if total_challenges <= 0:
        return Grade(letter="F", message="Keep Going!")
    accuracy = correct_answers / total_challenges * 100
    for threshold, letter, message in GRADE_THRESHOLDS:
        if accuracy >= threshold:
            return Grade(letter=letter, message=message)
    return Grade(letter="F", message="Keep Going!")
