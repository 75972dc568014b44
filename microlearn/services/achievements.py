"""Session achievements awarded at the end of a practice session."""

from collections.abc import Callable

from microlearn.models import Achievement, SessionSummary

SESSION_ACHIEVEMENTS: list[tuple[str, str, str, int, Callable[[SessionSummary], bool]]] = [
    (
        "perfect_session",
        "Perfect Session",
        "Answered every challenge correctly",
        100,
        lambda s: s.accuracy == 100,
    ),
    (
        "speed_demon",
        "Speed Demon",
        "Averaged under 10 seconds per challenge",
        75,
        lambda s: s.average_time < 10,
    ),
    (
        "combo_master",
        "Combo Master",
        "Reached a 5x combo",
        50,
        lambda s: s.max_combo >= 5,
    ),
    (
        "first_try",
        "First Try Hero",
        "Finished without a single mistake",
        100,
        lambda s: s.wrong_answers == 0,
    ),
    (
        "quick_finish",
        "Lightning Fast",
        "Finished the session in under 2 minutes",
        50,
        lambda s: s.total_time < 120,
    ),
    (
        "perfect_combo",
        "Ultimate Combo",
        "Reached a 10x combo",
        150,
        lambda s: s.max_combo >= 10,
    ),
]


def is_eligible(summary: SessionSummary) -> bool:
    """Only sessions that ran to normal completion can earn achievements."""
    return (
        summary.completed_challenges > 0
        and summary.completed_challenges == summary.total_challenges
        and not summary.ended_early
        and not summary.was_quit
        and not summary.is_study_mode
    )


def check_achievements(summary: SessionSummary) -> list[Achievement]:
    """Return the achievements unlocked by a finished session, in table order."""
    if not is_eligible(summary):
        return []
    return [
        Achievement(id=achievement_id, title=title, description=description, xp_bonus=xp_bonus)
        for achievement_id, title, description, xp_bonus, condition in SESSION_ACHIEVEMENTS
        if condition(summary)
    ]
