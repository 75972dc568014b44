"""Console presenter for CLI output."""

from microlearn.models import DailyStats, RefillInfo, SessionSummary


def format_wait(seconds: int) -> str:
    """Render a wait time as e.g. '1h 05m' or '12m 30s'."""
    hours, remainder = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m {secs:02d}s"


class ConsolePresenter:
    """Present output to console (CLI implementation)."""

    def show_info(self, message: str) -> None:
        """Display an informational message."""
        print(message)

    def show_success(self, message: str) -> None:
        """Display a success message."""
        print(f"[OK] {message}")

    def show_warning(self, message: str) -> None:
        """Display a warning message."""
        print(f"[WARN] {message}")

    def show_error(self, message: str) -> None:
        """Display an error message."""
        print(f"[ERROR] {message}")

    def show_out_of_hearts(self, challenge_type: str, refill_info: RefillInfo | None) -> None:
        """Tell the user a heart pool is empty."""
        print(f"\n[HEARTS] Out of hearts for {challenge_type.replace('_', ' ').title()}")
        if refill_info is not None:
            print(f"  Next heart in {format_wait(refill_info.wait_seconds)}")

    def show_session_summary(self, summary: SessionSummary) -> None:
        """Display the result of a finalized session."""
        title = "Review Complete" if summary.is_study_mode else "Session Complete"
        if summary.ended_early:
            title = "Session Ended (out of hearts)"
        elif summary.was_quit:
            title = "Session Ended"

        print(f"\n{title}:")
        print(f"  Answered: {summary.completed_challenges}/{summary.total_challenges}")
        print(f"  Correct: {summary.correct_answers} ({summary.accuracy:.0f}%)")
        if summary.grade is not None:
            print(f"  Grade: {summary.grade.letter} - {summary.grade.message}")
        print(f"  Best combo: {summary.max_combo}")
        print(f"  Average time: {summary.average_time:.1f}s")

        if not summary.is_study_mode:
            print(f"  XP earned: {summary.total_xp_with_bonuses}")

        if summary.achievements:
            print("\nAchievements:")
            for achievement in summary.achievements:
                print(f"  {achievement.title} (+{achievement.xp_bonus} XP)")

        if summary.has_mistakes:
            print(f"\n{len(summary.incorrect_challenges)} challenges to review")

    def show_daily_stats(self, stats: DailyStats) -> None:
        """Display today's statistics."""
        print(f"\nToday ({stats.day}):")
        print(f"  Challenges: {stats.total_challenges}")
        print(f"  Correct: {stats.correct} ({stats.accuracy:.0f}%)")
        print(f"  XP: {stats.total_xp}")
        print(f"  Streak: {stats.streak.current} days (longest {stats.streak.longest})")
