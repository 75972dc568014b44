"""Null presenter for testing (no output)."""

from microlearn.models import DailyStats, RefillInfo, SessionSummary


class NullPresenter:
    """Present output to nowhere (testing implementation)."""

    def show_info(self, message: str) -> None:
        """Display an informational message (no-op)."""
        pass

    def show_success(self, message: str) -> None:
        """Display a success message (no-op)."""
        pass

    def show_warning(self, message: str) -> None:
        """Display a warning message (no-op)."""
        pass

    def show_error(self, message: str) -> None:
        """Display an error message (no-op)."""
        pass

    def show_out_of_hearts(self, challenge_type: str, refill_info: RefillInfo | None) -> None:
        """Tell the user a heart pool is empty (no-op)."""
        pass

    def show_session_summary(self, summary: SessionSummary) -> None:
        """Display the result of a finalized session (no-op)."""
        pass

    def show_daily_stats(self, stats: DailyStats) -> None:
        """Display today's statistics (no-op)."""
        pass
