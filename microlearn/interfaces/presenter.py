"""Presenter protocol for output abstraction."""

from typing import Protocol

from microlearn.models import DailyStats, RefillInfo, SessionSummary


class PresenterProtocol(Protocol):
    """Interface for presenting output to the user (CLI, app shell, etc).

    Only user-facing events go through the presenter: running out of
    hearts, content that could not be fetched, and end-of-session results.
    Everything else degrades silently into the log.
    """

    def show_info(self, message: str) -> None:
        """Display an informational message.

        Args:
            message: The informational message to display
        """
        ...

    def show_success(self, message: str) -> None:
        """Display a success message.

        Args:
            message: The success message to display
        """
        ...

    def show_warning(self, message: str) -> None:
        """Display a warning message.

        Args:
            message: The warning message to display
        """
        ...

    def show_error(self, message: str) -> None:
        """Display an error message.

        Args:
            message: The error message to display
        """
        ...

    def show_out_of_hearts(self, challenge_type: str, refill_info: RefillInfo | None) -> None:
        """Tell the user a heart pool is empty.

        Args:
            challenge_type: API name of the exhausted challenge type
            refill_info: When the next heart arrives, if known
        """
        ...

    def show_session_summary(self, summary: SessionSummary) -> None:
        """Display the result of a finalized session.

        Args:
            summary: The session summary to display
        """
        ...

    def show_daily_stats(self, stats: DailyStats) -> None:
        """Display today's statistics.

        Args:
            stats: The daily statistics to display
        """
        ...
