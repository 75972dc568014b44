"""Protocol for reporting completions and finished sessions."""

from typing import Protocol

from microlearn.models import SessionSummary


class CompletionReporter(Protocol):
    """Fire-and-forget reporting of progress to the backend.

    The engine never waits on these calls for progression; failures are
    logged and dropped.
    """

    async def report_completion(
        self, challenge_id: str, is_correct: bool, time_spent: float
    ) -> None:
        """Report a single answered challenge."""
        ...

    async def report_session(self, summary: SessionSummary) -> None:
        """Report a finalized session."""
        ...
