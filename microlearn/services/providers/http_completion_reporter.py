"""Fire-and-forget progress reports to the learning backend."""

import asyncio
import logging

from microlearn.config import MicrolearnConfig
from microlearn.models import SessionSummary

from .api_client import ApiClient

logger = logging.getLogger(__name__)


class HttpCompletionReporter:
    """Report answered challenges and finished sessions.

    Implements CompletionReporter protocol. Uses the shorter
    ``completion_timeout`` since nothing waits on these calls.
    """

    def __init__(self, config: MicrolearnConfig, client: ApiClient | None = None):
        self.config = config
        self.client = client or ApiClient(config, timeout=config.completion_timeout)

    async def report_completion(
        self, challenge_id: str, is_correct: bool, time_spent: float
    ) -> None:
        """Report one answered challenge.

        Raises:
            RemoteServiceError: If the backend rejects or never receives the report
        """
        payload = {
            "challenge_id": challenge_id,
            "correct": is_correct,
            "time_spent": round(time_spent, 2),
        }
        await asyncio.to_thread(
            self.client.post, f"/api/challenges/{challenge_id}/complete", payload
        )
        logger.debug(f"Reported completion of challenge {challenge_id}")

    async def report_session(self, summary: SessionSummary) -> None:
        """Report a finalized session, and log it as ended if it stopped early.

        Raises:
            RemoteServiceError: If the backend rejects or never receives the report
        """
        payload = {
            "session_id": summary.session_id,
            "correct_answers": summary.correct_answers,
            "wrong_answers": summary.wrong_answers,
            "max_combo": summary.max_combo,
            "total_xp": summary.total_xp,
            "answer_times": [round(t, 2) for t in summary.answer_times],
            "achievements": [a.id for a in summary.achievements],
        }
        await asyncio.to_thread(self.client.post, "/api/achievements/sessions/complete", payload)

        if summary.ended_early or summary.was_quit:
            await asyncio.to_thread(
                self.client.post,
                "/api/hearts/log-session-ended",
                {
                    "challenge_type": summary.challenge_type.value,
                    "session_id": summary.session_id,
                    "completed": summary.completed_challenges,
                    "total": summary.total_challenges,
                },
            )
        logger.info(f"Reported session {summary.session_id}")
