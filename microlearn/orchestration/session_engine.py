"""Orchestrator for challenge practice sessions."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Coroutine
from datetime import datetime
from typing import TYPE_CHECKING, Any

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import (
    ContentFetchError,
    InvalidSessionError,
    RemoteServiceError,
    ResourceExhaustedError,
    StaleAnswerError,
)
from microlearn.interfaces import PresenterProtocol
from microlearn.models import (
    AnswerRecord,
    AnswerResult,
    Challenge,
    ChallengeSession,
    RefillInfo,
    ScoreResult,
    SessionParams,
    SessionState,
    SessionSummary,
)
from microlearn.presenters import NullPresenter
from microlearn.services.achievements import check_achievements
from microlearn.services.scoring import compute_score, session_grade
from microlearn.utils import Clock, seconds_until

if TYPE_CHECKING:
    from microlearn.interfaces import CompletionReporter, ContentProvider
    from microlearn.services.completion_tracker import CompletionTracker
    from microlearn.services.heart_accountant import HeartPoolAccountant
    from microlearn.services.stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)

_ENDABLE_STATES = (SessionState.ACTIVE, SessionState.COMPLETING, SessionState.EXHAUSTED_EARLY)


class ChallengeSessionEngine:
    """Sequence challenges, meter hearts and score answers for one session at a time.

    All session mutation goes through this engine. ``answer()`` returns only
    once the heart consumption and scoring it triggers have been applied, so
    a caller that awaits it can immediately read the updated session.
    Statistics, completion marks and backend reports run as background
    tasks and never fail an answer.

    Lifecycle::

        IDLE -> ACTIVE -> COMPLETING -> FINALIZED
                ACTIVE -> EXHAUSTED_EARLY -> FINALIZED
                ACTIVE -> QUIT_REQUESTED -> FINALIZED
    """

    def __init__(
        self,
        config: MicrolearnConfig,
        content_provider: ContentProvider,
        heart_accountant: HeartPoolAccountant,
        stats_aggregator: StatsAggregator,
        completion_tracker: CompletionTracker,
        completion_reporter: CompletionReporter | None = None,
        presenter: PresenterProtocol | None = None,
        clock: Clock = datetime.now,
    ):
        """Initialize the session engine.

        Args:
            config: Configuration
            content_provider: Source of challenges for new sessions
            heart_accountant: Heart pool accounting service
            stats_aggregator: Daily and category statistics service
            completion_tracker: Day-scoped completion records
            completion_reporter: Optional backend progress reporter
            presenter: Output presenter (defaults to a silent presenter)
            clock: Source of the current local time
        """
        self.config = config
        self.content_provider = content_provider
        self.heart_accountant = heart_accountant
        self.stats_aggregator = stats_aggregator
        self.completion_tracker = completion_tracker
        self.completion_reporter = completion_reporter
        self.presenter = presenter or NullPresenter()
        self._clock = clock
        self._session: ChallengeSession | None = None
        self._last_summary: SessionSummary | None = None
        self._pending_answer: ChallengeSession | None = None
        self._starting = False
        self._background: set[asyncio.Task] = set()

    # === Queries ===

    @property
    def session(self) -> ChallengeSession | None:
        """The live session, or None when idle or finalized."""
        return self._session

    @property
    def state(self) -> SessionState:
        if self._session is not None:
            return self._session.state
        return SessionState.FINALIZED if self._last_summary is not None else SessionState.IDLE

    @property
    def last_summary(self) -> SessionSummary | None:
        """Summary of the most recently finalized session."""
        return self._last_summary

    @property
    def current_challenge(self) -> Challenge | None:
        return self._session.current_challenge if self._session else None

    def progress(self) -> tuple[int, int]:
        """Return (answered, total) for the live session."""
        if self._session is None:
            return (0, 0)
        return (self._session.completed_challenges, self._session.total_challenges)

    def can_advance(self) -> bool:
        """Whether advance() would succeed right now."""
        session = self._session
        return (
            session is not None
            and session.state is SessionState.ACTIVE
            and not session.is_paused
            and self._pending_answer is not session
            and session.current_answered
            and not session.is_last_challenge
        )

    # === Lifecycle ===

    async def start(self, params: SessionParams) -> ChallengeSession:
        """Start a new session.

        Args:
            params: Session parameters; specific_challenges are used verbatim

        Returns:
            The new session, positioned on its first challenge

        Raises:
            InvalidSessionError: If a session is live or no challenge is available
            ContentFetchError: If challenges cannot be fetched
            ResourceExhaustedError: If the heart pool is already empty
        """
        if self._starting:
            raise InvalidSessionError("A session is already starting")
        if self._session is not None:
            raise InvalidSessionError(
                f"Cannot start a session while another is {self._session.state.value}"
            )

        self._starting = True
        try:
            challenges = await self._load_challenges(params)
            if not challenges:
                raise InvalidSessionError("No challenges available for this session")

            challenge_type = params.challenge_type.value
            heart_pool = None
            if not params.is_study_mode:
                heart_pool = await self.heart_accountant.load_pool(params.user_id, challenge_type)
                if heart_pool.is_exhausted:
                    refill_info = None
                    if heart_pool.next_refill_at is not None:
                        refill_info = RefillInfo(
                            next_refill_at=heart_pool.next_refill_at,
                            wait_seconds=seconds_until(heart_pool.next_refill_at, self._clock()),
                        )
                    self.presenter.show_out_of_hearts(challenge_type, refill_info)
                    raise ResourceExhaustedError(challenge_type, refill_info)

            now = self._clock()
            session = ChallengeSession(
                id=str(uuid.uuid4()),
                user_id=params.user_id,
                language=params.language,
                level=params.level,
                challenge_type=params.challenge_type,
                source=params.source,
                challenges=tuple(challenges),
                heart_pool=heart_pool,
                is_study_mode=params.is_study_mode,
                started_at=now,
                challenge_started_at=now,
            )
            self._session = session
            self._last_summary = None
        finally:
            self._starting = False

        logger.info(
            f"Started session {session.id}: {session.total_challenges} "
            f"{params.challenge_type.value} challenges"
            + (" (study mode)" if session.is_study_mode else "")
        )
        return session

    async def answer(self, challenge_id: str, is_correct: bool) -> AnswerResult | None:
        """Submit the answer for the current challenge.

        Args:
            challenge_id: Id of the challenge being answered (must be the current one)
            is_correct: Whether the user's answer was correct

        Returns:
            AnswerResult, or None if the session was finalized while the
            heart consumption was in flight

        Raises:
            InvalidSessionError: If the session cannot take an answer right now
            StaleAnswerError: If the id is not the current challenge or it was already answered
        """
        session = self._require_session()
        if session.state is not SessionState.ACTIVE:
            raise InvalidSessionError(f"Cannot answer while session is {session.state.value}")
        if session.is_paused:
            raise InvalidSessionError("Cannot answer while session is paused")
        if self._pending_answer is session:
            raise InvalidSessionError("Another answer is still being processed")

        current = session.current_challenge
        if current is None or current.id != challenge_id:
            raise StaleAnswerError(f"Challenge {challenge_id} is not the current challenge")
        if session.current_answered:
            raise StaleAnswerError(f"Challenge {challenge_id} was already answered")

        now = self._clock()
        elapsed = 0.0
        if session.challenge_started_at is not None:
            elapsed = max(0.0, (now - session.challenge_started_at).total_seconds())

        if session.is_study_mode:
            # Review answers always count as correct and earn nothing
            score = ScoreResult(base_xp=0, speed_bonus=0)
            self._apply_answer(session, current, True, elapsed, score, None)
            return self._result_for(session, current, True, score)

        combo = session.current_combo + 1 if is_correct else 0
        score = compute_score(is_correct, elapsed, combo, self.config)

        self._pending_answer = session
        try:
            heart_response = await self.heart_accountant.consume(
                session, session.challenge_type.value, challenge_id, is_correct
            )
        finally:
            if self._pending_answer is session:
                self._pending_answer = None

        if self._session is not session or session.state is not SessionState.ACTIVE:
            logger.info(f"Discarding answer for {challenge_id}: session already finalized")
            return None

        self._apply_answer(session, current, is_correct, elapsed, score, heart_response)
        self._record_in_background(session, challenge_id, is_correct, elapsed, score, now)
        return self._result_for(session, current, is_correct, score)

    def advance(self) -> Challenge:
        """Move the cursor to the next challenge and restart the answer timer.

        Raises:
            InvalidSessionError: If the current challenge is unanswered, this
                is the last challenge, or the session is not active
        """
        session = self._require_session()
        if session.state is not SessionState.ACTIVE:
            raise InvalidSessionError(f"Cannot advance while session is {session.state.value}")
        if session.is_paused:
            raise InvalidSessionError("Cannot advance while session is paused")
        if self._pending_answer is session:
            raise InvalidSessionError("Cannot advance while an answer is being processed")
        if not session.current_answered:
            raise InvalidSessionError("Current challenge has not been answered")
        if session.is_last_challenge:
            raise InvalidSessionError("No challenge left to advance to")

        session.current_index += 1
        session.challenge_started_at = self._clock()
        return session.challenges[session.current_index]

    def pause(self) -> None:
        """Stop the answer timer."""
        session = self._require_session()
        if session.state is not SessionState.ACTIVE:
            raise InvalidSessionError(f"Cannot pause while session is {session.state.value}")
        if session.is_paused:
            return
        session.is_paused = True
        session.paused_at = self._clock()

    def resume(self) -> None:
        """Restart the answer timer, excluding the paused time."""
        session = self._require_session()
        if not session.is_paused:
            return
        now = self._clock()
        if session.challenge_started_at is not None and session.paused_at is not None:
            session.challenge_started_at += now - session.paused_at
        session.is_paused = False
        session.paused_at = None

    async def end(self) -> SessionSummary:
        """Finalize the session after completion or exhaustion.

        Calling end() again after finalization returns the same summary
        without recording anything twice.

        Raises:
            InvalidSessionError: If no session was started, the session is in a
                state that cannot end, or an answer is still in flight
        """
        if self._session is None:
            if self._last_summary is not None:
                return self._last_summary
            raise InvalidSessionError("No session to end")

        session = self._session
        if session.state not in _ENDABLE_STATES:
            raise InvalidSessionError(f"Cannot end session while it is {session.state.value}")
        if self._pending_answer is session:
            raise InvalidSessionError("Cannot end while an answer is being processed")
        return await self._finalize(session)

    async def quit(self) -> SessionSummary:
        """Finalize the session at the user's request.

        Safe while an answer is in flight: its result is discarded when it
        arrives. Hearts already spent are not refunded.

        Raises:
            InvalidSessionError: If no session was ever started
        """
        if self._session is None:
            if self._last_summary is not None:
                return self._last_summary
            raise InvalidSessionError("No session to quit")

        session = self._session
        session.state = SessionState.QUIT_REQUESTED
        session.was_quit = True
        if self._pending_answer is session:
            self._pending_answer = None
        logger.info(
            f"Session {session.id} quit after {session.completed_challenges}/"
            f"{session.total_challenges} challenges"
        )
        return await self._finalize(session)

    async def review_mistakes(
        self, summary: SessionSummary, study_mode: bool = True
    ) -> ChallengeSession:
        """Start a new session replaying the challenges answered wrong.

        Raises:
            InvalidSessionError: If the summary has no mistakes or a session is live
        """
        if not summary.has_mistakes:
            raise InvalidSessionError("No mistakes to review")

        params = SessionParams(
            user_id=summary.user_id,
            language=summary.language,
            level=summary.level,
            challenge_type=summary.challenge_type,
            source=summary.source,
            specific_challenges=list(summary.incorrect_challenges),
            is_study_mode=study_mode,
        )
        return await self.start(params)

    async def wait_for_background(self) -> None:
        """Wait until every scheduled statistics write and report has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # === Internals ===

    def _require_session(self) -> ChallengeSession:
        if self._session is None:
            raise InvalidSessionError("No active session")
        return self._session

    async def _load_challenges(self, params: SessionParams) -> list[Challenge]:
        if params.specific_challenges is not None:
            return list(params.specific_challenges)

        try:
            challenges = await self.content_provider.fetch_challenges(
                params.language,
                params.level,
                params.challenge_type,
                self.config.challenges_per_session,
                params.source,
            )
        except ContentFetchError as e:
            self.presenter.show_error(f"Could not load challenges: {e}")
            raise
        return list(challenges)[: self.config.challenges_per_session]

    def _apply_answer(self, session, challenge, is_correct, elapsed, score, heart_response) -> None:
        session.completed_challenges += 1
        if is_correct:
            session.correct_answers += 1
            session.current_combo += 1
            session.max_combo = max(session.max_combo, session.current_combo)
        else:
            session.wrong_answers += 1
            session.current_combo = 0
            session.incorrect_challenges.append(challenge)
        session.total_xp += score.total_xp
        session.answers.append(
            AnswerRecord(
                challenge_id=challenge.id,
                is_correct=is_correct,
                time_spent=elapsed,
                xp_earned=score.total_xp,
                combo_at_time=session.current_combo,
            )
        )

        if heart_response is not None:
            session.last_heart_response = heart_response
            session.heart_pool = self.heart_accountant.cached_pool(session.challenge_type.value)

        if heart_response is not None and heart_response.out_of_hearts:
            session.state = SessionState.EXHAUSTED_EARLY
            session.ended_early = True
            logger.info(
                f"Session {session.id} out of hearts after "
                f"{session.completed_challenges}/{session.total_challenges} challenges"
            )
            self.presenter.show_out_of_hearts(
                session.challenge_type.value, heart_response.refill_info
            )
        elif session.completed_challenges >= session.total_challenges:
            session.state = SessionState.COMPLETING

    def _result_for(self, session, challenge, is_correct, score) -> AnswerResult:
        return AnswerResult(
            challenge_id=challenge.id,
            is_correct=is_correct,
            score=score,
            heart_response=session.last_heart_response if not session.is_study_mode else None,
            combo=session.current_combo,
            state=session.state,
            defers_advance=challenge.type.defers_advance,
        )

    def _record_in_background(self, session, challenge_id, is_correct, elapsed, score, now) -> None:
        self._spawn(self.stats_aggregator.record_answer(is_correct, score.total_xp, now))
        self._spawn(
            self.stats_aggregator.record_category_answer(
                session.language,
                session.level,
                session.challenge_type,
                is_correct,
                session.total_challenges,
                now,
            )
        )
        self._spawn(self.completion_tracker.mark_completed(challenge_id, now))
        if self.completion_reporter is not None:
            self._spawn(self._report_completion(challenge_id, is_correct, elapsed))

    async def _finalize(self, session: ChallengeSession) -> SessionSummary:
        session.state = SessionState.FINALIZED
        session.is_active = False
        session.is_paused = False
        session.completed_at = self._clock()
        summary = self._build_summary(session)
        self._session = None
        self._last_summary = summary

        await self.wait_for_background()
        if self.completion_reporter is not None and not summary.is_study_mode:
            self._spawn(self._report_session(summary))

        logger.info(
            f"Finalized session {summary.session_id}: {summary.correct_answers}/"
            f"{summary.completed_challenges} correct, {summary.total_xp} XP"
        )
        self.presenter.show_session_summary(summary)
        return summary

    def _build_summary(self, session: ChallengeSession) -> SessionSummary:
        answer_times = [a.time_spent for a in session.answers]
        total_time = sum(answer_times)
        summary = SessionSummary(
            session_id=session.id,
            user_id=session.user_id,
            language=session.language,
            level=session.level,
            challenge_type=session.challenge_type,
            source=session.source,
            total_challenges=session.total_challenges,
            completed_challenges=session.completed_challenges,
            correct_answers=session.correct_answers,
            wrong_answers=session.wrong_answers,
            total_xp=session.total_xp,
            max_combo=session.max_combo,
            average_time=total_time / len(answer_times) if answer_times else 0.0,
            total_time=total_time,
            incorrect_challenges=list(session.incorrect_challenges),
            ended_early=session.ended_early,
            was_quit=session.was_quit,
            is_study_mode=session.is_study_mode,
            answer_times=answer_times,
        )
        summary.achievements = check_achievements(summary)
        summary.grade = session_grade(session.correct_answers, session.completed_challenges)
        return summary

    async def _report_completion(self, challenge_id: str, is_correct: bool, elapsed: float) -> None:
        try:
            await self.completion_reporter.report_completion(challenge_id, is_correct, elapsed)
        except RemoteServiceError as e:
            logger.warning(f"Failed to report completion of {challenge_id}: {e}")

    async def _report_session(self, summary: SessionSummary) -> None:
        try:
            await self.completion_reporter.report_session(summary)
        except RemoteServiceError as e:
            logger.warning(f"Failed to report session {summary.session_id}: {e}")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task failed: {error}", exc_info=error)
