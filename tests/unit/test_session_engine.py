"""Tests for ChallengeSessionEngine."""

import asyncio

import pytest

from microlearn.exceptions import (
    ContentFetchError,
    InvalidSessionError,
    ResourceExhaustedError,
    StaleAnswerError,
)
from microlearn.models import ChallengeType, SessionParams, SessionSource, SessionState

QUIZ = ChallengeType.MICRO_QUIZ


def _params(**overrides):
    values = {"user_id": "u1", "language": "spanish", "level": "B1", "challenge_type": QUIZ}
    values.update(overrides)
    return SessionParams(**values)


class TestStart:
    """Tests for starting sessions."""

    def test_start_fetches_challenges(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(3))

        session = asyncio.run(engine.start(_params()))

        assert engine.state is SessionState.ACTIVE
        assert session.total_challenges == 3
        assert session.current_challenge.id == "c1"
        assert session.heart_pool.remaining == 5
        call = engine.content_provider.calls[0]
        assert call["count"] == 10
        assert call["source"] is SessionSource.REFERENCE

    def test_start_truncates_to_session_size(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(15))
        session = asyncio.run(engine.start(_params()))
        assert session.total_challenges == 10

    def test_specific_challenges_used_verbatim(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(3))
        review = list(reversed(make_challenges(12)))

        session = asyncio.run(engine.start(_params(specific_challenges=review)))

        assert [c.id for c in session.challenges] == [c.id for c in review]
        assert engine.content_provider.calls == []

    def test_empty_queue_rejected(self, make_engine):
        engine = make_engine([])
        with pytest.raises(InvalidSessionError):
            asyncio.run(engine.start(_params()))
        assert engine.state is SessionState.IDLE

    def test_fetch_failure_shown_and_raised(
        self, make_engine, make_content_provider, fetch_error, presenter
    ):
        engine = make_engine(content_provider=make_content_provider(error=fetch_error))
        with pytest.raises(ContentFetchError):
            asyncio.run(engine.start(_params()))
        assert presenter.names() == ["error"]
        assert engine.session is None

    def test_empty_heart_pool_blocks_start(self, make_engine, make_challenges, authority, presenter):
        authority.set_remaining(QUIZ.value, 0)
        engine = make_engine(make_challenges(3))

        with pytest.raises(ResourceExhaustedError) as exc_info:
            asyncio.run(engine.start(_params()))

        assert exc_info.value.challenge_type == "micro_quiz"
        assert exc_info.value.refill_info is not None
        assert presenter.names() == ["out_of_hearts"]
        assert engine.session is None

    def test_study_mode_never_touches_hearts(self, make_engine, make_challenges, authority):
        authority.set_remaining(QUIZ.value, 0)
        engine = make_engine(make_challenges(2))

        session = asyncio.run(engine.start(_params(is_study_mode=True)))

        assert session.heart_pool is None
        assert authority.status_calls == []

    def test_cannot_start_while_active(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            await engine.start(_params())

        with pytest.raises(InvalidSessionError):
            asyncio.run(scenario())

    def test_can_start_again_after_finalize(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(1))

        async def scenario():
            first = await engine.start(_params())
            await engine.answer("c1", True)
            await engine.end()
            second = await engine.start(_params())
            return first, second

        first, second = asyncio.run(scenario())
        assert first.id != second.id
        assert second.completed_challenges == 0
        assert second.current_combo == 0
        assert engine.last_summary is None


# ---------------------------------------------------------------------------
# Answering and advancing
# ---------------------------------------------------------------------------


class TestAnswer:
    """Tests for answering challenges."""

    def test_correct_answer_scores_and_consumes(self, make_engine, make_challenges, clock, authority):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            clock.advance(seconds=4)
            return await engine.answer("c1", True)

        result = asyncio.run(scenario())
        session = engine.session
        assert result.is_correct is True
        assert result.score.total_xp == 10 + 5
        assert result.combo == 1
        assert result.heart_response.hearts_remaining == 4
        assert result.state is SessionState.ACTIVE
        assert session.completed_challenges == 1
        assert session.total_xp == 15
        assert session.heart_pool.remaining == 4
        assert session.last_heart_response == result.heart_response
        assert authority.consume_calls[0]["is_correct"] is True

    def test_wrong_answer_resets_combo_and_is_recorded(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            engine.advance()
            return await engine.answer("c2", False)

        result = asyncio.run(scenario())
        session = engine.session
        assert result.combo == 0
        assert result.score.total_xp == 0
        assert session.max_combo == 1
        assert session.wrong_answers == 1
        assert [c.id for c in session.incorrect_challenges] == ["c2"]

    def test_wrong_id_is_stale(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c2", True)

        with pytest.raises(StaleAnswerError):
            asyncio.run(scenario())

    def test_duplicate_answer_is_stale(self, make_engine, make_challenges, authority):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            await engine.answer("c1", True)

        with pytest.raises(StaleAnswerError):
            asyncio.run(scenario())
        assert engine.session.completed_challenges == 1
        assert len(authority.consume_calls) == 1

    def test_answer_without_session(self, make_engine):
        engine = make_engine([])
        with pytest.raises(InvalidSessionError):
            asyncio.run(engine.answer("c1", True))

    def test_concurrent_answer_rejected(self, make_engine, make_challenges, authority):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            authority.hold()
            first = asyncio.create_task(engine.answer("c1", True))
            await asyncio.sleep(0)
            with pytest.raises(InvalidSessionError):
                await engine.answer("c1", True)
            with pytest.raises(InvalidSessionError):
                engine.advance()
            with pytest.raises(InvalidSessionError):
                await engine.end()
            authority.release()
            return await first

        result = asyncio.run(scenario())
        assert result is not None
        assert engine.session.completed_challenges == 1

    def test_answer_resolves_after_state_is_applied(self, make_engine, make_challenges, authority):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            authority.hold()
            task = asyncio.create_task(engine.answer("c1", True))
            await asyncio.sleep(0)
            in_flight = engine.session.completed_challenges
            authority.release()
            await task
            return in_flight, engine.can_advance()

        in_flight, can_advance = asyncio.run(scenario())
        assert in_flight == 0
        assert can_advance is True

    def test_native_check_defers_advance(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(2, ChallengeType.NATIVE_CHECK))

        async def scenario():
            await engine.start(_params(challenge_type=ChallengeType.NATIVE_CHECK))
            return await engine.answer("c1", True)

        result = asyncio.run(scenario())
        assert result.defers_advance is True
        assert engine.session.current_index == 0


class TestAdvance:
    """Tests for moving the cursor."""

    def test_advance_requires_answer(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(2))
        asyncio.run(engine.start(_params()))
        assert engine.can_advance() is False
        with pytest.raises(InvalidSessionError):
            engine.advance()

    def test_advance_moves_cursor_and_restarts_timer(self, make_engine, make_challenges, clock):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            clock.advance(seconds=30)
            await engine.answer("c1", True)
            clock.advance(seconds=5)
            nxt = engine.advance()
            clock.advance(seconds=2)
            return nxt, await engine.answer("c2", True)

        nxt, result = asyncio.run(scenario())
        assert nxt.id == "c2"
        assert engine.progress() == (2, 2)
        assert result.score.speed_bonus == 10

    def test_cannot_advance_past_last(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(1))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            engine.advance()

        with pytest.raises(InvalidSessionError):
            asyncio.run(scenario())

    def test_pause_excludes_time(self, make_engine, make_challenges, clock):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            clock.advance(seconds=1)
            engine.pause()
            clock.advance(seconds=60)
            with pytest.raises(InvalidSessionError):
                await engine.answer("c1", True)
            engine.resume()
            clock.advance(seconds=1)
            return await engine.answer("c1", True)

        result = asyncio.run(scenario())
        assert result.score.speed_bonus == 10
        assert engine.session.answers[0].time_spent == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# State transitions and finalization
# ---------------------------------------------------------------------------


class TestTransitions:
    """Tests for completion, exhaustion and finalization."""

    def test_single_challenge_completes_immediately(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(1))

        async def scenario():
            await engine.start(_params())
            return await engine.answer("c1", False)

        assert asyncio.run(scenario()).state is SessionState.COMPLETING

    def test_out_of_hearts_ends_early(self, make_engine, make_challenges, authority, presenter):
        authority.set_remaining(QUIZ.value, 1)
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            result = await engine.answer("c1", True)
            with pytest.raises(InvalidSessionError):
                engine.advance()
            return result

        result = asyncio.run(scenario())
        assert result.state is SessionState.EXHAUSTED_EARLY
        assert result.heart_response.out_of_hearts is True
        assert engine.session.ended_early is True
        assert engine.session.current_index == 0
        assert presenter.names() == ["out_of_hearts"]

    def test_last_heart_on_last_challenge_exhausts(self, make_engine, make_challenges, authority):
        authority.set_remaining(QUIZ.value, 2)
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            engine.advance()
            result = await engine.answer("c2", True)
            return result, await engine.end()

        result, summary = asyncio.run(scenario())
        assert result.state is SessionState.EXHAUSTED_EARLY
        assert result.heart_response.out_of_hearts is True
        assert summary.completed_challenges == 2
        assert summary.ended_early is True

    def test_single_challenge_with_last_heart_exhausts(self, make_engine, make_challenges, authority):
        authority.set_remaining(QUIZ.value, 1)
        engine = make_engine(make_challenges(1))

        async def scenario():
            await engine.start(_params())
            return await engine.answer("c1", True)

        result = asyncio.run(scenario())
        assert result.state is SessionState.EXHAUSTED_EARLY
        assert engine.session.ended_early is True

    def test_end_builds_summary(self, make_engine, make_challenges, presenter):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            engine.advance()
            await engine.answer("c2", False)
            return await engine.end()

        summary = asyncio.run(scenario())
        assert engine.state is SessionState.FINALIZED
        assert engine.session is None
        assert summary.completed_challenges == 2
        assert summary.correct_answers == 1
        assert summary.grade.letter == "F"
        assert [c.id for c in summary.incorrect_challenges] == ["c2"]
        assert presenter.names()[-1] == "summary"

    def test_end_is_idempotent(self, make_engine, make_challenges, reporter):
        engine = make_engine(make_challenges(1))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            first = await engine.end()
            second = await engine.end()
            await engine.wait_for_background()
            return first, second

        first, second = asyncio.run(scenario())
        assert first is second
        assert len(reporter.sessions) == 1

    def test_end_without_session(self, make_engine):
        with pytest.raises(InvalidSessionError):
            asyncio.run(make_engine([]).end())

    def test_perfect_session_earns_achievements(self, make_engine, make_challenges, authority):
        authority.capacity = 10
        engine = make_engine(make_challenges(5))

        async def scenario():
            await engine.start(_params())
            for i in range(1, 6):
                await engine.answer(f"c{i}", True)
                if i < 5:
                    engine.advance()
            return await engine.end()

        summary = asyncio.run(scenario())
        ids = [a.id for a in summary.achievements]
        assert "perfect_session" in ids
        assert "combo_master" in ids
        assert summary.total_xp_with_bonuses > summary.total_xp


class TestQuit:
    """Tests for user-initiated termination."""

    def test_quit_mid_session(self, make_engine, make_challenges, authority):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            return await engine.quit()

        summary = asyncio.run(scenario())
        assert summary.was_quit is True
        assert summary.ended_early is False
        assert summary.achievements == []
        assert engine.state is SessionState.FINALIZED
        assert authority.remaining[QUIZ.value] == 4

    def test_quit_discards_in_flight_answer(self, make_engine, make_challenges, authority, memory_store):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            authority.hold()
            pending = asyncio.create_task(engine.answer("c1", True))
            await asyncio.sleep(0)
            summary = await engine.quit()
            authority.release()
            result = await pending
            await engine.wait_for_background()
            return summary, result

        summary, result = asyncio.run(scenario())
        assert result is None
        assert summary.completed_challenges == 0
        assert engine.last_summary.completed_challenges == 0
        assert not any(k.startswith("daily_stats:") for k in memory_store.snapshot())

    def test_quit_without_session(self, make_engine):
        with pytest.raises(InvalidSessionError):
            asyncio.run(make_engine([]).quit())


# ---------------------------------------------------------------------------
# Study mode and background writes
# ---------------------------------------------------------------------------


class TestStudyMode:
    """Tests for mistake review sessions."""

    def test_review_mistakes_replays_incorrect(self, make_engine, make_challenges, authority):
        engine = make_engine(make_challenges(3))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", False)
            engine.advance()
            await engine.answer("c2", True)
            engine.advance()
            await engine.answer("c3", False)
            summary = await engine.end()
            review = await engine.review_mistakes(summary)
            consumed = len(authority.consume_calls)
            a = await engine.answer("c1", False)
            engine.advance()
            b = await engine.answer("c3", False)
            return review, consumed, a, b

        review, consumed, a, b = asyncio.run(scenario())
        assert review.is_study_mode is True
        assert [c.id for c in review.challenges] == ["c1", "c3"]
        assert len(authority.consume_calls) == consumed
        assert a.is_correct is True and a.score.total_xp == 0
        assert a.heart_response is None
        assert b.state is SessionState.COMPLETING
        assert engine.session.correct_answers == 2
        assert engine.session.incorrect_challenges == []

    def test_review_without_mistakes_rejected(self, make_engine, make_challenges):
        engine = make_engine(make_challenges(1))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            summary = await engine.end()
            await engine.review_mistakes(summary)

        with pytest.raises(InvalidSessionError):
            asyncio.run(scenario())

    def test_study_mode_writes_no_stats(self, make_engine, make_challenges, memory_store, reporter):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params(is_study_mode=True))
            await engine.answer("c1", False)
            await engine.end()
            await engine.wait_for_background()

        asyncio.run(scenario())
        assert memory_store.snapshot() == {}
        assert reporter.completions == []
        assert reporter.sessions == []


class TestBackgroundWrites:
    """Tests for statistics, completion marks and reports."""

    def test_answer_records_stats_and_completion(self, make_engine, make_challenges, memory_store, reporter):
        engine = make_engine(make_challenges(2))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            await engine.wait_for_background()

        asyncio.run(scenario())
        keys = memory_store.snapshot()
        assert "daily_stats:2026-03-10" in keys
        assert "category_stats:spanish:B1:micro_quiz" in keys
        assert "completed_challenges:2026-03-10" in keys
        assert reporter.completions[0][:2] == ("c1", True)

    def test_store_failure_never_fails_answer(self, make_engine, make_challenges, flaky_store):
        flaky_store.failing = True
        engine = make_engine(make_challenges(2), store=flaky_store)

        async def scenario():
            await engine.start(_params())
            result = await engine.answer("c1", True)
            await engine.wait_for_background()
            return result

        assert asyncio.run(scenario()).is_correct is True
        assert engine.stats_aggregator.pending_writes > 0

    def test_reporter_failure_is_logged(self, make_engine, make_challenges, make_reporter, caplog):
        engine = make_engine(make_challenges(1), completion_reporter=make_reporter(fail=True))

        async def scenario():
            await engine.start(_params())
            await engine.answer("c1", True)
            summary = await engine.end()
            await engine.wait_for_background()
            return summary

        with caplog.at_level("WARNING"):
            summary = asyncio.run(scenario())
        assert summary.completed_challenges == 1
        assert "Failed to report" in caplog.text
