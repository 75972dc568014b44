"""Pytest configuration and shared fixtures."""

import asyncio
from datetime import datetime, timedelta

import pytest

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import ContentFetchError, PersistenceUnavailableError, RemoteServiceError
from microlearn.models import Challenge, ChallengeType, HeartPool, HeartResponse, RefillInfo
from microlearn.orchestration import ChallengeSessionEngine
from microlearn.services import CompletionTracker, HeartPoolAccountant, StatsAggregator
from microlearn.services.storage import InMemoryKeyValueStore

START_TIME = datetime(2026, 3, 10, 9, 0, 0)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store that raises while ``failing`` is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing = False

    def _check(self):
        if self.failing:
            raise PersistenceUnavailableError("store offline")

    async def get(self, key):
        self._check()
        return await super().get(key)

    async def set(self, key, value):
        self._check()
        await super().set(key, value)

    async def remove(self, key):
        self._check()
        await super().remove(key)

    async def multi_remove(self, keys):
        self._check()
        await super().multi_remove(keys)

    async def list_keys(self):
        self._check()
        return await super().list_keys()


class FakeHeartAuthority:
    """Remote heart authority keeping pools in memory.

    Set ``unreachable`` to make every call raise RemoteServiceError, or
    call ``hold()`` inside a running loop to block consume until
    ``release()``.
    """

    def __init__(self, clock: FakeClock, capacity: int = 5, refill_minutes: int = 36):
        self.clock = clock
        self.capacity = capacity
        self.refill_minutes = refill_minutes
        self.remaining: dict[str, int] = {}
        self.unreachable = False
        self.status_calls: list[tuple[str, str]] = []
        self.consume_calls: list[dict] = []
        self._gate: asyncio.Event | None = None

    def set_remaining(self, challenge_type: str, remaining: int) -> None:
        self.remaining[challenge_type] = remaining

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def get_status(self, user_id, challenge_type):
        self.status_calls.append((user_id, challenge_type))
        if self.unreachable:
            raise RemoteServiceError("authority offline")
        remaining = self.remaining.setdefault(challenge_type, self.capacity)
        next_refill = None
        if remaining < self.capacity:
            next_refill = self.clock() + timedelta(minutes=self.refill_minutes)
        return HeartPool(challenge_type, remaining, self.capacity, next_refill)

    async def consume(self, user_id, challenge_type, session_id, challenge_id, is_correct):
        self.consume_calls.append(
            {
                "user_id": user_id,
                "challenge_type": challenge_type,
                "session_id": session_id,
                "challenge_id": challenge_id,
                "is_correct": is_correct,
            }
        )
        if self._gate is not None:
            await self._gate.wait()
        if self.unreachable:
            raise RemoteServiceError("authority offline")
        remaining = max(0, self.remaining.setdefault(challenge_type, self.capacity) - 1)
        self.remaining[challenge_type] = remaining
        wait = self.refill_minutes * 60
        return HeartResponse(
            out_of_hearts=remaining == 0,
            hearts_remaining=remaining,
            refill_info=RefillInfo(self.clock() + timedelta(seconds=wait), wait),
        )


class FakeContentProvider:
    """Content provider serving a fixed list of challenges."""

    def __init__(self, challenges=None, error: Exception | None = None):
        self.challenges = list(challenges or [])
        self.error = error
        self.calls: list[dict] = []

    async def fetch_challenges(self, language, level, challenge_type, count, source):
        self.calls.append(
            {
                "language": language,
                "level": level,
                "challenge_type": challenge_type,
                "count": count,
                "source": source,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.challenges)


class RecordingReporter:
    """Completion reporter that records every report."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.completions: list[tuple[str, bool, float]] = []
        self.sessions: list = []

    async def report_completion(self, challenge_id, is_correct, time_spent):
        if self.fail:
            raise RemoteServiceError("reporter offline")
        self.completions.append((challenge_id, is_correct, time_spent))

    async def report_session(self, summary):
        if self.fail:
            raise RemoteServiceError("reporter offline")
        self.sessions.append(summary)


class RecordingPresenter:
    """Presenter that records every call as (method, payload)."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def show_info(self, message):
        self.events.append(("info", message))

    def show_success(self, message):
        self.events.append(("success", message))

    def show_warning(self, message):
        self.events.append(("warning", message))

    def show_error(self, message):
        self.events.append(("error", message))

    def show_out_of_hearts(self, challenge_type, refill_info):
        self.events.append(("out_of_hearts", (challenge_type, refill_info)))

    def show_session_summary(self, summary):
        self.events.append(("summary", summary))

    def show_daily_stats(self, stats):
        self.events.append(("daily_stats", stats))


@pytest.fixture
def test_config(tmp_path):
    """Provide a test configuration with temporary paths."""
    return MicrolearnConfig(
        api_base_url="http://backend.test",
        auth_token="test-token",
        api_retries=1,
        heart_capacity=5,
        store_path=tmp_path / "store.db",
    )


@pytest.fixture
def clock():
    """Provide a manually advanced clock starting at a fixed morning."""
    return FakeClock()


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def authority(clock):
    return FakeHeartAuthority(clock)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def make_challenge():
    """Factory fixture for creating Challenge instances with sensible defaults."""

    def _make(challenge_id="c1", challenge_type=ChallengeType.MICRO_QUIZ, **payload):
        return Challenge(
            id=challenge_id,
            type=challenge_type,
            language="spanish",
            cefr_level="B1",
            payload=payload or {"question": f"Question {challenge_id}"},
        )

    return _make


@pytest.fixture
def make_challenges(make_challenge):
    """Factory fixture for a list of challenges with ids c1..cN."""

    def _make(count, challenge_type=ChallengeType.MICRO_QUIZ):
        return [make_challenge(f"c{i}", challenge_type) for i in range(1, count + 1)]

    return _make


@pytest.fixture
def make_engine(test_config, clock, memory_store, authority, reporter, presenter):
    """Factory fixture wiring a ChallengeSessionEngine to in-memory fakes.

    Returns the engine; its collaborators are reachable as attributes.
    """

    def _make(challenges=None, config=None, store=None, content_provider=None, **overrides):
        config = config or test_config
        store = store if store is not None else memory_store
        accountant = HeartPoolAccountant(config, overrides.pop("authority", authority), clock)
        return ChallengeSessionEngine(
            config=config,
            content_provider=content_provider or FakeContentProvider(challenges),
            heart_accountant=accountant,
            stats_aggregator=StatsAggregator(store, config, clock),
            completion_tracker=CompletionTracker(store, clock),
            completion_reporter=overrides.pop("completion_reporter", reporter),
            presenter=overrides.pop("presenter", presenter),
            clock=clock,
        )

    return _make


@pytest.fixture
def fetch_error():
    return ContentFetchError("backend down", status_code=503)


@pytest.fixture
def make_content_provider():
    """Factory fixture for content providers (optionally failing)."""
    return FakeContentProvider


@pytest.fixture
def make_reporter():
    return RecordingReporter
