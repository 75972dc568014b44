"""Daily and per-category practice statistics."""

import asyncio
import json
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime
from functools import partial
from typing import Any

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import PersistenceUnavailableError
from microlearn.interfaces import KeyValueStore
from microlearn.models import CategoryStats, ChallengeType, DailyStats, StreakInfo
from microlearn.utils import Clock, day_key, days_between

logger = logging.getLogger(__name__)

DAILY_PREFIX = "daily_stats:"
CATEGORY_PREFIX = "category_stats:"
STREAK_KEY = "streak"

PendingWrite = Callable[[], Awaitable[None]]


class StatsAggregator:
    """Keep running counters per calendar day and per category.

    Records stored in the key-value store:
    - ``daily_stats:<day>``: attempts, correct answers and XP for a day
    - ``streak``: current and longest consecutive-day streak
    - ``category_stats:<language>:<level>:<type>``: per-category counters

    Accuracy is never stored; it is derived from the counters when read.
    Each answer is attributed to the day it was recorded on, so a session
    running past midnight splits across two day records.

    Writes are best-effort: when the store is unavailable the write is
    queued and retried before the next one (or on flush_pending). Nothing
    here raises to the session engine.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: MicrolearnConfig,
        clock: Clock = datetime.now,
    ):
        """Initialize the aggregator.

        Args:
            store: Key-value store holding the records
            config: Configuration (streak grace days, pending write bound)
            clock: Source of the current local time
        """
        self._store = store
        self._config = config
        self._clock = clock
        self._lock = asyncio.Lock()
        self._pending: deque[tuple[PendingWrite, str]] = deque()

    @property
    def pending_writes(self) -> int:
        """Number of queued writes waiting for the store to come back."""
        return len(self._pending)

    # === Recording ===

    async def record_answer(self, is_correct: bool, xp: int = 0, now: datetime | None = None) -> None:
        """Count one answer for the current day and update the streak."""
        today = day_key(now or self._clock())
        await self._write(partial(self._apply_daily, today, is_correct, xp), f"daily {today}")
        await self._write(partial(self._apply_streak, today), f"streak {today}")

    async def record_category_answer(
        self,
        language: str,
        level: str,
        category: ChallengeType | str,
        is_correct: bool,
        total_in_category: int,
        now: datetime | None = None,
    ) -> None:
        """Count one answer for a (language, level, challenge type) category.

        Args:
            language: Session language
            level: CEFR level
            category: Challenge type
            is_correct: Whether the answer was correct
            total_in_category: Number of challenges available in the category
            now: Time of the answer (defaults to the clock)
        """
        key = self._category_key(language, level, category)
        today = day_key(now or self._clock())
        await self._write(
            partial(self._apply_category, key, is_correct, total_in_category, today),
            key,
        )

    async def flush_pending(self) -> int:
        """Retry queued writes now.

        Returns:
            Number of writes still pending
        """
        async with self._lock:
            await self._flush_locked()
            return len(self._pending)

    # === Reading ===

    async def get_daily_stats(self, now: datetime | None = None) -> DailyStats:
        """Statistics for the current day (zeros if nothing recorded or unreadable)."""
        today = day_key(now or self._clock())
        try:
            record = await self._read_json(DAILY_PREFIX + today)
            streak = await self._read_streak()
        except PersistenceUnavailableError as e:
            logger.warning(f"Failed to load daily stats: {e}")
            return DailyStats(day=today)

        current = streak.current
        if streak.last_active_day is not None and streak.last_active_day != today:
            gap = days_between(streak.last_active_day, today)
            if gap > 1 + self._config.streak_grace_days:
                current = 0

        return DailyStats(
            day=today,
            total_challenges=int(record.get("total_challenges", 0)),
            correct=int(record.get("correct", 0)),
            total_xp=int(record.get("total_xp", 0)),
            streak=StreakInfo(
                current=current,
                longest=streak.longest,
                last_active_day=streak.last_active_day,
            ),
        )

    async def get_category_stats(
        self, language: str, level: str, category: ChallengeType | str
    ) -> CategoryStats:
        """Counters for one category (zeros if nothing recorded or unreadable)."""
        name = self._category_name(category)
        try:
            record = await self._read_json(self._category_key(language, level, category))
        except PersistenceUnavailableError as e:
            logger.warning(f"Failed to load category stats for {name}: {e}")
            record = {}
        return CategoryStats(
            language=language,
            level=level,
            category=name,
            completed=int(record.get("completed", 0)),
            correct=int(record.get("correct", 0)),
            total=int(record.get("total", 0)),
            last_practiced=record.get("last_practiced"),
        )

    async def get_all_category_stats(
        self, language: str, level: str, categories: list[ChallengeType | str]
    ) -> dict[str, CategoryStats]:
        """Counters for several categories, keyed by challenge type name."""
        results = await asyncio.gather(
            *(self.get_category_stats(language, level, c) for c in categories)
        )
        return {stats.category: stats for stats in results}

    async def reset(self) -> int:
        """Delete every daily, streak and category record.

        Returns:
            Number of records removed

        Raises:
            PersistenceUnavailableError: If the store cannot be used
        """
        async with self._lock:
            self._pending.clear()
            keys = await self._store.list_keys()
            doomed = [
                k
                for k in keys
                if k.startswith(DAILY_PREFIX) or k.startswith(CATEGORY_PREFIX) or k == STREAK_KEY
            ]
            await self._store.multi_remove(doomed)
        logger.info(f"Statistics reset ({len(doomed)} records removed)")
        return len(doomed)

    # === Write pipeline ===

    async def _write(self, operation: PendingWrite, description: str) -> None:
        async with self._lock:
            await self._flush_locked()
            if self._pending:
                self._enqueue(operation, description)
                return
            try:
                await operation()
            except PersistenceUnavailableError as e:
                logger.warning(f"Stats write failed ({description}), will retry: {e}")
                self._enqueue(operation, description)

    async def _flush_locked(self) -> None:
        while self._pending:
            operation, description = self._pending[0]
            try:
                await operation()
            except PersistenceUnavailableError as e:
                logger.debug(f"Store still unavailable, keeping {len(self._pending)} writes: {e}")
                return
            self._pending.popleft()
            logger.debug(f"Replayed queued stats write ({description})")

    def _enqueue(self, operation: PendingWrite, description: str) -> None:
        if len(self._pending) >= self._config.stats_max_pending:
            _, dropped = self._pending.popleft()
            logger.warning(f"Stats write queue full, dropping oldest write ({dropped})")
        self._pending.append((operation, description))

    async def _apply_daily(self, today: str, is_correct: bool, xp: int) -> None:
        key = DAILY_PREFIX + today
        record = await self._read_json(key)
        record["total_challenges"] = int(record.get("total_challenges", 0)) + 1
        record["correct"] = int(record.get("correct", 0)) + (1 if is_correct else 0)
        record["total_xp"] = int(record.get("total_xp", 0)) + xp
        await self._store.set(key, json.dumps(record))

    async def _apply_streak(self, today: str) -> None:
        streak = await self._read_streak()
        if streak.last_active_day == today:
            return

        if streak.last_active_day is None:
            streak.current = 1
        else:
            gap = days_between(streak.last_active_day, today)
            if gap < 0:
                # Late replay for an earlier day; the streak already moved on
                return
            if gap <= 1 + self._config.streak_grace_days:
                streak.current += 1
            else:
                streak.current = 1

        streak.longest = max(streak.longest, streak.current)
        streak.last_active_day = today
        await self._store.set(
            STREAK_KEY,
            json.dumps(
                {
                    "current": streak.current,
                    "longest": streak.longest,
                    "last_active_day": streak.last_active_day,
                }
            ),
        )
        logger.debug(f"Streak now {streak.current} (longest {streak.longest})")

    async def _apply_category(
        self, key: str, is_correct: bool, total_in_category: int, today: str
    ) -> None:
        record = await self._read_json(key)
        record["completed"] = int(record.get("completed", 0)) + 1
        record["correct"] = int(record.get("correct", 0)) + (1 if is_correct else 0)
        record["total"] = total_in_category
        record["last_practiced"] = today
        await self._store.set(key, json.dumps(record))

    # === Helpers ===

    async def _read_json(self, key: str) -> dict[str, Any]:
        raw = await self._store.get(key)
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt stats record {key}")
            return {}
        return data if isinstance(data, dict) else {}

    async def _read_streak(self) -> StreakInfo:
        data = await self._read_json(STREAK_KEY)
        return StreakInfo(
            current=int(data.get("current", 0)),
            longest=int(data.get("longest", 0)),
            last_active_day=data.get("last_active_day"),
        )

    @staticmethod
    def _category_name(category: ChallengeType | str) -> str:
        return category.value if isinstance(category, ChallengeType) else str(category)

    @classmethod
    def _category_key(cls, language: str, level: str, category: ChallengeType | str) -> str:
        return f"{CATEGORY_PREFIX}{language}:{level}:{cls._category_name(category)}"
