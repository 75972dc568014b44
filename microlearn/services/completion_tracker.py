"""Day-scoped tracking of completed challenges."""

import asyncio
import json
import logging
from datetime import datetime

from microlearn.exceptions import PersistenceUnavailableError
from microlearn.interfaces import KeyValueStore
from microlearn.utils import Clock, day_key

logger = logging.getLogger(__name__)

KEY_PREFIX = "completed_challenges:"


class CompletionTracker:
    """Record which challenges were completed on each calendar day.

    Each day has one record holding a set of challenge ids. Records for
    any day other than today are garbage, removed by cleanup_old_records
    at process start.
    """

    def __init__(self, store: KeyValueStore, clock: Clock = datetime.now):
        """Initialize the tracker.

        Args:
            store: Key-value store holding the day records
            clock: Source of the current local time
        """
        self._store = store
        self._clock = clock
        self._lock = asyncio.Lock()

    @staticmethod
    def record_key(now: datetime) -> str:
        """Store key of the completion record for the day of ``now``."""
        return f"{KEY_PREFIX}{day_key(now)}"

    async def load_today(self, now: datetime | None = None) -> set[str]:
        """Return the ids completed today (empty if the store is unavailable)."""
        key = self.record_key(now or self._clock())
        try:
            return await self._read(key)
        except PersistenceUnavailableError as e:
            logger.warning(f"Failed to load completions: {e}")
            return set()

    async def mark_completed(self, challenge_id: str, now: datetime | None = None) -> None:
        """Add a challenge to today's record.

        Marking the same id twice in a day leaves the record unchanged.
        Store failures are logged, never raised.
        """
        key = self.record_key(now or self._clock())
        async with self._lock:
            try:
                completed = await self._read(key)
                if challenge_id in completed:
                    return
                completed.add(challenge_id)
                await self._store.set(key, json.dumps(sorted(completed)))
            except PersistenceUnavailableError as e:
                logger.warning(f"Failed to mark challenge {challenge_id} completed: {e}")
                return
        logger.debug(f"Marked challenge {challenge_id} as completed ({key})")

    async def is_completed_today(self, challenge_id: str, now: datetime | None = None) -> bool:
        """Check whether a challenge was completed today."""
        return challenge_id in await self.load_today(now)

    async def today_count(self, now: datetime | None = None) -> int:
        """Number of distinct challenges completed today."""
        return len(await self.load_today(now))

    async def cleanup_old_records(self, now: datetime | None = None) -> int:
        """Remove every completion record except today's.

        Call once at process start, never mid-session.

        Returns:
            Number of records removed (0 if the store is unavailable)
        """
        today_key = self.record_key(now or self._clock())
        async with self._lock:
            try:
                keys = await self._store.list_keys()
                old_keys = [k for k in keys if k.startswith(KEY_PREFIX) and k != today_key]
                if old_keys:
                    await self._store.multi_remove(old_keys)
            except PersistenceUnavailableError as e:
                logger.warning(f"Failed to clean up old completions: {e}")
                return 0
        if old_keys:
            logger.info(f"Cleaned up {len(old_keys)} old completion records")
        return len(old_keys)

    async def _read(self, key: str) -> set[str]:
        raw = await self._store.get(key)
        if raw is None:
            return set()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt completion record {key}")
            return set()
        if not isinstance(data, list):
            return set()
        return {str(item) for item in data}
