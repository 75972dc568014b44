"""Per-challenge-type heart pools with local refill and remote reconciliation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import InvalidSessionError, RemoteServiceError
from microlearn.models import HeartPool, HeartResponse, RefillInfo
from microlearn.utils import Clock, seconds_until

if TYPE_CHECKING:
    from microlearn.interfaces import HeartAuthority
    from microlearn.models import ChallengeSession

logger = logging.getLogger(__name__)


class HeartPoolAccountant:
    """Track the consumable heart pool of every challenge type.

    The remote authority owns the ground truth. A local cache is kept per
    challenge type so that answering never blocks on an unreachable
    backend: while offline the cache is authoritative and decrements are
    applied locally, and the next successful remote response replaces it.

    Pools are independent per challenge type and each has its own lock, so
    concurrent consumes against one pool are serialized.
    """

    def __init__(
        self,
        config: MicrolearnConfig,
        authority: HeartAuthority | None = None,
        clock: Clock = datetime.now,
    ):
        """Initialize the accountant.

        Args:
            config: Configuration (capacity, refill policy and interval)
            authority: Optional remote heart authority; None keeps pools local
            clock: Source of the current local time
        """
        self.config = config
        self.authority = authority
        self._clock = clock
        self._pools: dict[str, HeartPool] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._offline_consumptions: dict[str, int] = {}

    def cached_pool(self, challenge_type: str) -> HeartPool | None:
        """Snapshot of the cached pool for a challenge type, or None."""
        pool = self._pools.get(challenge_type)
        return replace(pool) if pool is not None else None

    def offline_consumptions(self, challenge_type: str) -> int:
        """Hearts spent locally since the last successful remote contact."""
        return self._offline_consumptions.get(challenge_type, 0)

    async def load_pool(self, user_id: str, challenge_type: str) -> HeartPool:
        """Fetch the current pool for a challenge type.

        Falls back to the cached pool (or a full pool) when the authority
        cannot be reached. Due refills are applied before returning.

        Args:
            user_id: Owner of the pool
            challenge_type: API name of the challenge type

        Returns:
            Snapshot of the pool
        """
        async with self._lock_for(challenge_type):
            now = self._clock()
            pool = None
            if self.authority is not None:
                try:
                    remote = await self.authority.get_status(user_id, challenge_type)
                except RemoteServiceError as e:
                    logger.warning(f"Heart status unavailable for {challenge_type}, using cache: {e}")
                else:
                    pool = self._accept_remote(challenge_type, remote)

            if pool is None:
                pool = self._pools.get(challenge_type) or self._full_pool(challenge_type)

            self._apply_refills(pool, now)
            self._schedule_refill(pool, now)
            self._pools[challenge_type] = pool
            return replace(pool)

    async def consume(
        self,
        session: ChallengeSession,
        challenge_type: str,
        challenge_id: str,
        is_correct: bool,
    ) -> HeartResponse:
        """Spend one heart for an answered challenge.

        Args:
            session: Session the answer belongs to
            challenge_type: API name of the challenge type
            challenge_id: Answered challenge
            is_correct: Whether the answer was correct

        Returns:
            HeartResponse; out_of_hearts is True iff no heart is left

        Raises:
            InvalidSessionError: If the session is in study mode
        """
        if session.is_study_mode:
            raise InvalidSessionError("Study mode sessions do not consume hearts")

        async with self._lock_for(challenge_type):
            response = None
            if self.authority is not None:
                try:
                    response = await self.authority.consume(
                        session.user_id, challenge_type, session.id, challenge_id, is_correct
                    )
                except RemoteServiceError as e:
                    logger.warning(
                        f"Heart authority unreachable, consuming {challenge_type} heart locally: {e}"
                    )

            now = self._clock()
            if response is not None:
                pool = self._accept_response(challenge_type, response)
            else:
                pool = self._consume_locally(challenge_type, now)

            self._schedule_refill(pool, now)
            return self._response_for(pool, now)

    async def grant(self, challenge_type: str, amount: int) -> HeartPool:
        """Add hearts to a pool (e.g. after a purchase), capped at capacity.

        Raises:
            ValueError: If amount is not positive
        """
        if amount <= 0:
            raise ValueError(f"amount must be positive: {amount}")

        async with self._lock_for(challenge_type):
            pool = self._pools.get(challenge_type) or self._full_pool(challenge_type)
            pool.remaining = min(pool.capacity, pool.remaining + amount)
            if pool.is_full:
                pool.next_refill_at = None
            self._pools[challenge_type] = pool
            logger.info(f"Granted {amount} {challenge_type} hearts ({pool.remaining}/{pool.capacity})")
            return replace(pool)

    # === Internals ===

    def _lock_for(self, challenge_type: str) -> asyncio.Lock:
        lock = self._locks.get(challenge_type)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[challenge_type] = lock
        return lock

    def _full_pool(self, challenge_type: str) -> HeartPool:
        capacity = self.config.heart_capacity
        return HeartPool(challenge_type=challenge_type, remaining=capacity, capacity=capacity)

    def _accept_remote(self, challenge_type: str, remote: HeartPool) -> HeartPool:
        capacity = remote.capacity if remote.capacity > 0 else self.config.heart_capacity
        pool = HeartPool(
            challenge_type=challenge_type,
            remaining=max(0, min(remote.remaining, capacity)),
            capacity=capacity,
            next_refill_at=remote.next_refill_at,
        )
        self._reconciled(challenge_type, pool)
        return pool

    def _accept_response(self, challenge_type: str, response: HeartResponse) -> HeartPool:
        cached = self._pools.get(challenge_type) or self._full_pool(challenge_type)
        remaining = 0 if response.out_of_hearts else max(0, response.hearts_remaining)
        pool = HeartPool(
            challenge_type=challenge_type,
            remaining=min(remaining, cached.capacity),
            capacity=cached.capacity,
            next_refill_at=(
                response.refill_info.next_refill_at
                if response.refill_info is not None
                else cached.next_refill_at
            ),
        )
        if pool.is_full:
            pool.next_refill_at = None
        self._pools[challenge_type] = pool
        self._reconciled(challenge_type, pool)
        return pool

    def _consume_locally(self, challenge_type: str, now: datetime) -> HeartPool:
        pool = self._pools.get(challenge_type) or self._full_pool(challenge_type)
        self._apply_refills(pool, now)
        if pool.remaining > 0:
            pool.remaining -= 1
            self._offline_consumptions[challenge_type] = (
                self._offline_consumptions.get(challenge_type, 0) + 1
            )
        self._pools[challenge_type] = pool
        return pool

    def _reconciled(self, challenge_type: str, pool: HeartPool) -> None:
        pending = self._offline_consumptions.pop(challenge_type, 0)
        if pending:
            logger.info(
                f"Reconciled {challenge_type} hearts with authority after {pending} offline "
                f"consumptions ({pool.remaining}/{pool.capacity})"
            )

    def _apply_refills(self, pool: HeartPool, now: datetime) -> None:
        """Credit every refill that came due by ``now``."""
        if pool.next_refill_at is None or now < pool.next_refill_at:
            return

        if self.config.refill_policy == "full_reset":
            pool.remaining = pool.capacity
            pool.next_refill_at = None
            return

        interval = timedelta(seconds=self.config.refill_interval_seconds)
        while pool.next_refill_at is not None and now >= pool.next_refill_at:
            pool.remaining += 1
            if pool.remaining >= pool.capacity:
                pool.remaining = pool.capacity
                pool.next_refill_at = None
            else:
                pool.next_refill_at += interval

    def _schedule_refill(self, pool: HeartPool, now: datetime) -> None:
        if pool.is_full:
            pool.next_refill_at = None
        elif pool.next_refill_at is None:
            pool.next_refill_at = now + timedelta(seconds=self.config.refill_interval_seconds)

    def _response_for(self, pool: HeartPool, now: datetime) -> HeartResponse:
        refill_info = None
        if pool.next_refill_at is not None:
            refill_info = RefillInfo(
                next_refill_at=pool.next_refill_at,
                wait_seconds=seconds_until(pool.next_refill_at, now),
            )
        return HeartResponse(
            out_of_hearts=pool.remaining == 0,
            hearts_remaining=pool.remaining,
            refill_info=refill_info,
        )
