"""Remote heart authority backed by the ``/api/hearts`` endpoints."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import RemoteServiceError
from microlearn.models import HeartPool, HeartResponse, RefillInfo
from microlearn.utils import Clock

from .api_client import ApiClient

logger = logging.getLogger(__name__)


class HttpHeartAuthority:
    """Heart authority using the backend's status and consume endpoints.

    Implements HeartAuthority protocol. The backend reports the wait until
    the next heart in minutes; it is converted to a local timestamp using
    the injected clock.
    """

    def __init__(
        self,
        config: MicrolearnConfig,
        client: ApiClient | None = None,
        clock: Clock = datetime.now,
    ):
        self.config = config
        self.client = client or ApiClient(config)
        self._clock = clock

    async def get_status(self, user_id: str, challenge_type: str) -> HeartPool:
        """Return the pool for a challenge type.

        Raises:
            RemoteServiceError: If the backend is unreachable or the payload is malformed
        """
        data = await asyncio.to_thread(self.client.get, f"/api/hearts/status/{challenge_type}")
        if not isinstance(data, dict):
            raise RemoteServiceError("Invalid heart status payload")

        try:
            remaining = int(data["currentHearts"])
            capacity = int(data.get("maxHearts", self.config.heart_capacity))
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteServiceError(f"Invalid heart status payload: {e}") from e

        refill = self._parse_refill(data.get("refillInfo"))
        return HeartPool(
            challenge_type=challenge_type,
            remaining=remaining,
            capacity=capacity,
            next_refill_at=refill.next_refill_at if refill else None,
        )

    async def consume(
        self,
        user_id: str,
        challenge_type: str,
        session_id: str,
        challenge_id: str,
        is_correct: bool,
    ) -> HeartResponse:
        """Consume one heart for an answered challenge.

        Raises:
            RemoteServiceError: If the backend is unreachable or the payload is malformed
        """
        payload = {
            "challenge_type": challenge_type,
            "is_correct": is_correct,
            "session_id": session_id,
            "challenge_id": challenge_id,
            "user_id": user_id,
        }
        data = await asyncio.to_thread(self.client.post, "/api/hearts/consume", payload)
        if not isinstance(data, dict):
            raise RemoteServiceError("Invalid heart consume payload")

        try:
            remaining = int(data["heartsRemaining"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteServiceError(f"Invalid heart consume payload: {e}") from e

        logger.debug(f"Consumed {challenge_type} heart, {remaining} remaining")
        return HeartResponse(
            out_of_hearts=bool(data.get("outOfHearts", remaining == 0)),
            hearts_remaining=remaining,
            refill_info=self._parse_refill(data.get("refillInfo")),
        )

    def _parse_refill(self, info: Any) -> RefillInfo | None:
        if not isinstance(info, dict) or info.get("nextHeartInMinutes") is None:
            return None
        try:
            minutes = float(info["nextHeartInMinutes"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed refill info: {info}")
            return None
        wait_seconds = max(0, round(minutes * 60))
        return RefillInfo(
            next_refill_at=self._clock() + timedelta(seconds=wait_seconds),
            wait_seconds=wait_seconds,
        )
