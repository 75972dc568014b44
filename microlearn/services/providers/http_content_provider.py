"""Challenge content fetched from the learning backend."""

import asyncio
import logging

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import ContentFetchError, RemoteServiceError
from microlearn.models import Challenge, ChallengeType, SessionSource

from .api_client import ApiClient

logger = logging.getLogger(__name__)


class HttpContentProvider:
    """Content provider backed by ``GET /api/challenges/by-type/{type}``.

    Implements ContentProvider protocol.
    """

    def __init__(self, config: MicrolearnConfig, client: ApiClient | None = None):
        self.config = config
        self.client = client or ApiClient(config)

    async def fetch_challenges(
        self,
        language: str,
        level: str,
        challenge_type: ChallengeType,
        count: int,
        source: SessionSource,
    ) -> list[Challenge]:
        """Fetch up to ``count`` challenges of one type.

        Raises:
            ContentFetchError: On network errors or malformed responses
        """
        return await asyncio.to_thread(
            self._fetch, language, level, challenge_type, count, source
        )

    def _fetch(
        self,
        language: str,
        level: str,
        challenge_type: ChallengeType,
        count: int,
        source: SessionSource,
    ) -> list[Challenge]:
        params: dict[str, str | int] = {"limit": count}
        if language:
            params["language"] = language
        if level:
            params["level"] = level
        if source is SessionSource.LEARNING_PLAN:
            params["source"] = source.value

        try:
            data = self.client.get(f"/api/challenges/by-type/{challenge_type.value}", params=params)
        except ContentFetchError:
            raise
        except RemoteServiceError as e:
            raise ContentFetchError(
                f"Failed to fetch {challenge_type.display_name} challenges: {e}",
                status_code=e.status_code,
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("challenges"), list):
            raise ContentFetchError("Invalid response format: expected challenges array")

        challenges = [Challenge.from_dict(item) for item in data["challenges"]]
        logger.info(f"Fetched {len(challenges)} {challenge_type.value} challenges")
        return challenges
