"""Protocol for challenge content sources."""

from typing import Protocol

from microlearn.models import Challenge, ChallengeType, SessionSource


class ContentProvider(Protocol):
    """Source of practice challenges for new sessions."""

    async def fetch_challenges(
        self,
        language: str,
        level: str,
        challenge_type: ChallengeType,
        count: int,
        source: SessionSource,
    ) -> list[Challenge]:
        """Fetch an ordered list of challenges.

        Raises:
            ContentFetchError: If the challenges cannot be fetched. Failures
                must not be reported as an empty list.
        """
        ...
