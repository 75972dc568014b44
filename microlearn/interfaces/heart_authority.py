"""Protocol for the remote heart authority."""

from typing import Protocol

from microlearn.models import HeartPool, HeartResponse


class HeartAuthority(Protocol):
    """Backend that owns the ground truth of every heart pool."""

    async def get_status(self, user_id: str, challenge_type: str) -> HeartPool:
        """Return the current pool for a challenge type.

        Raises:
            RemoteServiceError: If the authority cannot be reached.
        """
        ...

    async def consume(
        self,
        user_id: str,
        challenge_type: str,
        session_id: str,
        challenge_id: str,
        is_correct: bool,
    ) -> HeartResponse:
        """Consume one heart after an answer.

        Must be callable even after a previous call reported out_of_hearts.

        Raises:
            RemoteServiceError: If the authority cannot be reached.
        """
        ...
