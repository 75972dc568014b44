"""Session state exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import MicrolearnException

if TYPE_CHECKING:
    from microlearn.models.hearts import RefillInfo


class InvalidSessionError(MicrolearnException):
    """Raised when an operation is not valid in the current session state."""

    pass


class StaleAnswerError(InvalidSessionError):
    """Raised when an answer does not match the challenge under the cursor."""

    pass


class ResourceExhaustedError(MicrolearnException):
    """Raised when a session cannot start because its heart pool is empty.

    Running out of hearts mid-session is a state transition, not an error.
    """

    def __init__(self, challenge_type: str, refill_info: RefillInfo | None = None):
        self.challenge_type = challenge_type
        self.refill_info = refill_info
        message = f"No hearts available for {challenge_type}"
        if refill_info is not None:
            message += f" (next heart in {refill_info.wait_seconds}s)"
        super().__init__(message)
