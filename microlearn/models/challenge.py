"""Data models for practice challenges."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from microlearn.exceptions import ContentFetchError


class ChallengeType(Enum):
    """Kind of challenge; the engine dispatches on this tag only."""

    ERROR_SPOTTING = "error_spotting"
    MICRO_QUIZ = "micro_quiz"
    SMART_FLASHCARD = "smart_flashcard"
    NATIVE_CHECK = "native_check"
    BRAIN_TICKLER = "brain_tickler"
    STORY_BUILDER = "story_builder"
    SWIPE_FIX = "swipe_fix"

    @property
    def display_name(self) -> str:
        """Human-readable name (e.g. 'Error Spotting')."""
        return self.value.replace("_", " ").title()

    @property
    def defers_advance(self) -> bool:
        """Whether advancing waits for an external undo window to expire."""
        return self is ChallengeType.NATIVE_CHECK

    @classmethod
    def parse(cls, value: "str | ChallengeType") -> "ChallengeType":
        """Accept an enum member, an API name or a display name."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace(" ", "_")
        return cls(normalized)


@dataclass(frozen=True)
class Challenge:
    """A single unit of practice content.

    Only ``id`` and ``type`` matter to the engine; everything
    type-specific (question, options, explanation...) stays in ``payload``.
    """

    id: str
    type: ChallengeType
    language: str = ""
    cefr_level: str = ""
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Challenge":
        """Build a challenge from a backend JSON object.

        Raises:
            ContentFetchError: If the id is missing or the type is unknown
        """
        try:
            challenge_id = str(data["id"])
            challenge_type = ChallengeType.parse(data["type"])
        except (KeyError, ValueError) as e:
            raise ContentFetchError(f"Invalid challenge payload: {e}") from e

        known = {"id", "type", "language", "cefrLevel", "cefr_level"}
        return cls(
            id=challenge_id,
            type=challenge_type,
            language=str(data.get("language", "")),
            cefr_level=str(data.get("cefrLevel", data.get("cefr_level", ""))),
            payload={k: v for k, v in data.items() if k not in known},
        )
