"""Interface protocols for Microlearn."""

from .completion_reporter import CompletionReporter
from .content_provider import ContentProvider
from .heart_authority import HeartAuthority
from .key_value_store import KeyValueStore
from .presenter import PresenterProtocol

__all__ = [
    "CompletionReporter",
    "ContentProvider",
    "HeartAuthority",
    "KeyValueStore",
    "PresenterProtocol",
]
