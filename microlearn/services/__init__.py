"""Business logic services for Microlearn."""

from .achievements import check_achievements
from .completion_tracker import CompletionTracker
from .heart_accountant import HeartPoolAccountant
from .providers import HttpCompletionReporter, HttpContentProvider, HttpHeartAuthority
from .scoring import combo_milestone, compute_score, session_grade
from .stats_aggregator import StatsAggregator
from .storage import InMemoryKeyValueStore, SQLiteKeyValueStore

__all__ = [
    "compute_score",
    "combo_milestone",
    "session_grade",
    "check_achievements",
    "HeartPoolAccountant",
    "CompletionTracker",
    "StatsAggregator",
    "SQLiteKeyValueStore",
    "InMemoryKeyValueStore",
    "HttpContentProvider",
    "HttpHeartAuthority",
    "HttpCompletionReporter",
]
