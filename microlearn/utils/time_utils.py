"""Calendar-day keys and local time helpers.

Day keys are derived from the device's local date at the moment of the
call, so every module that scopes data by day shares these helpers.
"""

import math
from collections.abc import Callable
from datetime import date, datetime

Clock = Callable[[], datetime]


def day_key(now: datetime) -> str:
    """Return the YYYY-MM-DD key for the local date of ``now``.

    Aware datetimes are converted to local time first; naive ones are
    taken to be local already.
    """
    return to_local_naive(now).strftime("%Y-%m-%d")


def days_between(earlier: str, later: str) -> int:
    """Number of calendar days from one day key to another.

    Returns a negative number if ``later`` is before ``earlier``.
    """
    return (date.fromisoformat(later) - date.fromisoformat(earlier)).days


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds from ``now`` until ``moment`` (rounded up, never negative)."""
    return max(0, math.ceil((moment - now).total_seconds()))


def to_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive input is returned as-is."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
