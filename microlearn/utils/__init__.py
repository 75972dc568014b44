"""Utility functions for Microlearn."""

from .time_utils import Clock, day_key, days_between, seconds_until, to_local_naive

__all__ = ["Clock", "day_key", "days_between", "seconds_until", "to_local_naive"]
