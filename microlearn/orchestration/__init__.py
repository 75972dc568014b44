"""Orchestration for coordinating services."""

from .app import MicrolearnApp
from .session_engine import ChallengeSessionEngine

__all__ = ["ChallengeSessionEngine", "MicrolearnApp"]
