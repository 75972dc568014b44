"""Custom exceptions for Microlearn."""

from .base import MicrolearnException
from .remote import ContentFetchError, PersistenceUnavailableError, RemoteServiceError
from .session import InvalidSessionError, ResourceExhaustedError, StaleAnswerError

__all__ = [
    "MicrolearnException",
    "InvalidSessionError",
    "StaleAnswerError",
    "ResourceExhaustedError",
    "PersistenceUnavailableError",
    "RemoteServiceError",
    "ContentFetchError",
]
