"""Persistence and backend communication exceptions."""

from .base import MicrolearnException


class PersistenceUnavailableError(MicrolearnException):
    """Raised when the local key-value store cannot be read or written."""

    pass


class RemoteServiceError(MicrolearnException):
    """Raised when a backend endpoint cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ContentFetchError(RemoteServiceError):
    """Raised when challenges cannot be fetched for a session."""

    pass
