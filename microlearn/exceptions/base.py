"""Base exception classes for Microlearn."""


class MicrolearnException(Exception):
    """Base exception for all Microlearn errors.

    All custom exceptions in the microlearn package should inherit
    from this base class for consistent error handling.
    """

    pass
