"""
Custom exceptions for the application.
"""


class StudyWithMeException(Exception):
    """Base exception for all StudyWithMe application exceptions."""
    pass


class ValidationError(StudyWithMeException):
    """Raised when input validation fails, before any state is touched."""
    pass


class NotFoundError(StudyWithMeException):
    """Raised when a referenced deck, card or quiz does not exist."""
    pass


class PersistenceError(StudyWithMeException):
    """Raised when the snapshot store cannot be read or written."""
    pass
