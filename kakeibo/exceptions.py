"""Domain-specific exceptions for the kakeibo core services."""

from typing import Dict, Optional


class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})


class RecordNotFoundError(LookupError):
    """Raised when an expense record cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""


class PersistenceReadError(PersistenceError):
    """The stored blob could not be read or decoded."""


class PersistenceWriteError(PersistenceError):
    """The state could not be written."""


class QuotaExceededError(PersistenceWriteError):
    """The storage medium has no room left for the state blob."""
