"""Exception hierarchy for the lending domain.

Domain code raises these at the point of violation; only the HTTP boundary
and the CLI translate them into responses.
"""

from typing import Any, List, Optional


class LibraryError(Exception):
    """Base exception for all lending errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(LibraryError, ValueError):
    """Raised when a request is missing fields or carries malformed values."""

    def __init__(self, errors: List[dict], message: str = "Invalid input."):
        self.errors = list(errors)
        super().__init__(message, details={"errors": self.errors})


class OutOfRangeError(InvalidInputError):
    """Raised when a value falls outside its permitted range."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__([{"field": field, "message": reason}], message=reason)
        self.details["value"] = str(value)


class InvalidStateError(LibraryError):
    """Raised when a domain rule forbids the requested transition."""


class NotFoundError(LibraryError, LookupError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} with ID '{entity_id}' not found.",
            details={"entity": entity, "id": str(entity_id)},
        )


class StorageError(LibraryError):
    """Raised when the backing store fails."""
