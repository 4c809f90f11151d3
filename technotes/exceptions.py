"""
TechNotes Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for each failure category a note
       operation can report.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) translate them
       into JSON error responses with the matching HTTP status code.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    TechNotesError (base)
    ├── InvalidInputError        → 400 Bad Request (missing/malformed fields)
    ├── NotFoundError            → 400 Bad Request (referenced record missing)
    ├── ConflictError            → 409 Conflict (duplicate note title)
    ├── InvalidDataError         → 409 Conflict (store rejected the write)
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

NotFoundError maps to 400 rather than 404: clients of this API have always
received a client-error status for unknown note ids and empty listings.
"""

from typing import Any, Dict, Optional


class TechNotesError(Exception):
    """
    Base exception for all TechNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (returned as `details` where the handler allows)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(TechNotesError):
    """
    Raised when a request is missing a required field or a field has the wrong type.

    The caller can always recover by retrying with corrected input.
    """

    def __init__(
        self,
        message: str = "All fields required",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(TechNotesError):
    """Raised when a referenced record (or any record at all, for listings) does not exist."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(TechNotesError):
    """Raised when a write would give two notes the same title."""

    def __init__(
        self,
        message: str = "Duplicate note title",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidDataError(TechNotesError):
    """
    Raised when the store itself rejects a create, update or delete.

    Typical cause: the unique title index catching a concurrent duplicate that
    slipped past the application-level check.
    """

    def __init__(
        self,
        message: str = "Invalid note data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TechNotesError):
    """
    Raised when a database operation fails unexpectedly (lost connection, etc.).

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TechNotesError):
    """Raised when a client exceeds the per-IP request rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
