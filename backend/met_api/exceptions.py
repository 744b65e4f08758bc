"""
MET API — Custom Exception Hierarchy
======================================

What:  Application-specific exceptions raised by models, repositories and
       services.
How:   Each exception carries a message and an optional context dict.
       Route handlers translate them through `common_error_handler`
       (routes/common.py); main.py formats the resulting HTTP errors.

Exception Hierarchy:
    MetError (base)
    ├── InvalidInputError    → 400 Invalid Input
    ├── NotFoundError        → 404 Not Found (500 on delete routes)
    ├── NotAuthorizedError   → 401 Not Authorized
    ├── FileStorageError     → 500 Server Error
    └── DatabaseError        → 500 Server Error
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class FieldError:
    """One failed field check: `field` is the JSON key, or "root"."""

    field: str
    message: str = "invalid"


class MetError(Exception):
    """
    Base exception for all MET API errors.

    Attributes:
        message:  Human-readable description (logged, not returned verbatim)
        context:  Additional debug info for logs
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(MetError):
    """
    Raised when client input fails validation.

    `field_errors` lists every failed field so callers can report all of
    them at once instead of the first one.
    """

    def __init__(
        self,
        message: str = "Invalid Input",
        field_errors: Optional[Sequence[FieldError]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.field_errors: List[FieldError] = list(field_errors or [])
        ctx = context or {}
        if self.field_errors:
            ctx["fields"] = [e.field for e in self.field_errors]
        super().__init__(message=message, context=ctx)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.field_errors]


class NotFoundError(MetError):
    """Raised when a requested entity does not exist (or is not visible)."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class NotAuthorizedError(MetError):
    """Raised when the caller is authenticated but not allowed the action."""

    def __init__(
        self,
        message: str = "Not Authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(MetError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    Note:    For file-backed repositories the in-memory change has already
             been applied when this is raised.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(MetError):
    """Raised when a database operation fails unexpectedly."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
