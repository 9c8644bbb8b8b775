"""
Accounting Notes Backend — Custom Exception Hierarchy
=======================================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by the repository, services and routes; caught by global handlers.

Exception Hierarchy:
    AccountingNotesError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── PayloadTooLargeError     → 413 Payload Too Large
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class AccountingNotesError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged, returned only for 400s)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AccountingNotesError):
    """
    Raised when client input fails validation.

    When:    Missing or blank note fields, no images, too many images.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(AccountingNotesError):
    """
    Raised when a requested resource does not exist.

    When:    DELETE /api/notes/{id} for an unknown id, chapters for an unknown
             paper when the catalog fallback is disabled.
    HTTP:    404 Not Found

    The repository returns None for missing rows; the conversion to this
    exception happens there so routes never inspect None.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PayloadTooLargeError(AccountingNotesError):
    """
    Raised when an uploaded file exceeds the configured size cap.

    The whole request is rejected before any file is written or any
    record is inserted.
    HTTP:    413 Payload Too Large
    """

    def __init__(
        self,
        max_size: int,
        actual_size: Optional[int] = None,
        filename: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        max_mb = max_size / (1024 * 1024)
        message = f"File size exceeds maximum of {max_mb:.0f}MB."
        if filename:
            message = f"File '{filename}' exceeds maximum size of {max_mb:.0f}MB."
        ctx = context or {}
        ctx["max_size"] = max_size
        if actual_size is not None:
            ctx["actual_size"] = actual_size
        super().__init__(message=message, context=ctx)
        self.max_size = max_size


class FileStorageError(AccountingNotesError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(AccountingNotesError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, etc.
    HTTP:    500 Internal Server Error

    The message is written by the caller; driver details go into context,
    which is logged server-side and never returned.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
