"""
TimeBank Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a user-safe message and an optional context
       dict. Global handlers registered in main.py turn them into the single
       error envelope:

           {"success": false, "error": "<code>", "message": "...",
            "details": {...}, "request_id": "..."}

Exception Hierarchy:
    TimeBankError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized (no or bad session token)
    │   └── InvalidCredentialsError → 401 (wrong email/password at login)
    ├── UnauthorizedError        → 403 Forbidden (acting user is not the owner)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (email already registered)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── StorageFailureError      → 500 (uploaded file could not be written/removed)
    └── DatabaseError            → 500 (query execution failed)

A missing row and a row owned by somebody else are reported differently:
NotFoundError (404) versus UnauthorizedError (403).
"""

from typing import Any, Dict, Optional


class TimeBankError(Exception):
    """
    Base exception for all TimeBank application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only returned for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TimeBankError):
    """
    Raised when client input fails validation.

    When:  Missing required fields, malformed email, short password,
           missing or oversized upload.
    HTTP:  400 Bad Request
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


class AuthenticationError(TimeBankError):
    """
    Raised when a mutating request carries no valid session token.

    HTTP:  401 Unauthorized, with a WWW-Authenticate: Bearer header.
    """

    error_code = "authentication_required"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """
    Raised by login when the email is unknown or the password does not match.

    The same message is used for both cases so the response does not reveal
    which emails are registered.
    """

    error_code = "invalid_credentials"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials", context=context)


class UnauthorizedError(TimeBankError):
    """
    Raised by the ownership guard when the acting user does not own the row.

    The row exists; the actor simply has no right to change it.
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        message: str = "Unauthorized access",
        resource: Optional[str] = None,
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class NotFoundError(TimeBankError):
    """
    Raised when a requested row does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(TimeBankError):
    """
    Raised on uniqueness violations, e.g. registering an existing email.

    HTTP:  409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class StorageFailureError(TimeBankError):
    """
    Raised when the asset store cannot write or remove a file.

    When:  Disk full, permission denied, I/O error.
    HTTP:  500 Internal Server Error. File system paths stay in the
           context and are only logged.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TimeBankError):
    """
    Raised when a database operation fails unexpectedly.

    Not retried. The client always receives a generic message; the original
    error type is kept in the context for the server log.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TimeBankError):
    """
    Describes a client over the per-IP login/registration rate limit.

    Built and rendered by AuthRateLimitMiddleware, which answers before the
    route layer and its exception handlers run.
    HTTP:  429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many attempts. Please wait {retry_after} seconds before trying again."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
