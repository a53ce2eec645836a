"""
Quotes API — Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions, one per failure category.
How:   Each exception carries a user-facing message, an optional diagnostic
       string (`error`, returned in the envelope) and a context dict that is
       logged but never returned. The global handler in main.py turns any of
       them into `{statusCode, message, error?}` using `status_code`.
Who:   Raised by stores, services and auth dependencies.

Exception Hierarchy:
    QuoteApiError (base)         → 500
    ├── ValidationError          → 400 Bad Request
    ├── ConflictError            → 400 Bad Request (duplicate unique field)
    ├── AuthError                → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    └── InternalError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class QuoteApiError(Exception):
    """
    Base exception for all Quotes API errors.

    Attributes:
        message:  User-facing error description (returned in the envelope)
        error:    Optional diagnostic string (returned as `error`)
        context:  Debug info for server-side logs only
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error = error
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(QuoteApiError):
    """
    Raised when client input is missing or malformed.

    When:    Quote without text/author, registration without credentials.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, error=error, context=ctx)
        self.field = field


class ConflictError(QuoteApiError):
    """
    Raised when a unique field (email, username) is already taken.

    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "User with this email or username already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthError(QuoteApiError):
    """
    Raised for a missing, malformed, invalid or expired token, and for bad
    login credentials. The message is deliberately the same for an unknown
    email and a wrong password.

    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(QuoteApiError):
    """
    Raised when an authenticated user lacks the required role.

    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Access denied. Admin role required.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(QuoteApiError):
    """
    Raised when a requested record does not exist.

    When:    Update or delete of an unknown quote id; route-level lookups
             that got `None` back from a store.
    HTTP:    404 Not Found

    Stores return None from plain lookups; this exception is how the
    mutating operations and the routes report the absence.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource} not found"
            if resource_id is not None:
                message = f"{resource} with ID {resource_id} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InternalError(QuoteApiError):
    """
    Raised when persistence or serialization fails unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client stays generic. Details (paths,
        SQL, OS errors) go into `context` and are logged server-side only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
