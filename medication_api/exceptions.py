"""
Medication API - Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for startup and per-request failures.
How:   Each exception carries a short client-safe message and an optional
       context dict. Context is logged server-side and never returned.
Who:   Raised by the database adapter and the medication service; the
       per-request ones are caught by the global handlers in main.py.

Exception Hierarchy:
    MedicationAPIError (base)
    ├── ConfigurationError        → fatal at startup
    ├── DatabaseConnectionError   → fatal at startup
    ├── BadRequestError           → 400 Bad Request
    ├── NotFoundError             → 404 Not Found
    └── DatabaseError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class MedicationAPIError(Exception):
    """
    Base exception for all Medication API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(MedicationAPIError):
    """
    Raised when a required setting is missing or rejected by the driver.

    When:    MONGODB_URI, MONGODB_DB_NAME or MONGODB_COLLECTION is empty,
             or the URI cannot be parsed.
    Effect:  Aborts application startup.
    """

    def __init__(
        self,
        message: str = "Required configuration is missing",
        missing: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if missing:
            ctx["missing"] = list(missing)
        super().__init__(message=message, context=ctx)
        self.missing = list(missing or [])


class DatabaseConnectionError(MedicationAPIError):
    """
    Raised when MongoDB cannot be reached within the connect timeout.

    Effect:  Aborts application startup. Nothing is retried.
    """

    def __init__(
        self,
        message: str = "Could not connect to MongoDB",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BadRequestError(MedicationAPIError):
    """
    Raised when client input cannot be decoded.

    When:    Path id is not a valid ObjectId, or the body does not decode
             into the medication shape.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "bad_request",
            "message": "Invalid medication ID",
            "request_id": "a1b2c3d4"
        }
    """

    def __init__(
        self,
        message: str = "Invalid input",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MedicationAPIError):
    """
    Raised when no record matches the requested identifier.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "Medication not found",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(MedicationAPIError):
    """
    Raised when a persistence call fails, times out, or returns documents
    that cannot be decoded.

    HTTP:    500 Internal Server Error

    Security Note:
        The message is short and generic ("Failed to fetch medications").
        Driver errors are kept in context and only logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
