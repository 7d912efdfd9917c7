"""
Custom exceptions and error handling utilities for the CentraTutor application.
"""

import re
from typing import Any, Dict, Optional


class CentraTutorException(Exception):
    """Base exception class for all CentraTutor application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)


class ValidationError(CentraTutorException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(
            message, status_code=400, details=details, error_code="VALIDATION_ERROR"
        )


class AuthenticationError(CentraTutorException):
    """Raised when a request carries no usable credentials.

    ``error_code`` is one of NO_TOKEN, TOKEN_EXPIRED, INVALID_TOKEN or
    USER_NOT_FOUND so that clients can tell a missing token from a stale one.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: str = "AUTHENTICATION_ERROR",
    ):
        super().__init__(message, status_code=401, error_code=error_code)


class AuthorizationError(CentraTutorException):
    """Raised when authorization fails."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, error_code="AUTHORIZATION_ERROR")


class NotFoundError(CentraTutorException):
    """Raised when a resource is not found."""

    def __init__(
        self, message: str = "Resource not found", resource_type: Optional[str] = None
    ):
        details = {"resource_type": resource_type} if resource_type else {}
        super().__init__(
            message, status_code=404, details=details, error_code="NOT_FOUND_ERROR"
        )


class ConflictError(CentraTutorException):
    """Raised when there's a conflict with the current state."""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message, status_code=409, details=details, error_code="CONFLICT_ERROR"
        )


class GoneError(CentraTutorException):
    """Raised when a resource existed but can no longer be used."""

    def __init__(self, message: str = "Resource is no longer available"):
        super().__init__(message, status_code=410, error_code="GONE_ERROR")


class DatabaseError(CentraTutorException):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
    ):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message, status_code=500, details=details, error_code="DATABASE_ERROR"
        )


def extract_db_error_message(exception: Exception) -> tuple[str, str]:
    """
    Extract meaningful error message from SQLAlchemy exceptions.

    Returns:
        tuple: (user_friendly_message, technical_details)
    """
    error_str = str(getattr(exception, "orig", None) or exception)
    lowered = error_str.lower()

    if "duplicate key" in lowered or "unique constraint" in lowered:
        return "Duplicate record - this data already exists", error_str

    elif "column" in lowered and "does not exist" in lowered:
        match = re.search(r'column "([^"]*)" does not exist', error_str)
        if match:
            return f"Database column '{match.group(1)}' does not exist", error_str
        return "Database column does not exist", error_str

    elif "relation" in lowered and "does not exist" in lowered:
        match = re.search(r'relation "([^"]*)" does not exist', error_str)
        if match:
            return f"Database table '{match.group(1)}' does not exist", error_str
        return "Database table does not exist", error_str

    elif "foreign key constraint" in lowered:
        return "Invalid reference - related record not found", error_str

    elif "not null constraint" in lowered:
        return "Required field is missing", error_str

    return "Database query failed", error_str
