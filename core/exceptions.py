"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the service-level exceptions of the movie scores system.

- Provides clear exception hierarchy
- Enables specific error handling at the service boundary
- Includes context for debugging and logging

============================================================
EXCEPTION HIERARCHY
============================================================
MovieServiceException (base)
├── ResourceNotFoundError
├── UnauthenticatedError
│   └── UsernameNotFoundError
├── DatabaseIntegrityError
└── InvalidPageRequestError

None of these are retried automatically. Store-level failures
(database/engine.py) are translated into these kinds by the
services before they reach the caller.

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Expected outcome of a bad request."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, data may be inconsistent."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    CLIENT = "client"
    """Caller supplied a bad identifier, identity or value."""

    CONFLICT = "conflict"
    """Stored state prevents the operation."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class MovieServiceException(Exception):
    """
    Base exception for all movie service errors.

    All exceptions carry:
    - severity: for logging
    - context: for debugging
    - classification: client error or state conflict
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.LOW
    default_classification: ErrorClassification = ErrorClassification.CLIENT

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# LOOKUP ERRORS
# ============================================================

class ResourceNotFoundError(MovieServiceException):
    """Requested movie (or referenced entity) does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource: Optional[str] = None,
        resource_id: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if resource:
            context["resource"] = resource
        if resource_id is not None:
            context["resource_id"] = resource_id

        super().__init__(message, context=context, **kwargs)
        self.resource = resource
        self.resource_id = resource_id


# ============================================================
# AUTHENTICATION ERRORS
# ============================================================

class UnauthenticatedError(MovieServiceException):
    """No valid caller identity is established."""

    def __init__(
        self,
        message: str = "Invalid user",
        username: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if username:
            context["username"] = username

        super().__init__(message, context=context, **kwargs)
        self.username = username


class UsernameNotFoundError(UnauthenticatedError):
    """Username is not present in the user directory."""

    def __init__(self, username: str):
        super().__init__(message="User not found", username=username)


# ============================================================
# STORE CONFLICTS
# ============================================================

class DatabaseIntegrityError(MovieServiceException):
    """Store rejected a write because of a constraint."""

    default_severity = Severity.MEDIUM
    default_classification = ErrorClassification.CONFLICT

    def __init__(
        self,
        message: str = "Integrity violation",
        operation: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if operation:
            context["operation"] = operation
        if table:
            context["table"] = table

        super().__init__(message, context=context, **kwargs)


# ============================================================
# REQUEST ERRORS
# ============================================================

class InvalidPageRequestError(MovieServiceException):
    """Page number or page size out of range."""

    def __init__(self, page: int, size: int, reason: str):
        super().__init__(
            message=f"Invalid page request: {reason}",
            context={"page": page, "size": size},
        )


class InvalidScoreError(MovieServiceException):
    """Submitted score is outside the accepted range."""

    def __init__(self, value: float, min_score: float, max_score: float):
        super().__init__(
            message=f"Score must be between {min_score} and {max_score}",
            context={"value": value, "min_score": min_score, "max_score": max_score},
        )
        self.value = value


__all__ = [
    "Severity",
    "ErrorClassification",
    "MovieServiceException",
    "ResourceNotFoundError",
    "UnauthenticatedError",
    "UsernameNotFoundError",
    "DatabaseIntegrityError",
    "InvalidPageRequestError",
    "InvalidScoreError",
]
