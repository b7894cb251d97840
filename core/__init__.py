"""
Core Module Package.

Shared infrastructure that the service and persistence layers
depend on.

Components:
- exceptions: Service-level exception hierarchy
"""

from .exceptions import (
    MovieServiceException,
    ResourceNotFoundError,
    UnauthenticatedError,
    UsernameNotFoundError,
    DatabaseIntegrityError,
    InvalidPageRequestError,
    InvalidScoreError,
)

__all__ = [
    "MovieServiceException",
    "ResourceNotFoundError",
    "UnauthenticatedError",
    "UsernameNotFoundError",
    "DatabaseIntegrityError",
    "InvalidPageRequestError",
    "InvalidScoreError",
]
