"""
User Service.

Resolves the authenticated caller and exposes login details for
an authentication layer.
"""

import logging
from typing import Optional

from core.exceptions import UnauthenticatedError, UsernameNotFoundError

from .interfaces import AuthenticationProvider, UserRepository
from .security import SecurityContext
from .types import User, UserDetails

logger = logging.getLogger(__name__)


class UserService(AuthenticationProvider):
    """User directory lookups for the current request."""

    def __init__(
        self,
        user_repository: UserRepository,
        security_context: Optional[SecurityContext] = None,
    ):
        self.repository = user_repository
        self.security_context = security_context or SecurityContext()

    def authenticated(self) -> User:
        """
        Get the user behind the current request.

        Raises UnauthenticatedError when no caller identity is set
        or the identity is not a known user.
        """
        username = self.security_context.get_username()
        if not username:
            raise UnauthenticatedError("No authenticated user")

        user = self.repository.find_by_username(username)
        if user is None:
            logger.warning(f"Authenticated username not in directory: {username}")
            raise UnauthenticatedError("Invalid user", username=username)

        return user

    def load_user_by_username(self, username: str) -> UserDetails:
        user = self.repository.find_by_username(username)
        if user is None:
            raise UsernameNotFoundError(username)

        return UserDetails(
            username=user.username,
            password=user.password,
            authorities=[role.authority for role in user.roles],
        )
