"""
Movies - Store and Provider Interfaces.

============================================================
PURPOSE
============================================================
Narrow capability sets the services depend on.

Implementations:
- movies.repository: SQLAlchemy-backed stores
- movies.memory_store: In-memory stores (tests, local runs)
- movies.user_service.UserService: AuthenticationProvider

Write failures caused by constraints surface as
database.engine.StoreIntegrityError from every implementation.

============================================================
"""

from abc import ABC, abstractmethod
from typing import Optional

from .types import Movie, Page, PageRequest, Score, User


# ============================================================
# MOVIE STORE
# ============================================================

class MovieRepository(ABC):
    """Abstract movie store."""

    @abstractmethod
    def find_by_id(self, movie_id: int) -> Optional[Movie]:
        """Get a movie, or None if absent."""
        pass

    @abstractmethod
    def find_by_id_for_update(self, movie_id: int) -> Optional[Movie]:
        """
        Re-read a movie's committed state before modifying it.

        Takes a row lock where the database supports one.
        """
        pass

    @abstractmethod
    def exists_by_id(self, movie_id: int) -> bool:
        """Check whether a movie exists."""
        pass

    @abstractmethod
    def save(self, movie: Movie) -> Movie:
        """
        Insert (id is None) or update a movie and commit.

        Raises:
            StoreIntegrityError: On constraint violation
        """
        pass

    @abstractmethod
    def delete_by_id(self, movie_id: int) -> None:
        """
        Delete a movie and commit.

        Raises:
            StoreIntegrityError: If scores still reference the movie
        """
        pass

    @abstractmethod
    def search_by_title(self, title: str, request: PageRequest) -> Page[Movie]:
        """Case-insensitive substring search, ordered by id."""
        pass


# ============================================================
# SCORE STORE
# ============================================================

class ScoreRepository(ABC):
    """Abstract score store."""

    @abstractmethod
    def find(self, movie_id: int, user_id: int) -> Optional[Score]:
        """Get the user's score for a movie, or None."""
        pass

    @abstractmethod
    def save_and_flush(self, score: Score) -> Score:
        """
        Insert or replace a score.

        Flushed immediately; committed with the next movie save.
        """
        pass

    @abstractmethod
    def count_by_movie(self, movie_id: int) -> int:
        """Number of scores recorded for a movie."""
        pass


# ============================================================
# USER STORE
# ============================================================

class UserRepository(ABC):
    """Abstract user directory."""

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[User]:
        """Get a user with roles, or None."""
        pass


# ============================================================
# AUTHENTICATION PROVIDER
# ============================================================

class AuthenticationProvider(ABC):
    """Resolves the caller of the current request."""

    @abstractmethod
    def authenticated(self) -> User:
        """
        Get the authenticated user.

        Raises:
            UnauthenticatedError: If no caller identity is established
        """
        pass
