"""
Movie and Score Services.

This module handles:
- Catalog queries (paged title search, lookup by id)
- Catalog commands (insert, update, delete)
- Score submission for the authenticated user

Not-found checks always run before any store write, and store
constraint failures are translated into DatabaseIntegrityError.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import (
    DatabaseIntegrityError,
    InvalidPageRequestError,
    ResourceNotFoundError,
)
from database.engine import StoreIntegrityError

from .aggregator import MovieLockRegistry, ScoreAggregator, get_lock_registry
from .config import MovieServiceConfig, PaginationConfig
from .interfaces import AuthenticationProvider, MovieRepository, ScoreRepository
from .repository import SqlMovieRepository, SqlScoreRepository, SqlUserRepository
from .schemas import MovieDTO, ScoreDTO
from .security import SecurityContext
from .types import Movie, Page, PageRequest
from .user_service import UserService

logger = logging.getLogger(__name__)


# =============================================================
# MOVIE SERVICE
# =============================================================

class MovieService:
    """Catalog queries and commands."""

    def __init__(
        self,
        repository: MovieRepository,
        pagination: Optional[PaginationConfig] = None,
        locks: Optional[MovieLockRegistry] = None,
    ):
        self.repository = repository
        self.pagination = pagination or PaginationConfig()
        self.locks = locks if locks is not None else get_lock_registry()

    # ---------------------------------------------------------
    # QUERIES
    # ---------------------------------------------------------

    def find_all(self, title: str = "", page_request: Optional[PageRequest] = None) -> Page[MovieDTO]:
        """
        Page through movies whose title contains *title*.

        An empty match returns an empty page.
        """
        request = self._normalize(page_request)
        page = self.repository.search_by_title(title or "", request)
        return page.map(MovieDTO.from_movie)

    def find_by_id(self, movie_id: int) -> MovieDTO:
        movie = self.repository.find_by_id(movie_id)
        if movie is None:
            raise ResourceNotFoundError("Movie not found", resource="movie", resource_id=movie_id)
        return MovieDTO.from_movie(movie)

    # ---------------------------------------------------------
    # COMMANDS
    # ---------------------------------------------------------

    def insert(self, dto: MovieDTO) -> MovieDTO:
        """Create a movie with no scores yet."""
        movie = Movie(id=None, title=dto.title, score=0.0, count=0, image=dto.image)
        movie = self._save(movie, operation="insert")

        logger.info(f"Inserted movie: id={movie.id} title={movie.title!r}")
        return MovieDTO.from_movie(movie)

    def update(self, movie_id: int, dto: MovieDTO) -> MovieDTO:
        """
        Replace a movie's title and image.

        Score and count are owned by score submissions and are
        left untouched.
        """
        movie = self.repository.find_by_id(movie_id)
        if movie is None:
            logger.warning(f"Update rejected, movie not found: id={movie_id}")
            raise ResourceNotFoundError("Movie not found", resource="movie", resource_id=movie_id)

        movie.title = dto.title
        movie.image = dto.image
        movie = self._save(movie, operation="update")

        logger.info(f"Updated movie: id={movie.id} title={movie.title!r}")
        return MovieDTO.from_movie(movie)

    def delete(self, movie_id: int) -> None:
        """
        Delete a movie that has no scores.

        Raises:
            ResourceNotFoundError: If the movie does not exist
            DatabaseIntegrityError: If scores still reference it
        """
        if not self.repository.exists_by_id(movie_id):
            logger.warning(f"Delete rejected, movie not found: id={movie_id}")
            raise ResourceNotFoundError("Movie not found", resource="movie", resource_id=movie_id)

        try:
            self.repository.delete_by_id(movie_id)
        except StoreIntegrityError as e:
            logger.warning(f"Delete rejected, movie has dependent records: id={movie_id}")
            raise DatabaseIntegrityError(
                "Referential integrity violation",
                operation="delete",
                table="tb_movie",
                context={"movie_id": movie_id},
                cause=e,
            ) from e

        self.locks.discard(movie_id)
        logger.info(f"Deleted movie: id={movie_id}")

    # ---------------------------------------------------------
    # HELPERS
    # ---------------------------------------------------------

    def _save(self, movie: Movie, operation: str) -> Movie:
        try:
            return self.repository.save(movie)
        except StoreIntegrityError as e:
            raise DatabaseIntegrityError(
                "Integrity violation",
                operation=operation,
                table="tb_movie",
                cause=e,
            ) from e

    def _normalize(self, page_request: Optional[PageRequest]) -> PageRequest:
        if page_request is None:
            return PageRequest(page=0, size=self.pagination.default_page_size)

        if page_request.page < 0:
            raise InvalidPageRequestError(page_request.page, page_request.size, "page must be >= 0")
        if page_request.size < 1:
            raise InvalidPageRequestError(page_request.page, page_request.size, "size must be >= 1")

        if page_request.size > self.pagination.max_page_size:
            return PageRequest(page=page_request.page, size=self.pagination.max_page_size)
        return page_request


# =============================================================
# SCORE SERVICE
# =============================================================

class ScoreService:
    """Score submission for the authenticated user."""

    def __init__(
        self,
        user_service: AuthenticationProvider,
        movie_repository: MovieRepository,
        score_repository: ScoreRepository,
        aggregator: Optional[ScoreAggregator] = None,
    ):
        self.user_service = user_service
        self.movie_repository = movie_repository
        self.score_repository = score_repository
        self.aggregator = aggregator or ScoreAggregator(movie_repository, score_repository)

    def save_score(self, dto: ScoreDTO) -> MovieDTO:
        """
        Record the caller's score and return the updated movie.

        Raises:
            UnauthenticatedError: If no caller identity is established
            ResourceNotFoundError: If the movie does not exist
            DatabaseIntegrityError: If the store rejects the write
        """
        user = self.user_service.authenticated()

        if self.movie_repository.find_by_id(dto.movie_id) is None:
            logger.warning(f"Score rejected, movie not found: id={dto.movie_id} user={user.id}")
            raise ResourceNotFoundError("Movie not found", resource="movie", resource_id=dto.movie_id)

        try:
            movie = self.aggregator.submit(dto.movie_id, user, dto.score)
        except StoreIntegrityError as e:
            raise DatabaseIntegrityError(
                "Integrity violation",
                operation="save_score",
                table="tb_score",
                context={"movie_id": dto.movie_id, "user_id": user.id},
                cause=e,
            ) from e

        return MovieDTO.from_movie(movie)


# =============================================================
# FACTORIES
# =============================================================

def create_movie_service(
    session: Session,
    config: Optional[MovieServiceConfig] = None,
    locks: Optional[MovieLockRegistry] = None,
) -> MovieService:
    """Movie service over a SQLAlchemy session."""
    config = config or MovieServiceConfig()
    return MovieService(SqlMovieRepository(session), config.pagination, locks=locks)


def create_user_service(
    session: Session,
    security_context: Optional[SecurityContext] = None,
) -> UserService:
    """User service over a SQLAlchemy session."""
    return UserService(SqlUserRepository(session), security_context)


def create_score_service(
    session: Session,
    config: Optional[MovieServiceConfig] = None,
    locks: Optional[MovieLockRegistry] = None,
    security_context: Optional[SecurityContext] = None,
) -> ScoreService:
    """
    Score service over a SQLAlchemy session.

    Every request must share the same lock registry; the default
    is the process-wide one.
    """
    config = config or MovieServiceConfig()
    movies = SqlMovieRepository(session)
    scores = SqlScoreRepository(session)
    return ScoreService(
        user_service=create_user_service(session, security_context),
        movie_repository=movies,
        score_repository=scores,
        aggregator=ScoreAggregator(movies, scores, locks=locks, config=config.score),
    )
