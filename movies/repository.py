"""
Movies - Repository.

============================================================
PURPOSE
============================================================
SQLAlchemy implementations of the movie, score and user stores.

RESPONSIBILITIES:
- Save/load/delete movies
- Search movies by title, paginated
- Upsert scores
- Load users with their roles

CRITICAL REQUIREMENTS:
- Writes commit (movies) or flush (scores) explicitly
- Constraint violations roll back and raise StoreIntegrityError
- ORM instances never leave this module

============================================================
"""

import logging
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.engine import StoreIntegrityError
from database.models import MovieModel, ScoreModel, UserModel

from .interfaces import MovieRepository, ScoreRepository, UserRepository
from .types import Movie, Page, PageRequest, Role, Score, User


logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ============================================================
# MOVIE REPOSITORY
# ============================================================

class SqlMovieRepository(MovieRepository):
    """
    Movie store over a SQLAlchemy session.
    """

    def __init__(self, session: Session):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy session for the current request
        """
        self._session = session

    # --------------------------------------------------------
    # READS
    # --------------------------------------------------------

    def find_by_id(self, movie_id: int) -> Optional[Movie]:
        model = self._session.get(MovieModel, movie_id)
        if model:
            return self._model_to_movie(model)
        return None

    def find_by_id_for_update(self, movie_id: int) -> Optional[Movie]:
        result = self._session.execute(
            select(MovieModel)
            .where(MovieModel.id == movie_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model:
            return self._model_to_movie(model)
        return None

    def exists_by_id(self, movie_id: int) -> bool:
        result = self._session.execute(
            select(MovieModel.id).where(MovieModel.id == movie_id)
        )
        return result.first() is not None

    def search_by_title(self, title: str, request: PageRequest) -> Page[Movie]:
        pattern = f"%{_escape_like(title or '')}%"
        condition = func.upper(MovieModel.title).like(func.upper(pattern), escape="\\")

        total = self._session.execute(
            select(func.count()).select_from(MovieModel).where(condition)
        ).scalar_one()

        result = self._session.execute(
            select(MovieModel)
            .where(condition)
            .order_by(MovieModel.id)
            .offset(request.offset)
            .limit(request.size)
        )
        return Page(
            content=[self._model_to_movie(m) for m in result.scalars()],
            number=request.page,
            size=request.size,
            total_elements=total,
        )

    # --------------------------------------------------------
    # WRITES
    # --------------------------------------------------------

    def save(self, movie: Movie) -> Movie:
        model = None
        if movie.id is not None:
            model = self._session.get(MovieModel, movie.id)

        if model:
            model.title = movie.title
            model.score = movie.score
            model.count = movie.count
            model.image = movie.image
        else:
            model = MovieModel(
                id=movie.id,
                title=movie.title,
                score=movie.score,
                count=movie.count,
                image=movie.image,
            )
            self._session.add(model)

        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.error(f"Movie save rejected: id={movie.id} error={e.orig}")
            raise StoreIntegrityError(f"Movie save violated a constraint: {e.orig}") from e

        return self._model_to_movie(model)

    def delete_by_id(self, movie_id: int) -> None:
        try:
            self._session.execute(delete(MovieModel).where(MovieModel.id == movie_id))
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.warning(f"Movie delete rejected: id={movie_id} error={e.orig}")
            raise StoreIntegrityError(f"Movie {movie_id} is still referenced: {e.orig}") from e

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    def _model_to_movie(self, model: MovieModel) -> Movie:
        return Movie(
            id=model.id,
            title=model.title,
            score=model.score or 0.0,
            count=model.count or 0,
            image=model.image,
        )


# ============================================================
# SCORE REPOSITORY
# ============================================================

class SqlScoreRepository(ScoreRepository):
    """Score store over a SQLAlchemy session."""

    def __init__(self, session: Session):
        self._session = session

    def find(self, movie_id: int, user_id: int) -> Optional[Score]:
        model = self._session.get(ScoreModel, (movie_id, user_id))
        if model:
            return Score(movie_id=model.movie_id, user_id=model.user_id, value=model.value)
        return None

    def save_and_flush(self, score: Score) -> Score:
        model = self._session.get(ScoreModel, (score.movie_id, score.user_id))
        if model:
            model.value = score.value
        else:
            model = ScoreModel(movie_id=score.movie_id, user_id=score.user_id, value=score.value)
            self._session.add(model)

        try:
            self._session.flush()
        except IntegrityError as e:
            self._session.rollback()
            logger.error(
                f"Score save rejected: movie={score.movie_id} user={score.user_id} error={e.orig}"
            )
            raise StoreIntegrityError(f"Score save violated a constraint: {e.orig}") from e

        return Score(movie_id=model.movie_id, user_id=model.user_id, value=model.value)

    def count_by_movie(self, movie_id: int) -> int:
        return self._session.execute(
            select(func.count()).select_from(ScoreModel).where(ScoreModel.movie_id == movie_id)
        ).scalar_one()


# ============================================================
# USER REPOSITORY
# ============================================================

class SqlUserRepository(UserRepository):
    """User directory over a SQLAlchemy session."""

    def __init__(self, session: Session):
        self._session = session

    def find_by_username(self, username: str) -> Optional[User]:
        result = self._session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return User(
            id=model.id,
            username=model.username,
            password=model.password,
            name=model.name,
            roles=[Role(id=r.id, authority=r.authority) for r in model.roles],
        )
