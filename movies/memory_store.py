"""
Movies - In-Memory Stores.

============================================================
PURPOSE
============================================================
Process-local implementations of the movie, score and user
stores. Used by tests and for running the services without a
database.

They mirror the SQL stores' observable behaviour:
- records are copied in and out, never shared
- scores must reference an existing movie
- a movie with scores cannot be deleted

============================================================
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, Optional, Tuple

from database.engine import StoreIntegrityError

from .interfaces import MovieRepository, ScoreRepository, UserRepository
from .types import Movie, Page, PageRequest, Score, User


logger = logging.getLogger(__name__)


class InMemoryDatabase:
    """Shared tables for the in-memory stores."""

    def __init__(self):
        self.movies: Dict[int, Movie] = {}
        self.scores: Dict[Tuple[int, int], Score] = {}
        self.users: Dict[str, User] = {}
        self.lock = threading.RLock()
        self._next_movie_id = 1
        self._next_user_id = 1

    def next_movie_id(self) -> int:
        with self.lock:
            movie_id = self._next_movie_id
            self._next_movie_id += 1
            return movie_id

    def add_user(self, user: User) -> User:
        """Register a copy of a user, assigning an id when missing."""
        with self.lock:
            if user.username in self.users:
                raise StoreIntegrityError(f"Username already taken: {user.username}")
            stored = replace(user, roles=list(user.roles))
            if stored.id is None:
                stored.id = self._next_user_id
            self._next_user_id = max(self._next_user_id, stored.id) + 1
            self.users[stored.username] = stored
            return replace(stored, roles=list(stored.roles))


# ============================================================
# MOVIE REPOSITORY
# ============================================================

class InMemoryMovieRepository(MovieRepository):
    """Movie store backed by an InMemoryDatabase."""

    def __init__(self, db: Optional[InMemoryDatabase] = None):
        self._db = db or InMemoryDatabase()

    def find_by_id(self, movie_id: int) -> Optional[Movie]:
        with self._db.lock:
            movie = self._db.movies.get(movie_id)
            return movie.copy() if movie else None

    def find_by_id_for_update(self, movie_id: int) -> Optional[Movie]:
        return self.find_by_id(movie_id)

    def exists_by_id(self, movie_id: int) -> bool:
        with self._db.lock:
            return movie_id in self._db.movies

    def save(self, movie: Movie) -> Movie:
        stored = movie.copy()
        if stored.id is None:
            stored.id = self._db.next_movie_id()
        with self._db.lock:
            self._db.movies[stored.id] = stored
        return stored.copy()

    def delete_by_id(self, movie_id: int) -> None:
        with self._db.lock:
            if any(key[0] == movie_id for key in self._db.scores):
                raise StoreIntegrityError(f"Movie {movie_id} is still referenced by scores")
            self._db.movies.pop(movie_id, None)

    def search_by_title(self, title: str, request: PageRequest) -> Page[Movie]:
        needle = (title or "").upper()
        with self._db.lock:
            matches = [
                m.copy()
                for _, m in sorted(self._db.movies.items())
                if needle in m.title.upper()
            ]
        return Page(
            content=matches[request.offset:request.offset + request.size],
            number=request.page,
            size=request.size,
            total_elements=len(matches),
        )


# ============================================================
# SCORE REPOSITORY
# ============================================================

class InMemoryScoreRepository(ScoreRepository):
    """Score store backed by an InMemoryDatabase."""

    def __init__(self, db: Optional[InMemoryDatabase] = None):
        self._db = db or InMemoryDatabase()

    def find(self, movie_id: int, user_id: int) -> Optional[Score]:
        with self._db.lock:
            score = self._db.scores.get((movie_id, user_id))
            return Score(score.movie_id, score.user_id, score.value) if score else None

    def save_and_flush(self, score: Score) -> Score:
        with self._db.lock:
            if score.movie_id not in self._db.movies:
                raise StoreIntegrityError(f"Score references unknown movie {score.movie_id}")
            stored = Score(score.movie_id, score.user_id, score.value)
            self._db.scores[(score.movie_id, score.user_id)] = stored
        return Score(stored.movie_id, stored.user_id, stored.value)

    def count_by_movie(self, movie_id: int) -> int:
        with self._db.lock:
            return sum(1 for key in self._db.scores if key[0] == movie_id)


# ============================================================
# USER REPOSITORY
# ============================================================

class InMemoryUserRepository(UserRepository):
    """User directory backed by an InMemoryDatabase."""

    def __init__(self, db: Optional[InMemoryDatabase] = None):
        self._db = db or InMemoryDatabase()

    def find_by_username(self, username: str) -> Optional[User]:
        with self._db.lock:
            user = self._db.users.get(username)
            return replace(user, roles=list(user.roles)) if user else None
