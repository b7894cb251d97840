"""
Movies - Score Aggregator.

============================================================
PURPOSE
============================================================
Keeps each movie's (score, count) pair equal to the mean and
number of its recorded scores without rescanning them.

For a new submitter with value v on (a, c):
    count = c + 1
    score = (a * c + v) / (c + 1)

For a submitter replacing their earlier value p:
    count = c
    score = (a * c - p + v) / c

============================================================
CONCURRENCY
============================================================
The read-modify-write of one movie runs under that movie's
lock and re-reads the movie inside it, so racing submissions
cannot both start from the same (a, c). Different movies use
different locks.

============================================================
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from core.exceptions import InvalidScoreError, ResourceNotFoundError

from .config import ScoreConfig
from .interfaces import MovieRepository, ScoreRepository
from .types import Movie, Score, User


logger = logging.getLogger(__name__)


# ============================================================
# PER-MOVIE LOCKS
# ============================================================

class MovieLockRegistry:
    """
    One mutex per movie id.

    The guard lock is held only while looking a mutex up, never
    while a movie is being updated.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def lock_for(self, movie_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(movie_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[movie_id] = lock
            return lock

    def discard(self, movie_id: int) -> None:
        """Forget a deleted movie's lock."""
        with self._guard:
            self._locks.pop(movie_id, None)

    @contextmanager
    def hold(self, movie_id: int) -> Iterator[None]:
        with self.lock_for(movie_id):
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_default_registry = MovieLockRegistry()


def get_lock_registry() -> MovieLockRegistry:
    """Process-wide registry shared by every request's aggregator."""
    return _default_registry


# ============================================================
# RUNNING MEAN
# ============================================================

def running_mean(
    score: float,
    count: int,
    value: float,
    previous: Optional[float] = None,
) -> Tuple[float, int]:
    """
    Fold one submission into a running mean.

    Args:
        score: Current mean
        count: Number of values in the current mean
        value: Submitted value
        previous: The submitter's earlier value, if any

    Returns:
        (new mean, new count)
    """
    if previous is None or count <= 0:
        new_count = max(count, 0) + 1
        return (score * max(count, 0) + value) / new_count, new_count

    return (score * count - previous + value) / count, count


# ============================================================
# SCORE AGGREGATOR
# ============================================================

class ScoreAggregator:
    """
    Records a user's score and updates the movie's running mean.
    """

    def __init__(
        self,
        movie_repository: MovieRepository,
        score_repository: ScoreRepository,
        locks: Optional[MovieLockRegistry] = None,
        config: Optional[ScoreConfig] = None,
    ):
        self._movies = movie_repository
        self._scores = score_repository
        self._locks = locks if locks is not None else get_lock_registry()
        self._config = config or ScoreConfig()

    def submit(self, movie_id: int, user: User, value: float) -> Movie:
        """
        Record *value* from *user* for a movie.

        Raises:
            InvalidScoreError: If *value* is outside the configured range
            ResourceNotFoundError: If the movie does not exist

        Returns:
            The saved movie with its new score and count
        """
        if not self._config.min_score <= value <= self._config.max_score:
            logger.warning(f"Score rejected, out of range: movie={movie_id} user={user.id} value={value}")
            raise InvalidScoreError(value, self._config.min_score, self._config.max_score)

        with self._locks.hold(movie_id):
            movie = self._movies.find_by_id_for_update(movie_id)
            if movie is None:
                raise ResourceNotFoundError("Movie not found", resource="movie", resource_id=movie_id)

            previous = self._scores.find(movie_id, user.id)
            previous_value = previous.value if previous else None

            new_score, new_count = running_mean(movie.score, movie.count, value, previous_value)

            self._scores.save_and_flush(Score(movie_id=movie_id, user_id=user.id, value=value))

            movie.score = self._clamp(new_score) if new_count else 0.0
            movie.count = new_count
            saved = self._movies.save(movie)

        logger.info(
            f"Score applied: movie={movie_id} user={user.id} value={value} "
            f"replaced={previous_value} score={saved.score} count={saved.count}"
        )
        return saved

    def _clamp(self, score: float) -> float:
        return min(max(score, self._config.min_score), self._config.max_score)
