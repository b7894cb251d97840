"""
Tests for ScoreService.

============================================================
PURPOSE
============================================================
Score submission for the authenticated user:
1. Running mean and count after a submission
2. Unknown movie fails before any write
3. Unauthenticated caller fails before any lookup
4. Repeat submissions replace the user's earlier value
5. Input validation of score values

============================================================
"""

import pytest
from unittest.mock import MagicMock
from pydantic import ValidationError

from core.exceptions import (
    DatabaseIntegrityError,
    ResourceNotFoundError,
    UnauthenticatedError,
)
from database.engine import StoreIntegrityError
from movies.aggregator import MovieLockRegistry, ScoreAggregator
from movies.interfaces import AuthenticationProvider, MovieRepository, ScoreRepository
from movies.memory_store import (
    InMemoryDatabase,
    InMemoryMovieRepository,
    InMemoryScoreRepository,
    InMemoryUserRepository,
)
from movies.schemas import MovieDTO, ScoreDTO
from movies.security import SecurityContext
from movies.service import ScoreService
from movies.types import Movie, Role, User
from movies.user_service import UserService


EXISTING_ID = 1
NON_EXISTING_ID = 1000


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def user_entity():
    """The authenticated client."""
    return User(
        id=1,
        username="maria@gmail.com",
        name="Maria",
        roles=[Role(id=1, authority="ROLE_CLIENT")],
    )


@pytest.fixture
def movie_entity():
    """Stored movie with no scores yet."""
    return Movie(id=EXISTING_ID, title="Test Movie", score=0.0, count=0)


@pytest.fixture
def user_service(user_entity):
    provider = MagicMock(spec=AuthenticationProvider)
    provider.authenticated.return_value = user_entity
    return provider


@pytest.fixture
def movie_repository(movie_entity):
    repo = MagicMock(spec=MovieRepository)
    lookup = lambda movie_id: movie_entity.copy() if movie_id == EXISTING_ID else None
    repo.find_by_id.side_effect = lookup
    repo.find_by_id_for_update.side_effect = lookup
    repo.save.side_effect = lambda movie: movie
    return repo


@pytest.fixture
def score_repository():
    repo = MagicMock(spec=ScoreRepository)
    repo.find.return_value = None
    repo.save_and_flush.side_effect = lambda score: score
    return repo


@pytest.fixture
def service(user_service, movie_repository, score_repository):
    aggregator = ScoreAggregator(movie_repository, score_repository, locks=MovieLockRegistry())
    return ScoreService(user_service, movie_repository, score_repository, aggregator)


# ============================================================
# SAVE SCORE (MOCKED STORES)
# ============================================================

class TestSaveScore:
    """Tests for save_score with mocked collaborators."""

    def test_save_score_returns_movie_dto(
        self, service, user_service, movie_repository, score_repository
    ):
        """First score becomes the mean; count becomes 1."""
        result = service.save_score(ScoreDTO(movie_id=EXISTING_ID, score=4.5))

        assert isinstance(result, MovieDTO)
        assert result.score == pytest.approx(4.5)
        assert result.count == 1

        user_service.authenticated.assert_called_once()
        score_repository.save_and_flush.assert_called_once()
        movie_repository.save.assert_called_once()

        saved_score = score_repository.save_and_flush.call_args.args[0]
        assert saved_score.movie_id == EXISTING_ID
        assert saved_score.user_id == 1
        assert saved_score.value == 4.5

    def test_save_score_folds_into_existing_mean(self, service, movie_entity):
        """(a*c + v) / (c+1) with prior a=4.0, c=2."""
        movie_entity.score = 4.0
        movie_entity.count = 2

        result = service.save_score(ScoreDTO(movie_id=EXISTING_ID, score=1.0))

        assert result.score == pytest.approx(3.0)
        assert result.count == 3

    def test_save_score_raises_not_found_when_non_existing_movie_id(
        self, service, movie_repository, score_repository
    ):
        """No aggregator or store write on an unknown movie."""
        with pytest.raises(ResourceNotFoundError):
            service.save_score(ScoreDTO(movie_id=NON_EXISTING_ID, score=4.5))

        movie_repository.find_by_id_for_update.assert_not_called()
        score_repository.save_and_flush.assert_not_called()
        movie_repository.save.assert_not_called()

    def test_save_score_raises_unauthenticated_before_lookup(
        self, service, user_service, movie_repository, score_repository
    ):
        user_service.authenticated.side_effect = UnauthenticatedError()

        with pytest.raises(UnauthenticatedError):
            service.save_score(ScoreDTO(movie_id=EXISTING_ID, score=4.5))

        movie_repository.find_by_id.assert_not_called()
        score_repository.save_and_flush.assert_not_called()

    def test_save_score_translates_store_conflict(self, service, score_repository):
        score_repository.save_and_flush.side_effect = StoreIntegrityError("FOREIGN KEY constraint failed")

        with pytest.raises(DatabaseIntegrityError) as exc_info:
            service.save_score(ScoreDTO(movie_id=EXISTING_ID, score=3.0))

        assert exc_info.value.context["movie_id"] == EXISTING_ID

    def test_save_score_uses_default_aggregator(self, user_service, movie_repository, score_repository):
        """Without an explicit aggregator one is built over the same stores."""
        service = ScoreService(user_service, movie_repository, score_repository)

        result = service.save_score(ScoreDTO(movie_id=EXISTING_ID, score=2.0))

        assert result.count == 1
        score_repository.save_and_flush.assert_called_once()


# ============================================================
# SAVE SCORE (IN-MEMORY STORES)
# ============================================================

class TestSaveScoreInMemory:
    """Score history semantics against the in-memory stores."""

    @pytest.fixture
    def db(self):
        db = InMemoryDatabase()
        db.add_user(User(id=None, username="maria@gmail.com", roles=[Role(id=1, authority="ROLE_CLIENT")]))
        db.add_user(User(id=None, username="alex@gmail.com", roles=[Role(id=1, authority="ROLE_CLIENT")]))
        return db

    @pytest.fixture
    def movie_id(self, db):
        return InMemoryMovieRepository(db).save(Movie(id=None, title="Dune")).id

    @pytest.fixture
    def security(self):
        return SecurityContext()

    @pytest.fixture
    def service(self, db, security):
        movies = InMemoryMovieRepository(db)
        scores = InMemoryScoreRepository(db)
        return ScoreService(
            UserService(InMemoryUserRepository(db), security),
            movies,
            scores,
            ScoreAggregator(movies, scores, locks=MovieLockRegistry()),
        )

    def _submit(self, service, security, username, movie_id, value):
        with security.authenticate_as(username):
            return service.save_score(ScoreDTO(movie_id=movie_id, score=value))

    def test_repeat_submission_replaces_previous_value(self, db, service, security, movie_id):
        self._submit(service, security, "maria@gmail.com", movie_id, 2.0)
        result = self._submit(service, security, "maria@gmail.com", movie_id, 4.0)

        assert result.count == 1
        assert result.score == pytest.approx(4.0)

        result = self._submit(service, security, "alex@gmail.com", movie_id, 5.0)

        assert result.count == 2
        assert result.score == pytest.approx(4.5)
        assert InMemoryScoreRepository(db).count_by_movie(movie_id) == 2

    def test_movie_store_reflects_submission(self, db, service, security, movie_id):
        self._submit(service, security, "maria@gmail.com", movie_id, 3.5)

        stored = InMemoryMovieRepository(db).find_by_id(movie_id)
        assert stored.count == 1
        assert stored.score == pytest.approx(3.5)

    def test_unregistered_caller_is_rejected(self, db, service, security, movie_id):
        with pytest.raises(UnauthenticatedError):
            self._submit(service, security, "ghost@gmail.com", movie_id, 3.0)

        assert InMemoryScoreRepository(db).count_by_movie(movie_id) == 0


class TestInMemoryUserRepository:
    """User directory records are copied, never shared."""

    def test_add_user_assigns_ids(self):
        db = InMemoryDatabase()

        first = db.add_user(User(id=None, username="maria@gmail.com"))
        second = db.add_user(User(id=None, username="alex@gmail.com"))

        assert (first.id, second.id) == (1, 2)

    def test_duplicate_username_is_rejected(self):
        db = InMemoryDatabase()
        db.add_user(User(id=None, username="maria@gmail.com"))

        with pytest.raises(StoreIntegrityError):
            db.add_user(User(id=None, username="maria@gmail.com"))

    def test_lookup_returns_a_copy(self):
        db = InMemoryDatabase()
        db.add_user(User(id=None, username="maria@gmail.com", roles=[Role(id=1, authority="ROLE_CLIENT")]))
        repository = InMemoryUserRepository(db)

        found = repository.find_by_username("maria@gmail.com")
        found.username = "changed@gmail.com"
        found.roles.append(Role(id=2, authority="ROLE_ADMIN"))

        again = repository.find_by_username("maria@gmail.com")
        assert again.username == "maria@gmail.com"
        assert [r.authority for r in again.roles] == ["ROLE_CLIENT"]

    def test_registered_user_is_not_shared(self):
        db = InMemoryDatabase()
        original = User(id=None, username="maria@gmail.com")
        db.add_user(original)

        original.username = "changed@gmail.com"

        assert InMemoryUserRepository(db).find_by_username("maria@gmail.com") is not None
        assert original.id is None

    def test_missing_user(self):
        assert InMemoryUserRepository(InMemoryDatabase()).find_by_username("ghost@gmail.com") is None


# ============================================================
# INPUT VALIDATION
# ============================================================

class TestScoreDTO:
    """Score bounds are enforced by the input schema."""

    @pytest.mark.parametrize("value", [0.0, 2.5, 5.0])
    def test_accepts_values_in_range(self, value):
        assert ScoreDTO(movie_id=1, score=value).score == value

    @pytest.mark.parametrize("value", [-0.1, 5.01, 10])
    def test_rejects_values_out_of_range(self, value):
        with pytest.raises(ValidationError):
            ScoreDTO(movie_id=1, score=value)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
