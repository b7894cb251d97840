"""
Movies Package.

Movie catalog and score aggregation services.

Modules:
- types: Domain records (Movie, Score, User, Page)
- schemas: Pydantic public views and inputs
- interfaces: Store and authentication provider interfaces
- repository: SQLAlchemy stores
- memory_store: In-memory stores
- aggregator: Per-movie running mean under per-movie locks
- service: MovieService, ScoreService and factories
- user_service: UserService (authentication provider)

Usage:
    from database import get_db_session
    from movies import create_movie_service

    with get_db_session() as session:
        page = create_movie_service(session).find_all("matrix")
"""

from movies.types import Movie, Score, Role, User, UserDetails, Page, PageRequest
from movies.schemas import MovieDTO, ScoreDTO
from movies.config import MovieServiceConfig, PaginationConfig, ScoreConfig
from movies.security import SecurityContext
from movies.aggregator import ScoreAggregator, MovieLockRegistry, get_lock_registry, running_mean
from movies.user_service import UserService
from movies.service import (
    MovieService,
    ScoreService,
    create_movie_service,
    create_score_service,
    create_user_service,
)

__all__ = [
    # Types
    "Movie",
    "Score",
    "Role",
    "User",
    "UserDetails",
    "Page",
    "PageRequest",
    # Schemas
    "MovieDTO",
    "ScoreDTO",
    # Config
    "MovieServiceConfig",
    "PaginationConfig",
    "ScoreConfig",
    # Security
    "SecurityContext",
    # Aggregation
    "ScoreAggregator",
    "MovieLockRegistry",
    "get_lock_registry",
    "running_mean",
    # Services
    "UserService",
    "MovieService",
    "ScoreService",
    "create_movie_service",
    "create_score_service",
    "create_user_service",
]
