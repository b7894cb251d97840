"""
Database Package Initialization.

============================================================
PERSISTENCE LAYER FOR THE MOVIE SCORES SERVICE
============================================================

Engine/session management, transaction scopes, schema creation
and the ORM models for movies, users, roles and scores.

REQUIRED:
- Every failure raises hard exceptions
- All transactions are explicit with commit/rollback

============================================================
"""

# Core engine and session management
from .engine import (
    # Declarative base
    Base,

    # Engine creation
    build_engine,
    create_database_engine,
    get_engine,
    dispose_engine,

    # Session management
    get_session,
    get_db_session,
    get_session_factory,
    make_session_factory,
    transaction_scope,

    # Database initialization
    initialize_database,
    create_all_tables,
    drop_all_tables,
    verify_required_tables,
    get_table_row_counts,

    # Constants
    DEFAULT_DATABASE_URL,
    REQUIRED_TABLES,

    # Exceptions
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
    StoreIntegrityError,
)

# ORM Models
from .models import (
    MovieModel,
    RoleModel,
    UserModel,
    ScoreModel,
    user_role_table,
)

__all__ = [
    "Base",
    "build_engine",
    "create_database_engine",
    "get_engine",
    "dispose_engine",
    "get_session",
    "get_db_session",
    "get_session_factory",
    "make_session_factory",
    "transaction_scope",
    "initialize_database",
    "create_all_tables",
    "drop_all_tables",
    "verify_required_tables",
    "get_table_row_counts",
    "DEFAULT_DATABASE_URL",
    "REQUIRED_TABLES",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "StoreIntegrityError",
    "MovieModel",
    "RoleModel",
    "UserModel",
    "ScoreModel",
    "user_role_table",
]
