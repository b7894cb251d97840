"""
Database Persistence Layer - Core Engine.

============================================================
DATABASE PERSISTENCE FOR THE MOVIE SCORES SERVICE
============================================================

Requirements:
- SQLAlchemy ORM (PostgreSQL in production, SQLite locally)
- Explicit transaction management
- Structured logging of commits and rollbacks
- Hard failures on persistence errors

============================================================
"""

import os
import logging
from typing import Optional, Generator, Dict
from contextlib import contextmanager

from sqlalchemy import create_engine, text, event, inspect, select, func, Table
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.exc import SQLAlchemyError, OperationalError, IntegrityError

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# =============================================================
# DECLARATIVE BASE
# =============================================================

Base = declarative_base()

# =============================================================
# DATABASE ENGINE
# =============================================================

DEFAULT_DATABASE_URL = "sqlite:///movies.db"

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")
    if url and url.startswith("postgresql+asyncpg"):
        # Services are synchronous
        url = url.replace("postgresql+asyncpg", "postgresql")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(
    database_url: str,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Build a new SQLAlchemy engine.

    SQLite connections get foreign key enforcement switched on,
    so deleting a movie that still has scores fails the same way
    it does on PostgreSQL.

    Args:
        database_url: SQLAlchemy connection URL
        pool_size: Number of connections to keep in pool
        max_overflow: Max connections beyond pool_size
        pool_timeout: Seconds to wait for available connection
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    if _is_sqlite(database_url):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
            future=True,
        )
    else:
        engine = create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
            echo=echo,
            future=True,
        )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        if _is_sqlite(database_url):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        logger.debug("Database connection established")

    return engine


def create_database_engine(
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """Create the process-wide engine from DATABASE_URL."""
    global _engine

    if _engine is not None:
        return _engine

    database_url = get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    _engine = build_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        echo=echo,
    )
    return _engine


def get_engine() -> Engine:
    """Get the database engine, creating if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def dispose_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _SessionFactory = None


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an explicit engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = make_session_factory(get_engine())

    return _SessionFactory


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for committing/closing.
    Prefer using get_db_session() context manager instead.
    """
    factory = get_session_factory()
    return factory()


@contextmanager
def get_db_session(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for one request's session.

    Usage:
        with get_db_session() as session:
            service = create_movie_service(session)
            service.insert(dto)

    Repositories commit their own writes. On exception the session
    is rolled back and the exception re-raised unchanged.
    """
    session = session_factory() if session_factory else get_session()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(f"Database error, rolling back: {e}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def transaction_scope(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs.
    Rolls back on ANY exception. SQLAlchemy failures are wrapped
    into the persistence error family; anything else (service
    errors included) propagates as raised.

    Usage:
        with transaction_scope() as session:
            seed_roles(session)
            seed_users(session)
            # Commits automatically at end
    """
    session = session_factory() if session_factory else get_session()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except IntegrityError as e:
        logger.error(f"Database transaction violated a constraint, rolling back: {e.orig}")
        session.rollback()
        raise StoreIntegrityError(f"Transaction failed: {e.orig}") from e
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise DatabasePersistenceError(f"Transaction failed: {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify database connection is working.

    Returns:
        True if connection successful

    Raises:
        DatabaseConnectionError if connection fails
    """
    engine = engine or get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


def create_all_tables(engine: Optional[Engine] = None) -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError if table creation fails
    """
    from . import models  # noqa: F401

    engine = engine or get_engine()

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def drop_all_tables(engine: Optional[Engine] = None) -> None:
    """Drop every ORM table. Destroys all data."""
    from . import models  # noqa: F401

    engine = engine or get_engine()

    logger.warning("Dropping all database tables")
    Base.metadata.drop_all(bind=engine)


def initialize_database(engine: Optional[Engine] = None) -> None:
    """
    Full database initialization sequence.

    1. Verify connection
    2. Create tables if not exist
    3. Abort on any failure
    """
    logger.info("Initializing database persistence layer")

    try:
        verify_database_connection(engine)
        create_all_tables(engine)
        missing = verify_required_tables(engine)
        if missing:
            raise DatabaseInitializationError(f"Missing tables: {', '.join(missing)}")
        logger.info("Database initialization complete")

    except Exception as e:
        logger.critical(f"DATABASE INITIALIZATION FAILED: {e}")
        raise


def verify_required_tables(engine: Optional[Engine] = None) -> list:
    """
    Verify all required tables exist.

    Returns:
        Names of the required tables that are missing
    """
    engine = engine or get_engine()
    existing = set(inspect(engine).get_table_names())

    missing = []
    for table in REQUIRED_TABLES:
        if table in existing:
            logger.info(f"  [OK] Table verified: {table}")
        else:
            logger.warning(f"  [!!] Table missing: {table}")
            missing.append(table)

    return missing


def get_table_row_counts(engine: Optional[Engine] = None) -> Dict[str, int]:
    """
    Get row counts for all tables.

    Returns:
        Dict mapping table name to row count (-1 if unreadable)
    """
    from . import models  # noqa: F401

    engine = engine or get_engine()
    counts = {}

    with engine.connect() as conn:
        for name in REQUIRED_TABLES:
            table: Table = Base.metadata.tables[name]
            try:
                counts[name] = conn.execute(select(func.count()).select_from(table)).scalar()
            except SQLAlchemyError:
                counts[name] = -1

    return counts


# =============================================================
# CONSTANTS
# =============================================================

REQUIRED_TABLES = [
    "tb_movie",
    "tb_user",
    "tb_role",
    "tb_user_role",
    "tb_score",
]


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


class StoreIntegrityError(DatabasePersistenceError):
    """Raised when a write violates a unique or foreign key constraint."""
    pass


# =============================================================
# EXPORTS
# =============================================================

__all__ = [
    # Base
    "Base",
    # Engine & Session
    "build_engine",
    "create_database_engine",
    "get_engine",
    "dispose_engine",
    "get_session",
    "get_db_session",
    "get_session_factory",
    "make_session_factory",
    "transaction_scope",
    # Initialization
    "initialize_database",
    "verify_database_connection",
    "verify_required_tables",
    "create_all_tables",
    "drop_all_tables",
    "get_table_row_counts",
    # Constants
    "DEFAULT_DATABASE_URL",
    "REQUIRED_TABLES",
    # Exceptions
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "StoreIntegrityError",
]
