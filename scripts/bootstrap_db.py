"""
Scripts - Bootstrap Database.

============================================================
RESPONSIBILITY
============================================================
Initializes the database for first-time setup.

- Creates database schema
- Seeds roles, users and a starter catalog
- Validates setup

============================================================
USAGE
============================================================
python -m scripts.bootstrap_db

Options:
  --drop-existing    Drop existing tables (DANGEROUS)
  --seed-data        Include seed data
  --validate-only    Only validate, don't create

The target database comes from DATABASE_URL.

============================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from database.engine import (
    create_all_tables,
    drop_all_tables,
    get_engine,
    get_table_row_counts,
    transaction_scope,
    verify_database_connection,
    verify_required_tables,
    DatabasePersistenceError,
)
from database.models import MovieModel, RoleModel, UserModel
from movies.config import MovieServiceConfig


logger = logging.getLogger("scripts.bootstrap_db")


# ============================================================
# SEED DATA
# ============================================================

SEED_ROLES = ["ROLE_CLIENT", "ROLE_ADMIN"]

# Password hashes are opaque to this service.
SEED_USERS = [
    {
        "name": "Maria Brown",
        "username": "maria@gmail.com",
        "password": "$2a$10$eACCYoNOHEqXve8aIWT8Nu3PkMXWBaOxJ9aORUYzfMQCbVBIhZ8tG",
        "roles": ["ROLE_CLIENT"],
    },
    {
        "name": "Alex Green",
        "username": "alex@gmail.com",
        "password": "$2a$10$eACCYoNOHEqXve8aIWT8Nu3PkMXWBaOxJ9aORUYzfMQCbVBIhZ8tG",
        "roles": ["ROLE_CLIENT", "ROLE_ADMIN"],
    },
]

SEED_MOVIES = [
    "The Witcher",
    "Venom: Let There Be Carnage",
    "The Amazing Spider-Man 2",
    "Justice League",
    "Matrix Resurrections",
    "Shang-Chi and the Legend of the Ten Rings",
    "Django Unchained",
    "Harry Potter and the Deathly Hallows: Part 2",
    "Dune",
    "Free Guy",
    "Cruella",
    "The Suicide Squad",
]


def seed_roles(session: Session) -> dict:
    """Insert missing roles and return them by authority."""
    roles = {r.authority: r for r in session.execute(select(RoleModel)).scalars()}
    for authority in SEED_ROLES:
        if authority not in roles:
            role = RoleModel(authority=authority)
            session.add(role)
            roles[authority] = role
    session.flush()
    return roles


def seed_users(session: Session, roles: dict) -> int:
    """Insert missing users. Returns the number inserted."""
    inserted = 0
    for data in SEED_USERS:
        exists = session.execute(
            select(UserModel.id).where(UserModel.username == data["username"])
        ).first()
        if exists:
            continue
        session.add(UserModel(
            name=data["name"],
            username=data["username"],
            password=data["password"],
            roles=[roles[a] for a in data["roles"]],
        ))
        inserted += 1
    return inserted


def seed_movies(session: Session) -> int:
    """Insert the starter catalog into an empty movie table."""
    if session.execute(select(func.count()).select_from(MovieModel)).scalar_one():
        logger.info("Movie table not empty, skipping catalog seed")
        return 0
    for title in SEED_MOVIES:
        session.add(MovieModel(title=title, score=0.0, count=0))
    return len(SEED_MOVIES)


# ============================================================
# CLI
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bootstrap-db",
        description="Create and seed the movie scores database",
    )
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating them (DANGEROUS)",
    )
    parser.add_argument(
        "--seed-data",
        action="store_true",
        help="Insert roles, users and a starter catalog",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only check connectivity and tables",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Bootstrap database entry point."""
    args = create_parser().parse_args(argv)
    config = MovieServiceConfig.from_env()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    try:
        engine = get_engine()
        verify_database_connection(engine)

        if args.validate_only:
            missing = verify_required_tables(engine)
            return 1 if missing else 0

        if args.drop_existing:
            drop_all_tables(engine)

        create_all_tables(engine)

        if args.seed_data:
            with transaction_scope() as session:
                roles = seed_roles(session)
                users = seed_users(session, roles)
                movies = seed_movies(session)
            logger.info(f"Seeded users={users} movies={movies}")

        for table, count in get_table_row_counts(engine).items():
            logger.info(f"  {table}: {count} rows")

        missing = verify_required_tables(engine)
        return 1 if missing else 0

    except DatabasePersistenceError as e:
        logger.critical(f"Bootstrap failed: {e}")
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
