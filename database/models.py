"""
Database ORM Models - All Tables.

============================================================
MOVIE SCORES SCHEMA
============================================================

Defines the five required tables:
- tb_movie: catalog with running score/count
- tb_user, tb_role, tb_user_role: user directory
- tb_score: one score per (movie, user)

tb_score references tb_movie without ON DELETE CASCADE, so a
movie with scores cannot be deleted.

============================================================
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, BigInteger, String, Float, DateTime,
    ForeignKey, Index, Table, CheckConstraint,
)
from sqlalchemy.orm import relationship

from .engine import Base


# =============================================================
# HELPER FUNCTIONS
# =============================================================

def utc_now():
    """Get current UTC timestamp."""
    return datetime.utcnow()


# =============================================================
# 1. MOVIE TABLE
# =============================================================

class MovieModel(Base):
    """
    Movie catalog entry.

    score is the running mean of every row in tb_score for this
    movie; count is the number of those rows.
    """
    __tablename__ = "tb_movie"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    score = Column(Float, nullable=False, default=0.0)
    count = Column(Integer, nullable=False, default=0)
    image = Column(String(512), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    scores = relationship("ScoreModel", back_populates="movie", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_movie_count_non_negative"),
        CheckConstraint("score >= 0 AND score <= 5", name="ck_movie_score_range"),
    )


# =============================================================
# 2. USER DIRECTORY TABLES
# =============================================================

user_role_table = Table(
    "tb_user_role",
    Base.metadata,
    Column("user_id", ForeignKey("tb_user.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("tb_role.id", ondelete="CASCADE"), primary_key=True),
)


class RoleModel(Base):
    """Granted authority, e.g. ROLE_CLIENT or ROLE_ADMIN."""
    __tablename__ = "tb_role"

    id = Column(Integer, primary_key=True, autoincrement=True)
    authority = Column(String(64), nullable=False, unique=True)


class UserModel(Base):
    """
    Registered user.

    username is unique (an e-mail address in seed data). password
    holds an opaque hash that this service never inspects.
    """
    __tablename__ = "tb_user"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)

    roles = relationship("RoleModel", secondary=user_role_table, lazy="selectin")


# =============================================================
# 3. SCORE TABLE
# =============================================================

class ScoreModel(Base):
    """
    A single user's score for a movie.

    Composite primary key: a repeat submission replaces the value.
    """
    __tablename__ = "tb_score"

    movie_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("tb_movie.id"),
        primary_key=True,
    )
    user_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("tb_user.id"),
        primary_key=True,
    )
    value = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    movie = relationship("MovieModel", back_populates="scores")

    __table_args__ = (
        CheckConstraint("value >= 0 AND value <= 5", name="ck_score_value_range"),
        Index("idx_score_user", "user_id"),
    )


__all__ = [
    "MovieModel",
    "RoleModel",
    "UserModel",
    "ScoreModel",
    "user_role_table",
]
