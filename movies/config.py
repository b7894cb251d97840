"""
Movies - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the movie and score services.

Values can be overridden from the environment (a .env file is
honoured through python-dotenv).

============================================================
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


# ============================================================
# PAGINATION CONFIGURATION
# ============================================================

@dataclass
class PaginationConfig:
    """
    Paging limits for catalog searches.
    """

    default_page_size: int = 12
    """Page size used when the caller gives none."""

    max_page_size: int = 100
    """Larger requested sizes are clamped to this."""


# ============================================================
# SCORE CONFIGURATION
# ============================================================

@dataclass
class ScoreConfig:
    """
    Accepted score range.

    The schema checks on tb_score and tb_movie allow [0, 5]; a
    narrower range may be configured, a wider one may not.
    """

    min_score: float = 0.0
    """Lowest accepted score."""

    max_score: float = 5.0
    """Highest accepted score."""


# ============================================================
# MASTER CONFIGURATION
# ============================================================

@dataclass
class MovieServiceConfig:
    """
    Master configuration for the movie scores service.
    """

    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    """Pagination configuration."""

    score: ScoreConfig = field(default_factory=ScoreConfig)
    """Score configuration."""

    log_level: str = "INFO"
    """Root log level for scripts."""

    @classmethod
    def for_testing(cls) -> "MovieServiceConfig":
        """Get configuration for testing."""
        return cls(
            pagination=PaginationConfig(default_page_size=12, max_page_size=50),
            log_level="DEBUG",
        )

    @classmethod
    def from_env(cls) -> "MovieServiceConfig":
        """
        Build configuration from MOVIES_* environment variables.

        Score bounds are not read from the environment; they follow
        the schema checks.
        """
        load_dotenv()
        return cls(
            pagination=PaginationConfig(
                default_page_size=int(os.getenv("MOVIES_DEFAULT_PAGE_SIZE", "12")),
                max_page_size=int(os.getenv("MOVIES_MAX_PAGE_SIZE", "100")),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
