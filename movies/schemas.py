"""
Pydantic Schemas for the Movie Scores Service.

Public views returned by the services and the validated inputs
they accept.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import Movie


# =============================================================
# MOVIE SCHEMAS
# =============================================================

class MovieDTO(BaseModel):
    """Public view of a movie."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    score: float = Field(0.0, ge=0.0, le=5.0)
    count: int = Field(0, ge=0)
    image: Optional[str] = None

    @classmethod
    def from_movie(cls, movie: Movie) -> "MovieDTO":
        return cls.model_validate(movie)


# =============================================================
# SCORE SCHEMAS
# =============================================================

class ScoreDTO(BaseModel):
    """A score submission for the authenticated user."""
    movie_id: int
    score: float = Field(..., ge=0.0, le=5.0)
