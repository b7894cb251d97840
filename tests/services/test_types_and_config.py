"""
Tests for domain types and configuration.

Tests cover:
- Page arithmetic and mapping
- PageRequest offsets
- MovieDTO conversion
- Configuration defaults and environment overrides
"""

import pytest

from movies.config import MovieServiceConfig
from movies.schemas import MovieDTO
from movies.types import Movie, Page, PageRequest


# =============================================================
# TEST: Page / PageRequest
# =============================================================

class TestPage:
    """Tests for Page."""

    def test_total_pages_rounds_up(self):
        page = Page(content=[1, 2], number=0, size=2, total_elements=5)

        assert page.total_pages == 3
        assert page.number_of_elements == 2
        assert not page.is_last

    def test_last_page(self):
        page = Page(content=[5], number=2, size=2, total_elements=5)

        assert page.is_last

    def test_empty_page(self):
        page = Page.empty(PageRequest(page=3, size=12))

        assert page.is_empty
        assert page.number == 3
        assert page.total_pages == 0
        assert list(page) == []

    def test_map_keeps_paging_metadata(self):
        page = Page(content=[1, 2, 3], number=1, size=3, total_elements=9)

        mapped = page.map(lambda x: x * 10)

        assert mapped.content == [10, 20, 30]
        assert (mapped.number, mapped.size, mapped.total_elements) == (1, 3, 9)

    def test_page_request_offset(self):
        assert PageRequest(page=3, size=12).offset == 36


# =============================================================
# TEST: MovieDTO
# =============================================================

class TestMovieDTO:
    """Tests for MovieDTO conversion."""

    def test_from_movie_copies_public_fields(self):
        movie = Movie(id=3, title="Dune", score=4.25, count=4, image="https://images.example.com/dune.jpg")

        dto = MovieDTO.from_movie(movie)

        assert dto.model_dump() == {
            "id": 3,
            "title": "Dune",
            "score": 4.25,
            "count": 4,
            "image": "https://images.example.com/dune.jpg",
        }

    def test_defaults_for_new_movie(self):
        dto = MovieDTO(title="Dune")

        assert dto.id is None
        assert dto.score == 0.0
        assert dto.count == 0


# =============================================================
# TEST: Configuration
# =============================================================

class TestMovieServiceConfig:
    """Tests for configuration loading."""

    def test_defaults(self):
        config = MovieServiceConfig()

        assert config.pagination.default_page_size == 12
        assert config.pagination.max_page_size == 100
        assert config.score.min_score == 0.0
        assert config.score.max_score == 5.0

    def test_for_testing(self):
        config = MovieServiceConfig.for_testing()

        assert config.pagination.max_page_size == 50
        assert config.log_level == "DEBUG"

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MOVIES_DEFAULT_PAGE_SIZE", "5")
        monkeypatch.setenv("MOVIES_MAX_PAGE_SIZE", "25")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        config = MovieServiceConfig.from_env()

        assert config.pagination.default_page_size == 5
        assert config.pagination.max_page_size == 25
        assert config.log_level == "WARNING"

    def test_score_bounds_follow_schema_checks(self, monkeypatch):
        monkeypatch.setenv("MOVIES_MIN_SCORE", "1")
        monkeypatch.setenv("MOVIES_MAX_SCORE", "10")

        config = MovieServiceConfig.from_env()

        assert (config.score.min_score, config.score.max_score) == (0.0, 5.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
