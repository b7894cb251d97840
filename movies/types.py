"""
Movies - Types.

============================================================
PURPOSE
============================================================
Domain records passed between the services and the stores.

The stores hand out plain dataclasses, never ORM instances, so
the services behave the same over SQL and in-memory stores.

============================================================
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


# ============================================================
# CATALOG
# ============================================================

@dataclass
class Movie:
    """A catalog entry with its running score."""

    id: Optional[int]
    """Store-assigned identifier. None until first saved."""

    title: str
    """Display title."""

    score: float = 0.0
    """Mean of all recorded scores, 0 when none."""

    count: int = 0
    """Number of recorded scores."""

    image: Optional[str] = None
    """Poster URL."""

    def copy(self) -> "Movie":
        return replace(self)


@dataclass
class Score:
    """One user's score for one movie."""

    movie_id: int
    user_id: int
    value: float


# ============================================================
# USER DIRECTORY
# ============================================================

@dataclass(frozen=True)
class Role:
    """Granted authority."""

    id: Optional[int]
    authority: str


@dataclass
class User:
    """A registered user and the roles granted to them."""

    id: Optional[int]
    username: str
    password: str = ""
    name: Optional[str] = None
    roles: List[Role] = field(default_factory=list)

    def has_role(self, authority: str) -> bool:
        return any(role.authority == authority for role in self.roles)


@dataclass(frozen=True)
class UserDetails:
    """What an authentication layer needs to check a login."""

    username: str
    password: str
    authorities: List[str]


# ============================================================
# PAGINATION
# ============================================================

@dataclass(frozen=True)
class PageRequest:
    """Zero-based page number plus page size."""

    page: int = 0
    size: int = 12

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    """
    One page of results.

    total_elements counts every match, not just this page.
    """

    content: List[T]
    number: int
    size: int
    total_elements: int

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total_elements + self.size - 1) // self.size

    @property
    def is_empty(self) -> bool:
        return not self.content

    @property
    def is_last(self) -> bool:
        return self.number + 1 >= self.total_pages

    def map(self, converter: Callable[[T], U]) -> "Page[U]":
        return Page(
            content=[converter(item) for item in self.content],
            number=self.number,
            size=self.size,
            total_elements=self.total_elements,
        )

    def __iter__(self):
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    @classmethod
    def empty(cls, request: PageRequest) -> "Page[T]":
        return cls(content=[], number=request.page, size=request.size, total_elements=0)
