"""
Caller identity for the current request.

The transport layer establishes who is calling (token check,
session cookie, ...) and records the username here; the user
service reads it back. Each thread and each asyncio task sees its
own value.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_current_username: ContextVar[Optional[str]] = ContextVar("current_username", default=None)


class SecurityContext:
    """Reads and sets the username of the current caller."""

    def get_username(self) -> Optional[str]:
        return _current_username.get()

    @contextmanager
    def authenticate_as(self, username: str) -> Iterator[None]:
        """Run the enclosed block as *username*."""
        token = _current_username.set(username)
        try:
            yield
        finally:
            _current_username.reset(token)

    def clear(self) -> None:
        _current_username.set(None)
