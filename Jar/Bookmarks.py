"""
Jar/Bookmarks.py — Named URL bookmarks.
"""
from __future__ import annotations

from Errors import BookmarkError


class MemoryBookmarks:
    """In-memory bookmark store mapping a unique name to a URL."""

    def __init__(self) -> None:
        self._bookmarks: dict[str, str] = {}

    def save(self, name: str, url: str) -> None:
        """Store *url* under *name*.

        Raises :class:`BookmarkError` if *name* is taken; call :meth:`remove`
        first to replace a bookmark.
        """
        if self.has(name):
            raise BookmarkError(f"Bookmark with the name '{name}' already exists.")
        self._bookmarks[name] = url

    def read(self, name: str) -> str:
        """Return the URL saved under *name*, raising :class:`BookmarkError` if absent."""
        if not self.has(name):
            raise BookmarkError(f"A bookmark does not exist with the name '{name}'.")
        return self._bookmarks[name]

    def remove(self, name: str) -> bool:
        """Delete *name*; return whether it existed."""
        return self._bookmarks.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._bookmarks

    def __len__(self) -> int:
        return len(self._bookmarks)
