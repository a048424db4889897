from .Bookmarks import MemoryBookmarks
from .History import MemoryHistory

__all__ = ["MemoryBookmarks", "MemoryHistory"]
