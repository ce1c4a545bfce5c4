"""Video bookmarks, independent from watch progress."""

from .models import BOOKMARK_TABLES_CQL, Bookmark
from .service import BookmarkService


__all__ = [
    "BOOKMARK_TABLES_CQL",
    "Bookmark",
    "BookmarkService",
]
