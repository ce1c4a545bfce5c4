"""Database models for video bookmarks.

Bookmarks live in their own table and never touch watch progress.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from edutrack.utils.dates import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

VIDEO_BOOKMARKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_bookmarks (
    user_id UUID,
    video_id UUID,
    bookmarked BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY (user_id, video_id)
)
"""

BOOKMARK_TABLES_CQL = [
    VIDEO_BOOKMARKS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Bookmark:
    """Bookmark flag of one user on one video."""

    def __init__(
        self,
        user_id: UUID,
        video_id: UUID,
        bookmarked: bool = True,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.video_id = video_id
        self.bookmarked = bookmarked
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Bookmark":
        """Create Bookmark instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            video_id=row.video_id,
            bookmarked=bool(row.bookmarked),
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Bookmark user={self.user_id} video={self.video_id} {self.bookmarked}>"
