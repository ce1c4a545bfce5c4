"""Video bookmark service layer."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from edutrack.catalog.service import CatalogService, VideoNotFoundError

from .models import Bookmark


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class BookmarkService:
    """Per-user bookmark flags, independent from watch progress."""

    def __init__(self, session: "Session", keyspace: str, catalog: CatalogService):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._upsert_bookmark = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_bookmarks
            (user_id, video_id, bookmarked, updated_at)
            VALUES (?, ?, ?, ?)
        """)

        self._delete_bookmark = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.video_bookmarks
            WHERE user_id = ? AND video_id = ?
        """)

        self._get_user_bookmarks = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_bookmarks WHERE user_id = ?
        """)

    async def set_bookmark(
        self,
        user_id: UUID,
        video_id: UUID,
        bookmarked: bool,
    ) -> Bookmark:
        """Set or clear the bookmark of a video.

        Raises:
            VideoNotFoundError: If the video is not in the catalog
        """
        if await self.catalog.get_video(video_id) is None:
            raise VideoNotFoundError

        bookmark = Bookmark(
            user_id=user_id,
            video_id=video_id,
            bookmarked=bookmarked,
            updated_at=datetime.now(UTC),
        )

        if bookmarked:
            await self.session.aexecute(
                self._upsert_bookmark,
                [user_id, video_id, True, bookmark.updated_at],
            )
        else:
            await self.session.aexecute(self._delete_bookmark, [user_id, video_id])

        logger.info(
            "video_bookmark_set",
            user_id=str(user_id),
            video_id=str(video_id),
            bookmarked=bookmarked,
        )
        return bookmark

    async def list_bookmarks(self, user_id: UUID) -> list[Bookmark]:
        """Bookmarked videos of a user, most recent first."""
        rows = await self.session.aexecute(self._get_user_bookmarks, [user_id])
        bookmarks = [Bookmark.from_row(row) for row in rows]
        bookmarks = [b for b in bookmarks if b.bookmarked]
        bookmarks.sort(key=lambda b: b.updated_at, reverse=True)
        return bookmarks

    async def get_bookmarked_ids(self, user_id: UUID) -> set[UUID]:
        """IDs of every video the user bookmarked."""
        return {b.video_id for b in await self.list_bookmarks(user_id)}
