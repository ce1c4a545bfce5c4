"""Pydantic schemas for video bookmarks."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Bookmark


class SetBookmarkRequest(BaseModel):
    """Request to set or clear a bookmark."""

    video_id: UUID = Field(..., description="Video UUID")
    bookmarked: bool = Field(..., description="New bookmark state")


class BookmarkResponse(BaseModel):
    """Bookmark state of a video."""

    video_id: UUID
    bookmarked: bool
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Bookmark) -> "BookmarkResponse":
        """Create response from entity."""
        return cls(
            video_id=entity.video_id,
            bookmarked=entity.bookmarked,
            updated_at=entity.updated_at,
        )
