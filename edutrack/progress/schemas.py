"""Pydantic schemas for video watch progress.

Request and response models for:
- Progress samples pushed by the player
- Manual completion toggle
- Folder statistics and account watch time
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .aggregator import AccountWatchStats, FolderStats, VideoWithProgress
from .models import ProgressRecord


# ==============================================================================
# Progress Write Schemas
# ==============================================================================


class ProgressSampleRequest(BaseModel):
    """Progress sample pushed by the player (every 30s, on end and on close)."""

    video_id: UUID = Field(..., description="Video UUID")
    watched_percentage: float = Field(
        ..., ge=0, le=100, description="Position reached, 0-100"
    )
    watched_seconds: int = Field(
        ..., ge=0, description="Continuous watch time of the current segment"
    )
    completed: bool = Field(default=False, description="Client-side completion flag")


class ProgressRecordResponse(BaseModel):
    """Progress of one video for the current user."""

    model_config = ConfigDict(from_attributes=True)

    video_id: UUID
    watched_percentage: int = Field(description="0-100 percentage")
    watched_seconds: int = 0
    completed: bool = False
    completed_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: ProgressRecord) -> "ProgressRecordResponse":
        """Create response from entity."""
        return cls(
            video_id=entity.video_id,
            watched_percentage=entity.watched_percentage,
            watched_seconds=entity.watched_seconds,
            completed=entity.completed,
            completed_at=entity.completed_at,
            updated_at=entity.updated_at,
        )

    @classmethod
    def empty(cls, video_id: UUID) -> "ProgressRecordResponse":
        """Response for a video the user never opened."""
        return cls(video_id=video_id, watched_percentage=0)


# ==============================================================================
# Aggregate Schemas
# ==============================================================================


class VideoProgressItem(BaseModel):
    """Catalog video annotated with the user's progress."""

    video_id: UUID
    folder_id: UUID
    folder_name: str = ""
    title: str
    thumbnail: str = ""
    duration_seconds: int
    views: int = 0
    watched: bool = False
    watched_percentage: int = 0
    bookmarked: bool = False
    last_watched_at: datetime | None = None

    @classmethod
    def from_item(cls, item: VideoWithProgress) -> "VideoProgressItem":
        """Create response from an annotated video."""
        return cls(
            video_id=item.video.video_id,
            folder_id=item.video.folder_id,
            folder_name=item.folder.name if item.folder else "",
            title=item.video.title,
            thumbnail=item.video.thumbnail,
            duration_seconds=item.video.duration_seconds,
            views=item.views,
            watched=item.watched,
            watched_percentage=item.watched_percentage,
            bookmarked=item.bookmarked,
            last_watched_at=item.record.updated_at if item.record else None,
        )


class FolderProgressResponse(BaseModel):
    """Folder with the user's completion statistics."""

    folder_id: UUID
    name: str
    subject: str
    chapter: str
    thumbnail: str = ""
    teacher_name: str = ""
    video_count: int
    total_duration_seconds: int
    total_duration: str = Field(description='Formatted as "Xh Ym"')
    completed_count: int
    progress_percent: int = Field(description="Completed videos over all videos, 0-100")
    total_views: int = 0
    videos: list[VideoProgressItem] = []

    @classmethod
    def from_stats(
        cls,
        folder,
        stats: FolderStats,
        items: list[VideoWithProgress],
    ) -> "FolderProgressResponse":
        """Create response from folder, stats and annotated videos."""
        return cls(
            folder_id=folder.folder_id,
            name=folder.name,
            subject=folder.subject,
            chapter=folder.chapter,
            thumbnail=folder.thumbnail,
            teacher_name=folder.teacher_name,
            video_count=stats.video_count,
            total_duration_seconds=stats.total_duration_seconds,
            total_duration=stats.total_duration_label,
            completed_count=stats.completed_count,
            progress_percent=stats.progress_percent,
            total_views=stats.total_views,
            videos=[VideoProgressItem.from_item(item) for item in items],
        )


class WatchTime(BaseModel):
    """Watch time split for display."""

    hours: int
    minutes: int


class WatchStatsResponse(BaseModel):
    """Account-wide watch statistics."""

    total_seconds: int
    watch_time: WatchTime
    completed_videos: int
    started_videos: int
    completion_rate: int = Field(description="Completed over started videos, 0-100")

    @classmethod
    def from_stats(cls, stats: AccountWatchStats) -> "WatchStatsResponse":
        """Create response from aggregated stats."""
        return cls(
            total_seconds=stats.total_seconds,
            watch_time=WatchTime(hours=stats.hours, minutes=stats.minutes),
            completed_videos=stats.completed_videos,
            started_videos=stats.started_videos,
            completion_rate=stats.completion_rate,
        )
