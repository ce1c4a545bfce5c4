"""Database models for the video catalog.

Cassandra table definitions for:
- Video folders: teacher-owned collections (subject/chapter)
- Videos: one folder per video, nominal duration in seconds
- Lookup table: videos by folder, newest first
- View counters: incremented once per (user, video) by progress tracking
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from edutrack.utils.dates import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

VIDEO_FOLDERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_folders (
    folder_id UUID PRIMARY KEY,
    name TEXT,
    subject TEXT,
    chapter TEXT,
    description TEXT,
    thumbnail TEXT,
    teacher_id UUID,
    teacher_name TEXT,
    is_public BOOLEAN,
    created_at TIMESTAMP
)
"""

VIDEOS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.videos (
    video_id UUID PRIMARY KEY,
    folder_id UUID,
    title TEXT,
    description TEXT,
    duration_seconds INT,
    video_url TEXT,
    thumbnail TEXT,
    uploaded_at TIMESTAMP
)
"""

# Lookup: videos de uma pasta, mais recentes primeiro
VIDEOS_BY_FOLDER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.videos_by_folder (
    folder_id UUID,
    uploaded_at TIMESTAMP,
    video_id UUID,
    PRIMARY KEY (folder_id, uploaded_at, video_id)
) WITH CLUSTERING ORDER BY (uploaded_at DESC, video_id ASC)
"""

# Counter tables can only hold counters besides the primary key
VIDEO_VIEW_COUNTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_view_counts (
    video_id UUID PRIMARY KEY,
    views COUNTER
)
"""

CATALOG_TABLES_CQL = [
    VIDEO_FOLDERS_TABLE_CQL,
    VIDEOS_TABLE_CQL,
    VIDEOS_BY_FOLDER_TABLE_CQL,
    VIDEO_VIEW_COUNTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class VideoFolder:
    """Folder grouping videos of one subject/chapter.

    Attributes:
        folder_id: Folder UUID
        name: Display name
        subject: Subject (e.g. "Physics")
        chapter: Chapter label
        description: Free text
        thumbnail: Thumbnail URL
        teacher_id: Owner UUID
        teacher_name: Owner display name (denormalized)
        is_public: Whether students can see the folder
        created_at: Creation timestamp
    """

    def __init__(
        self,
        folder_id: UUID,
        name: str,
        subject: str = "",
        chapter: str = "",
        description: str = "",
        thumbnail: str = "",
        teacher_id: UUID | None = None,
        teacher_name: str = "",
        is_public: bool = True,
        created_at: datetime | None = None,
    ):
        self.folder_id = folder_id
        self.name = name
        self.subject = subject
        self.chapter = chapter
        self.description = description
        self.thumbnail = thumbnail
        self.teacher_id = teacher_id
        self.teacher_name = teacher_name
        self.is_public = is_public
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "VideoFolder":
        """Create VideoFolder instance from Cassandra row."""
        return cls(
            folder_id=row.folder_id,
            name=row.name or "",
            subject=row.subject or "",
            chapter=row.chapter or "",
            description=row.description or "",
            thumbnail=row.thumbnail or "",
            teacher_id=row.teacher_id,
            teacher_name=row.teacher_name or "",
            is_public=bool(row.is_public),
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<VideoFolder {self.folder_id} {self.name!r}>"


class Video:
    """Uploaded video belonging to exactly one folder.

    Attributes:
        video_id: Video UUID
        folder_id: Owning folder UUID
        title: Title
        description: Description
        duration_seconds: Nominal length in seconds
        video_url: Media URL (streaming is out of scope)
        thumbnail: Thumbnail URL
        uploaded_at: Upload timestamp
    """

    def __init__(
        self,
        video_id: UUID,
        folder_id: UUID,
        title: str,
        duration_seconds: int = 0,
        description: str = "",
        video_url: str = "",
        thumbnail: str = "",
        uploaded_at: datetime | None = None,
    ):
        self.video_id = video_id
        self.folder_id = folder_id
        self.title = title
        self.duration_seconds = duration_seconds
        self.description = description
        self.video_url = video_url
        self.thumbnail = thumbnail
        self.uploaded_at = ensure_utc_aware(uploaded_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Video":
        """Create Video instance from Cassandra row."""
        return cls(
            video_id=row.video_id,
            folder_id=row.folder_id,
            title=row.title or "",
            duration_seconds=row.duration_seconds or 0,
            description=row.description or "",
            video_url=row.video_url or "",
            thumbnail=row.thumbnail or "",
            uploaded_at=row.uploaded_at,
        )

    def __repr__(self) -> str:
        return f"<Video {self.video_id} {self.title!r} {self.duration_seconds}s>"
