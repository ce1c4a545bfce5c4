"""Video catalog service layer.

Folders and videos are owned by teachers; from the progress engine's point of
view the catalog is read-only and only consulted for membership, durations
and existence checks (orphaned progress records).
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog

from .models import Video, VideoFolder
from .schemas import CreateFolderRequest, CreateVideoRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CatalogError(Exception):
    """Base catalog error."""

    def __init__(self, message: str, code: str = "catalog_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class FolderNotFoundError(CatalogError):
    """Folder does not exist."""

    def __init__(self, message: str = "Pasta nao encontrada"):
        super().__init__(message, "folder_not_found")


class VideoNotFoundError(CatalogError):
    """Video does not exist."""

    def __init__(self, message: str = "Video nao encontrado"):
        super().__init__(message, "video_not_found")


# ==============================================================================
# Catalog Service
# ==============================================================================


class CatalogService:
    """Service for video folders and videos."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Folders
        self._insert_folder = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_folders
            (folder_id, name, subject, chapter, description, thumbnail,
             teacher_id, teacher_name, is_public, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_folder = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_folders WHERE folder_id = ?
        """)

        self._list_folders = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_folders
        """)

        # Videos
        self._insert_video = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.videos
            (video_id, folder_id, title, description, duration_seconds,
             video_url, thumbnail, uploaded_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_video_by_folder = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.videos_by_folder
            (folder_id, uploaded_at, video_id)
            VALUES (?, ?, ?)
        """)

        self._get_video = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.videos WHERE video_id = ?
        """)

        self._get_videos = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.videos WHERE video_id IN ?
        """)

        self._get_folder_video_ids = self.session.prepare(f"""
            SELECT video_id FROM {self.keyspace}.videos_by_folder
            WHERE folder_id = ?
        """)

        # View counters
        self._increment_views = self.session.prepare(f"""
            UPDATE {self.keyspace}.video_view_counts
            SET views = views + 1
            WHERE video_id = ?
        """)

        self._get_view_counts = self.session.prepare(f"""
            SELECT video_id, views FROM {self.keyspace}.video_view_counts
            WHERE video_id IN ?
        """)

    # ==========================================================================
    # Folder Operations
    # ==========================================================================

    async def create_folder(
        self,
        data: CreateFolderRequest,
        teacher_id: UUID,
        teacher_name: str = "",
    ) -> VideoFolder:
        """Create a new video folder owned by a teacher."""
        folder = VideoFolder(
            folder_id=uuid4(),
            name=data.name.strip(),
            subject=data.subject.strip(),
            chapter=data.chapter.strip(),
            description=data.description,
            thumbnail=data.thumbnail,
            teacher_id=teacher_id,
            teacher_name=teacher_name,
            is_public=data.is_public,
            created_at=datetime.now(UTC),
        )

        await self.session.aexecute(
            self._insert_folder,
            [
                folder.folder_id,
                folder.name,
                folder.subject,
                folder.chapter,
                folder.description,
                folder.thumbnail,
                folder.teacher_id,
                folder.teacher_name,
                folder.is_public,
                folder.created_at,
            ],
        )

        logger.info(
            "video_folder_created",
            folder_id=str(folder.folder_id),
            teacher_id=str(teacher_id),
        )
        return folder

    async def get_folder(self, folder_id: UUID) -> VideoFolder | None:
        """Get folder by ID."""
        result = await self.session.aexecute(self._get_folder, [folder_id])
        row = result.one()
        return VideoFolder.from_row(row) if row else None

    async def list_folders(
        self,
        subject: str | None = None,
        public_only: bool = True,
    ) -> list[VideoFolder]:
        """List folders, newest first.

        Args:
            subject: Optional subject filter ("all" means no filter)
            public_only: Only folders visible to students
        """
        rows = await self.session.aexecute(self._list_folders)
        folders = [VideoFolder.from_row(row) for row in rows]

        if public_only:
            folders = [f for f in folders if f.is_public]
        if subject and subject != "all":
            folders = [f for f in folders if f.subject == subject]

        folders.sort(key=lambda f: f.created_at, reverse=True)
        return folders

    # ==========================================================================
    # Video Operations
    # ==========================================================================

    async def create_video(
        self,
        folder_id: UUID,
        data: CreateVideoRequest,
    ) -> Video:
        """Register an uploaded video in a folder.

        Raises:
            FolderNotFoundError: If the folder does not exist
        """
        folder = await self.get_folder(folder_id)
        if folder is None:
            raise FolderNotFoundError

        video = Video(
            video_id=uuid4(),
            folder_id=folder_id,
            title=data.title.strip(),
            duration_seconds=data.duration,
            description=data.description,
            video_url=data.video_url,
            thumbnail=data.thumbnail,
            uploaded_at=datetime.now(UTC),
        )

        # Dual write: main table + lookup table
        await self.session.aexecute(
            self._insert_video,
            [
                video.video_id,
                video.folder_id,
                video.title,
                video.description,
                video.duration_seconds,
                video.video_url,
                video.thumbnail,
                video.uploaded_at,
            ],
        )
        await self.session.aexecute(
            self._insert_video_by_folder,
            [video.folder_id, video.uploaded_at, video.video_id],
        )

        logger.info(
            "video_created",
            video_id=str(video.video_id),
            folder_id=str(folder_id),
            duration_seconds=video.duration_seconds,
        )
        return video

    async def get_video(self, video_id: UUID) -> Video | None:
        """Get video by ID."""
        result = await self.session.aexecute(self._get_video, [video_id])
        row = result.one()
        return Video.from_row(row) if row else None

    async def get_videos(self, video_ids: Iterable[UUID]) -> dict[UUID, Video]:
        """Resolve many videos at once. Unknown IDs are simply absent."""
        ids = list(dict.fromkeys(video_ids))
        if not ids:
            return {}
        rows = await self.session.aexecute(self._get_videos, [ids])
        videos = (Video.from_row(row) for row in rows)
        return {video.video_id: video for video in videos}

    async def get_folder_videos(self, folder_id: UUID) -> list[Video]:
        """Get all videos of a folder, newest first."""
        rows = await self.session.aexecute(self._get_folder_video_ids, [folder_id])
        ordered_ids = [row.video_id for row in rows]
        videos = await self.get_videos(ordered_ids)
        # The lookup table may lag behind a deleted video
        return [videos[vid] for vid in ordered_ids if vid in videos]

    # ==========================================================================
    # View Counters
    # ==========================================================================

    async def increment_views(self, video_id: UUID) -> None:
        """Count one view for a video."""
        await self.session.aexecute(self._increment_views, [video_id])
        logger.debug("video_view_counted", video_id=str(video_id))

    async def get_view_counts(self, video_ids: Iterable[UUID]) -> dict[UUID, int]:
        """Get view counters; videos never viewed map to 0."""
        ids = list(dict.fromkeys(video_ids))
        if not ids:
            return {}
        rows = await self.session.aexecute(self._get_view_counts, [ids])
        counts = {vid: 0 for vid in ids}
        for row in rows:
            counts[row.video_id] = row.views or 0
        return counts
