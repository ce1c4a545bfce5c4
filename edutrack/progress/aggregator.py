"""Folder and account statistics derived from progress records.

The reductions are pure: identical inputs give identical outputs whatever
the order of the records. ``ProgressAggregator`` does the reads and keeps no
state between calls, so statistics never drift from the stored records.
"""

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from edutrack.catalog.models import Video, VideoFolder
from edutrack.catalog.service import CatalogService, FolderNotFoundError
from edutrack.utils.duration import format_duration_label, split_hours_minutes

from .models import ProgressRecord
from .policy import COMPLETION_THRESHOLD_PERCENT, round_half_up
from .service import ProgressService


if TYPE_CHECKING:
    from edutrack.bookmarks.service import BookmarkService


logger = structlog.get_logger(__name__)

CONTINUE_WATCHING_LIMIT = 3


@dataclass(frozen=True, slots=True)
class FolderStats:
    """Completion statistics of one folder for one user."""

    folder_id: UUID
    video_count: int
    total_duration_seconds: int
    completed_count: int
    progress_ratio: float
    progress_percent: int
    total_views: int = 0

    @property
    def total_duration_label(self) -> str:
        return format_duration_label(self.total_duration_seconds)


@dataclass(frozen=True, slots=True)
class AccountWatchStats:
    """Watch time of one user across the whole catalog."""

    total_seconds: int
    hours: int
    minutes: int
    completed_videos: int
    started_videos: int
    completion_rate: int


@dataclass(frozen=True, slots=True)
class VideoWithProgress:
    """Catalog video annotated with the user's progress and bookmark."""

    video: Video
    folder: VideoFolder | None
    record: ProgressRecord | None
    bookmarked: bool = False
    views: int = 0

    @property
    def watched(self) -> bool:
        return self.record is not None and self.record.completed

    @property
    def watched_percentage(self) -> int:
        return self.record.watched_percentage if self.record else 0


# ==============================================================================
# Pure Reductions
# ==============================================================================


def folder_stats(
    folder_id: UUID,
    videos: Iterable[Video],
    records: Iterable[ProgressRecord],
    views: Mapping[UUID, int] | None = None,
) -> FolderStats:
    """Reduce a folder's videos and the user's records to FolderStats.

    Videos without a record count as not completed. Records of videos outside
    the folder (deleted or moved) are ignored. An empty folder is at 0%.
    """
    members = {video.video_id: video for video in videos}
    completed_ids = {
        record.video_id
        for record in records
        if record.completed and record.video_id in members
    }

    video_count = len(members)
    completed_count = len(completed_ids)
    ratio = completed_count / video_count if video_count else 0.0
    views = views or {}

    return FolderStats(
        folder_id=folder_id,
        video_count=video_count,
        total_duration_seconds=sum(v.duration_seconds for v in members.values()),
        completed_count=completed_count,
        progress_ratio=ratio,
        progress_percent=round_half_up(ratio * 100),
        total_views=sum(views.get(vid, 0) for vid in members),
    )


def account_watch_stats(
    records: Iterable[ProgressRecord],
    resolvable_video_ids: Collection[UUID] | None = None,
) -> AccountWatchStats:
    """Reduce all of a user's records to AccountWatchStats.

    Args:
        records: Every progress record of the user
        resolvable_video_ids: Videos that still exist; records pointing
            elsewhere are skipped. None counts every record.
    """
    if resolvable_video_ids is not None:
        records = [r for r in records if r.video_id in resolvable_video_ids]
    else:
        records = list(records)

    total_seconds = sum(max(r.watched_seconds, 0) for r in records)
    hours, minutes = split_hours_minutes(total_seconds)
    completed = sum(1 for r in records if r.completed)
    started = sum(1 for r in records if r.is_started)

    return AccountWatchStats(
        total_seconds=total_seconds,
        hours=hours,
        minutes=minutes,
        completed_videos=completed,
        started_videos=started,
        completion_rate=round_half_up(completed / started * 100) if started else 0,
    )


def is_in_progress(record: ProgressRecord) -> bool:
    """Started but not yet past the completion threshold."""
    return (
        not record.completed
        and 0 < record.watched_percentage < COMPLETION_THRESHOLD_PERCENT
    )


# ==============================================================================
# Aggregator Service
# ==============================================================================


class ProgressAggregator:
    """Reads catalog and progress, then applies the pure reductions."""

    def __init__(
        self,
        catalog: CatalogService,
        progress: ProgressService,
        bookmarks: "BookmarkService | None" = None,
    ):
        self.catalog = catalog
        self.progress = progress
        self.bookmarks = bookmarks

    async def _bookmarked_ids(self, user_id: UUID) -> set[UUID]:
        if self.bookmarks is None:
            return set()
        return await self.bookmarks.get_bookmarked_ids(user_id)

    async def folder_progress(
        self,
        user_id: UUID,
        folder_id: UUID,
    ) -> tuple[VideoFolder, FolderStats, list[VideoWithProgress]]:
        """Stats and annotated videos of one folder.

        Raises:
            FolderNotFoundError: If the folder does not exist
        """
        folder = await self.catalog.get_folder(folder_id)
        if folder is None:
            raise FolderNotFoundError
        return await self._folder_progress(user_id, folder)

    async def _folder_progress(
        self,
        user_id: UUID,
        folder: VideoFolder,
    ) -> tuple[VideoFolder, FolderStats, list[VideoWithProgress]]:
        folder_id = folder.folder_id
        videos = await self.catalog.get_folder_videos(folder_id)
        video_ids = [v.video_id for v in videos]
        records = await self.progress.get_progress_for_videos(user_id, video_ids)
        views = await self.catalog.get_view_counts(video_ids)
        bookmarked = await self._bookmarked_ids(user_id)

        stats = folder_stats(folder_id, videos, records.values(), views)
        items = [
            VideoWithProgress(
                video=video,
                folder=folder,
                record=records.get(video.video_id),
                bookmarked=video.video_id in bookmarked,
                views=views.get(video.video_id, 0),
            )
            for video in videos
        ]
        return folder, stats, items

    async def list_folder_progress(
        self,
        user_id: UUID,
        subject: str | None = None,
    ) -> list[tuple[VideoFolder, FolderStats, list[VideoWithProgress]]]:
        """Stats of every public folder, newest first."""
        folders = await self.catalog.list_folders(subject=subject)
        return [
            await self._folder_progress(user_id, folder) for folder in folders
        ]

    async def account_stats(self, user_id: UUID) -> AccountWatchStats:
        """Account-wide watch time; records of deleted videos are skipped."""
        records = await self.progress.list_user_progress(user_id)
        videos = await self.catalog.get_videos(r.video_id for r in records)

        orphans = len({r.video_id for r in records} - videos.keys())
        if orphans:
            logger.debug("orphaned_progress_skipped", user_id=str(user_id), count=orphans)

        return account_watch_stats(records, videos.keys())

    async def _annotate(
        self,
        user_id: UUID,
        records: list[ProgressRecord],
        video_ids: list[UUID],
    ) -> list[VideoWithProgress]:
        videos = await self.catalog.get_videos(video_ids)
        bookmarked = await self._bookmarked_ids(user_id)
        by_video = {r.video_id: r for r in records}
        folders: dict[UUID, VideoFolder | None] = {}

        items = []
        for video_id in video_ids:
            video = videos.get(video_id)
            if video is None:
                continue
            if video.folder_id not in folders:
                folders[video.folder_id] = await self.catalog.get_folder(video.folder_id)
            items.append(
                VideoWithProgress(
                    video=video,
                    folder=folders[video.folder_id],
                    record=by_video.get(video_id),
                    bookmarked=video_id in bookmarked,
                )
            )
        return items

    async def continue_watching(
        self,
        user_id: UUID,
        limit: int = CONTINUE_WATCHING_LIMIT,
    ) -> list[VideoWithProgress]:
        """Started, unfinished videos, most recently watched first."""
        records = [
            r for r in await self.progress.list_user_progress(user_id) if is_in_progress(r)
        ]
        records.sort(key=lambda r: r.updated_at, reverse=True)
        items = await self._annotate(user_id, records, [r.video_id for r in records])
        return items[:limit]

    async def bookmarked_videos(self, user_id: UUID) -> list[VideoWithProgress]:
        """Bookmarked videos joined with catalog data and progress."""
        if self.bookmarks is None:
            return []
        bookmarks = await self.bookmarks.list_bookmarks(user_id)
        video_ids = [b.video_id for b in bookmarks if b.bookmarked]
        records = await self.progress.get_progress_for_videos(user_id, video_ids)
        return await self._annotate(user_id, list(records.values()), video_ids)
