"""Tests for folder and account statistics."""

import random
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from edutrack.bookmarks.models import Bookmark
from edutrack.bookmarks.service import BookmarkService
from edutrack.catalog.models import Video, VideoFolder
from edutrack.catalog.service import FolderNotFoundError
from edutrack.progress.aggregator import (
    ProgressAggregator,
    account_watch_stats,
    folder_stats,
    is_in_progress,
)
from edutrack.progress.models import ProgressRecord
from edutrack.progress.service import ProgressService


T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _video(folder_id: UUID, duration: int = 600) -> Video:
    return Video(video_id=uuid4(), folder_id=folder_id, title="Aula", duration_seconds=duration)


def _record(
    user_id: UUID,
    video_id: UUID,
    percentage: int = 0,
    seconds: int = 0,
    completed: bool = False,
    updated_at: datetime = T0,
) -> ProgressRecord:
    return ProgressRecord(
        user_id=user_id,
        video_id=video_id,
        watched_percentage=percentage,
        watched_seconds=seconds,
        completed=completed,
        updated_at=updated_at,
    )


class TestFolderStats:
    """Tests for the folder reduction."""

    def test_three_of_four_completed(self, user_id: UUID) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id) for _ in range(4)]
        records = [_record(user_id, v.video_id, 100, 600, True) for v in videos[:3]]

        stats = folder_stats(folder_id, videos, records)

        assert stats.video_count == 4
        assert stats.completed_count == 3
        assert stats.progress_ratio == 0.75
        assert stats.progress_percent == 75
        assert stats.total_duration_seconds == 2400
        assert stats.total_duration_label == "0h 40m"

    def test_empty_folder(self) -> None:
        """No division by zero."""
        stats = folder_stats(uuid4(), [], [])

        assert stats.video_count == 0
        assert stats.progress_percent == 0
        assert stats.progress_ratio == 0.0

    def test_missing_records_count_as_not_completed(self, user_id: UUID) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id) for _ in range(3)]

        stats = folder_stats(folder_id, videos, [_record(user_id, videos[0].video_id, 96, completed=True)])

        assert stats.completed_count == 1
        assert stats.progress_percent == 33

    def test_partial_progress_does_not_count(self, user_id: UUID) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id)]

        stats = folder_stats(folder_id, videos, [_record(user_id, videos[0].video_id, 94)])

        assert stats.completed_count == 0

    def test_records_outside_folder_ignored(self, user_id: UUID) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id), _video(folder_id)]
        stray = _record(user_id, uuid4(), 100, completed=True)

        stats = folder_stats(folder_id, videos, [stray])

        assert stats.completed_count == 0

    def test_views_are_summed(self) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id), _video(folder_id)]
        views = {videos[0].video_id: 3, videos[1].video_id: 4, uuid4(): 100}

        assert folder_stats(folder_id, videos, [], views).total_views == 7

    def test_order_does_not_matter(self, user_id: UUID) -> None:
        folder_id = uuid4()
        videos = [_video(folder_id, duration=60 * i) for i in range(1, 8)]
        records = [
            _record(user_id, v.video_id, 100 if i % 2 else 30, completed=bool(i % 2))
            for i, v in enumerate(videos)
        ]
        expected = folder_stats(folder_id, videos, records)

        rng = random.Random(7)
        for _ in range(5):
            shuffled_videos = videos[:]
            shuffled_records = records[:]
            rng.shuffle(shuffled_videos)
            rng.shuffle(shuffled_records)
            assert folder_stats(folder_id, shuffled_videos, shuffled_records) == expected


class TestAccountWatchStats:
    """Tests for the account reduction."""

    def test_hours_and_minutes(self, user_id: UUID) -> None:
        records = [
            _record(user_id, uuid4(), 50, 3600),
            _record(user_id, uuid4(), 100, 1500, completed=True),
            _record(user_id, uuid4(), 10, 59),
        ]

        stats = account_watch_stats(records)

        assert stats.total_seconds == 5159
        assert stats.hours == 1
        assert stats.minutes == 25

    def test_completion_rate(self, user_id: UUID) -> None:
        records = [
            _record(user_id, uuid4(), 100, 100, completed=True),
            _record(user_id, uuid4(), 20, 10),
            _record(user_id, uuid4(), 30, 10),
            _record(user_id, uuid4()),
        ]

        stats = account_watch_stats(records)

        assert stats.completed_videos == 1
        assert stats.started_videos == 3
        assert stats.completion_rate == 33

    def test_no_records(self) -> None:
        stats = account_watch_stats([])

        assert stats.total_seconds == 0
        assert stats.completion_rate == 0

    def test_orphans_skipped(self, user_id: UUID) -> None:
        kept = _record(user_id, uuid4(), 50, 120)
        orphan = _record(user_id, uuid4(), 50, 5000)

        stats = account_watch_stats([kept, orphan], {kept.video_id})

        assert stats.total_seconds == 120
        assert stats.started_videos == 1

    def test_order_does_not_matter(self, user_id: UUID) -> None:
        records = [_record(user_id, uuid4(), i * 10, i * 97, i > 8) for i in range(10)]
        expected = account_watch_stats(records)

        assert account_watch_stats(list(reversed(records))) == expected


class TestIsInProgress:
    @pytest.mark.parametrize(
        "percentage,completed,expected",
        [(0, False, False), (1, False, True), (94, False, True), (95, False, False), (100, True, False)],
    )
    def test_bounds(self, user_id: UUID, percentage: int, completed: bool, expected: bool) -> None:
        assert is_in_progress(_record(user_id, uuid4(), percentage, completed=completed)) is expected


@pytest.fixture
def mock_progress():
    """Mock ProgressService."""
    progress = Mock(spec=ProgressService)
    progress.get_progress_for_videos = AsyncMock(return_value={})
    progress.list_user_progress = AsyncMock(return_value=[])
    return progress


@pytest.fixture
def mock_bookmarks():
    """Mock BookmarkService with no bookmarks."""
    bookmarks = Mock(spec=BookmarkService)
    bookmarks.get_bookmarked_ids = AsyncMock(return_value=set())
    bookmarks.list_bookmarks = AsyncMock(return_value=[])
    return bookmarks


@pytest.fixture
def aggregator(mock_catalog, mock_progress, mock_bookmarks) -> ProgressAggregator:
    return ProgressAggregator(
        catalog=mock_catalog, progress=mock_progress, bookmarks=mock_bookmarks
    )


class TestProgressAggregator:
    """Tests for ProgressAggregator reads."""

    @pytest.mark.asyncio
    async def test_folder_progress(
        self,
        aggregator: ProgressAggregator,
        mock_progress,
        mock_bookmarks,
        folder: VideoFolder,
        video: Video,
        user_id: UUID,
    ) -> None:
        record = _record(user_id, video.video_id, 100, 120, completed=True)
        mock_progress.get_progress_for_videos.return_value = {video.video_id: record}
        mock_bookmarks.get_bookmarked_ids.return_value = {video.video_id}

        result_folder, stats, items = await aggregator.folder_progress(
            user_id, folder.folder_id
        )

        assert result_folder is folder
        assert stats.progress_percent == 100
        assert len(items) == 1
        assert items[0].watched is True
        assert items[0].bookmarked is True
        assert items[0].folder is folder

    @pytest.mark.asyncio
    async def test_folder_not_found(
        self, aggregator: ProgressAggregator, user_id: UUID
    ) -> None:
        with pytest.raises(FolderNotFoundError):
            await aggregator.folder_progress(user_id, uuid4())

    @pytest.mark.asyncio
    async def test_list_folder_progress(
        self, aggregator: ProgressAggregator, mock_catalog, user_id: UUID
    ) -> None:
        results = await aggregator.list_folder_progress(user_id, subject="Physics")

        mock_catalog.list_folders.assert_awaited_once_with(subject="Physics")
        assert len(results) == 1
        assert results[0][1].progress_percent == 0

    @pytest.mark.asyncio
    async def test_account_stats_skips_deleted_videos(
        self,
        aggregator: ProgressAggregator,
        mock_progress,
        video: Video,
        user_id: UUID,
    ) -> None:
        mock_progress.list_user_progress.return_value = [
            _record(user_id, video.video_id, 50, 60),
            _record(user_id, uuid4(), 100, 9999, completed=True),
        ]

        stats = await aggregator.account_stats(user_id)

        assert stats.total_seconds == 60
        assert stats.completed_videos == 0

    @pytest.mark.asyncio
    async def test_continue_watching(
        self,
        aggregator: ProgressAggregator,
        mock_catalog,
        mock_progress,
        folder: VideoFolder,
        user_id: UUID,
    ) -> None:
        videos = [_video(folder.folder_id) for _ in range(5)]
        by_id = {v.video_id: v for v in videos}
        mock_catalog.get_videos.side_effect = lambda ids: {
            vid: by_id[vid] for vid in ids if vid in by_id
        }
        mock_progress.list_user_progress.return_value = [
            _record(user_id, videos[0].video_id, 40, updated_at=T0),
            _record(user_id, videos[1].video_id, 60, updated_at=T0 + timedelta(hours=3)),
            _record(user_id, videos[2].video_id, 100, completed=True, updated_at=T0 + timedelta(hours=5)),
            _record(user_id, videos[3].video_id, 10, updated_at=T0 + timedelta(hours=1)),
            _record(user_id, videos[4].video_id, 5, updated_at=T0 + timedelta(hours=2)),
        ]

        items = await aggregator.continue_watching(user_id)

        assert [i.video.video_id for i in items] == [
            videos[1].video_id,
            videos[4].video_id,
            videos[3].video_id,
        ]

    @pytest.mark.asyncio
    async def test_bookmarked_videos(
        self,
        aggregator: ProgressAggregator,
        mock_bookmarks,
        mock_progress,
        video: Video,
        user_id: UUID,
    ) -> None:
        mock_bookmarks.list_bookmarks.return_value = [
            Bookmark(user_id=user_id, video_id=video.video_id),
            Bookmark(user_id=user_id, video_id=uuid4()),
        ]
        mock_bookmarks.get_bookmarked_ids.return_value = {video.video_id}

        items = await aggregator.bookmarked_videos(user_id)

        assert [i.video.video_id for i in items] == [video.video_id]
        assert items[0].bookmarked is True
        assert items[0].record is None

    @pytest.mark.asyncio
    async def test_without_bookmarks(
        self, mock_catalog, mock_progress, user_id: UUID
    ) -> None:
        aggregator = ProgressAggregator(catalog=mock_catalog, progress=mock_progress)

        assert await aggregator.bookmarked_videos(user_id) == []
