"""Shared test fixtures."""

import os
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", "/tmp/edutrack-test-logs")

from fastapi.testclient import TestClient  # noqa: E402

from edutrack.catalog.models import Video, VideoFolder  # noqa: E402
from edutrack.catalog.service import CatalogService  # noqa: E402


@pytest.fixture
def client() -> TestClient:
    """Test client without lifespan (no Cassandra or Redis)."""
    from edutrack.main import app

    return TestClient(app)


@pytest.fixture
def user_id() -> UUID:
    """Test user ID."""
    return uuid4()


@pytest.fixture
def folder() -> VideoFolder:
    """Public folder."""
    return VideoFolder(
        folder_id=uuid4(),
        name="Cinematica",
        subject="Physics",
        chapter="1",
        teacher_name="Prof. Ana",
    )


@pytest.fixture
def video(folder: VideoFolder) -> Video:
    """Two-minute video in the test folder."""
    return Video(
        video_id=uuid4(),
        folder_id=folder.folder_id,
        title="Movimento uniforme",
        duration_seconds=120,
    )


@pytest.fixture
def video_id(video: Video) -> UUID:
    """ID of the test video."""
    return video.video_id


@pytest.fixture
def mock_catalog(folder: VideoFolder, video: Video):
    """Mock CatalogService knowing one folder and one video."""
    catalog = Mock(spec=CatalogService)
    catalog.get_video = AsyncMock(
        side_effect=lambda vid: video if vid == video.video_id else None
    )
    catalog.get_folder = AsyncMock(
        side_effect=lambda fid: folder if fid == folder.folder_id else None
    )
    catalog.get_videos = AsyncMock(
        side_effect=lambda ids: {
            vid: video for vid in ids if vid == video.video_id
        }
    )
    catalog.get_folder_videos = AsyncMock(return_value=[video])
    catalog.get_view_counts = AsyncMock(
        side_effect=lambda ids: {vid: 0 for vid in ids}
    )
    catalog.list_folders = AsyncMock(return_value=[folder])
    catalog.increment_views = AsyncMock()
    return catalog


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = AsyncMock()
    # Mock pipeline for rate limiting
    mock_pipe = Mock()
    mock_pipe.incr = Mock()
    mock_pipe.expire = Mock()
    mock_pipe.execute = AsyncMock(return_value=[1, True])
    redis_mock.pipeline = Mock(return_value=mock_pipe)
    redis_mock.get = AsyncMock(return_value=None)
    return redis_mock
