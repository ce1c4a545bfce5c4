"""Tests for the progress endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from edutrack.auth.permissions import UserRole
from edutrack.auth.security import create_access_token
from edutrack.catalog.service import VideoNotFoundError
from edutrack.progress.aggregator import AccountWatchStats, ProgressAggregator
from edutrack.progress.models import ProgressRecord
from edutrack.progress.service import (
    ProgressRateLimitError,
    ProgressService,
)


@pytest.fixture
def mock_progress_service():
    service = Mock(spec=ProgressService)
    service.record_sample = AsyncMock()
    service.get_progress = AsyncMock(return_value=None)
    service.mark_complete = AsyncMock()
    service.mark_incomplete = AsyncMock()
    return service


@pytest.fixture
def mock_aggregator():
    aggregator = Mock(spec=ProgressAggregator)
    aggregator.account_stats = AsyncMock()
    aggregator.continue_watching = AsyncMock(return_value=[])
    return aggregator


@pytest.fixture
def api(client: TestClient, mock_progress_service, mock_aggregator):
    """Client with progress services on app.state."""
    state = client.app.state
    state.progress_service = mock_progress_service
    state.progress_aggregator = mock_aggregator
    yield client
    state.progress_service = None
    state.progress_aggregator = None


@pytest.fixture
def student_headers(user_id: UUID) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(user_id), "email": "aluno@test.com", "role": UserRole.STUDENT.value}
    )
    return {"Authorization": f"Bearer {token}"}


def _record(user_id: UUID, video_id: UUID, percentage: int, completed: bool = False):
    return ProgressRecord(
        user_id=user_id,
        video_id=video_id,
        watched_percentage=percentage,
        watched_seconds=30,
        completed=completed,
        completed_at=datetime.now(UTC) if completed else None,
    )


class TestUpdateVideoProgress:
    """Tests for PUT /v1/progress/video."""

    def test_requires_token(self, api: TestClient) -> None:
        response = api.put(
            "/v1/progress/video",
            json={"video_id": str(uuid4()), "watched_percentage": 25, "watched_seconds": 30},
        )

        assert response.status_code == 401

    def test_stores_sample(
        self,
        api: TestClient,
        mock_progress_service,
        student_headers: dict[str, str],
        user_id: UUID,
    ) -> None:
        video_id = uuid4()
        mock_progress_service.record_sample.return_value = _record(user_id, video_id, 25)

        response = api.put(
            "/v1/progress/video",
            json={"video_id": str(video_id), "watched_percentage": 25, "watched_seconds": 30},
            headers=student_headers,
        )

        assert response.status_code == 200
        assert response.json()["watched_percentage"] == 25
        mock_progress_service.record_sample.assert_awaited_once_with(
            user_id=user_id,
            video_id=video_id,
            watched_percentage=25,
            watched_seconds=30,
            completed=False,
        )

    @pytest.mark.parametrize("percentage", [-1, 101])
    def test_rejects_out_of_range(
        self, api: TestClient, student_headers: dict[str, str], percentage: int
    ) -> None:
        response = api.put(
            "/v1/progress/video",
            json={
                "video_id": str(uuid4()),
                "watched_percentage": percentage,
                "watched_seconds": 30,
            },
            headers=student_headers,
        )

        assert response.status_code == 422

    def test_unknown_video(
        self, api: TestClient, mock_progress_service, student_headers: dict[str, str]
    ) -> None:
        mock_progress_service.record_sample.side_effect = VideoNotFoundError()

        response = api.put(
            "/v1/progress/video",
            json={"video_id": str(uuid4()), "watched_percentage": 25, "watched_seconds": 30},
            headers=student_headers,
        )

        assert response.status_code == 404

    def test_rate_limited(
        self, api: TestClient, mock_progress_service, student_headers: dict[str, str]
    ) -> None:
        mock_progress_service.record_sample.side_effect = ProgressRateLimitError()

        response = api.put(
            "/v1/progress/video",
            json={"video_id": str(uuid4()), "watched_percentage": 25, "watched_seconds": 30},
            headers=student_headers,
        )

        assert response.status_code == 429


class TestVideoProgress:
    """Tests for reads and the completion toggle."""

    def test_never_watched(self, api: TestClient, student_headers: dict[str, str]) -> None:
        video_id = uuid4()

        response = api.get(f"/v1/progress/video/{video_id}", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["video_id"] == str(video_id)
        assert data["watched_percentage"] == 0
        assert data["completed"] is False

    def test_mark_complete(
        self,
        api: TestClient,
        mock_progress_service,
        student_headers: dict[str, str],
        user_id: UUID,
    ) -> None:
        video_id = uuid4()
        mock_progress_service.mark_complete.return_value = _record(
            user_id, video_id, 100, completed=True
        )

        response = api.post(
            f"/v1/progress/video/{video_id}/complete", headers=student_headers
        )

        assert response.status_code == 200
        assert response.json()["completed"] is True
        mock_progress_service.mark_complete.assert_awaited_once_with(user_id, video_id)

    def test_mark_incomplete(
        self,
        api: TestClient,
        mock_progress_service,
        student_headers: dict[str, str],
        user_id: UUID,
    ) -> None:
        video_id = uuid4()
        mock_progress_service.mark_incomplete.return_value = ProgressRecord(
            user_id=user_id, video_id=video_id
        )

        response = api.post(
            f"/v1/progress/video/{video_id}/incomplete", headers=student_headers
        )

        assert response.status_code == 200
        assert response.json()["watched_percentage"] == 0


class TestWatchStats:
    """Tests for GET /v1/progress/watch-stats."""

    def test_watch_time(
        self, api: TestClient, mock_aggregator, student_headers: dict[str, str]
    ) -> None:
        mock_aggregator.account_stats.return_value = AccountWatchStats(
            total_seconds=5159,
            hours=1,
            minutes=25,
            completed_videos=1,
            started_videos=3,
            completion_rate=33,
        )

        response = api.get("/v1/progress/watch-stats", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["watch_time"] == {"hours": 1, "minutes": 25}
        assert data["completion_rate"] == 33

    def test_continue_watching_limit(
        self,
        api: TestClient,
        mock_aggregator,
        student_headers: dict[str, str],
        user_id: UUID,
    ) -> None:
        response = api.get(
            "/v1/progress/continue-watching?limit=5", headers=student_headers
        )

        assert response.status_code == 200
        assert response.json() == []
        mock_aggregator.continue_watching.assert_awaited_once_with(user_id, limit=5)

    def test_service_unavailable(
        self, client: TestClient, student_headers: dict[str, str]
    ) -> None:
        client.app.state.progress_aggregator = None

        response = client.get("/v1/progress/watch-stats", headers=student_headers)

        assert response.status_code == 503
