"""Fixtures for progress tests: an in-memory video_progress table."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from cassandra.cluster import Session

from edutrack.progress.service import ProgressService


_COLUMNS = (
    "watched_percentage",
    "watched_seconds",
    "completed",
    "completed_at",
    "view_counted",
    "updated_at",
)


class FakeResult(list):
    """Result set: iterable rows plus one() and was_applied."""

    def __init__(self, rows=(), was_applied: bool = True):
        super().__init__(rows)
        self.was_applied = was_applied

    def one(self):
        return self[0] if self else None


class FakeProgressTable:
    """Executes the progress service's prepared statements against a dict.

    ``conflicts`` makes the next N conditional writes fail as if another
    writer got there first. ``before_update`` runs right before a
    conditional update is checked, standing in for a writer in another
    process.
    """

    def __init__(self):
        self.rows: dict[tuple, SimpleNamespace] = {}
        self.conflicts = 0
        self.writes: list[str] = []
        self.before_update = None

    def prepare(self, query: str) -> str:
        return " ".join(query.split())

    def _put(self, user_id, video_id, values) -> None:
        self.rows[(user_id, video_id)] = SimpleNamespace(
            user_id=user_id, video_id=video_id, **dict(zip(_COLUMNS, values))
        )

    def _conflict(self) -> bool:
        if self.conflicts > 0:
            self.conflicts -= 1
            return True
        return False

    async def aexecute(self, query: str, params=None) -> FakeResult:
        params = list(params or [])

        if query.startswith("SELECT"):
            user_id = params[0]
            if "video_id IN ?" in query:
                return FakeResult(
                    row for (uid, vid), row in self.rows.items()
                    if uid == user_id and vid in params[1]
                )
            if "video_id = ?" in query:
                row = self.rows.get((user_id, params[1]))
                return FakeResult([row] if row else [])
            return FakeResult(
                row for (uid, _), row in self.rows.items() if uid == user_id
            )

        if query.endswith("IF NOT EXISTS"):
            self.writes.append("insert_if_absent")
            key = (params[0], params[1])
            if key in self.rows or self._conflict():
                return FakeResult(was_applied=False)
            self._put(params[0], params[1], params[2:])
            return FakeResult()

        if query.startswith("UPDATE"):
            self.writes.append("update_if_unchanged")
            values, user_id, video_id = params[:6], params[6], params[7]
            expected_completed, expected_view_counted = params[8], params[9]
            if self.before_update is not None:
                hook, self.before_update = self.before_update, None
                hook(self.rows)
            row = self.rows.get((user_id, video_id))
            if (
                row is None
                or row.completed != expected_completed
                or row.view_counted != expected_view_counted
                or self._conflict()
            ):
                return FakeResult(was_applied=False)
            self._put(user_id, video_id, values)
            return FakeResult()

        if query.startswith("INSERT"):
            self.writes.append("upsert")
            self._put(params[0], params[1], params[2:])
            return FakeResult()

        raise AssertionError(f"Unexpected query: {query}")


@pytest.fixture
def progress_table() -> FakeProgressTable:
    return FakeProgressTable()


@pytest.fixture
def mock_session(progress_table: FakeProgressTable):
    """Mock Cassandra session backed by the in-memory table."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=progress_table.prepare)
    # cassandra-asyncio-driver
    session.aexecute = AsyncMock(side_effect=progress_table.aexecute)
    return session


@pytest.fixture
def progress_service(mock_session, mock_catalog) -> ProgressService:
    """ProgressService without Redis."""
    return ProgressService(
        session=mock_session,
        keyspace="test_keyspace",
        catalog=mock_catalog,
    )
