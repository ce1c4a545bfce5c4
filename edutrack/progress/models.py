"""Database models for video watch progress.

Cassandra table definitions for:
- Video progress: one record per (user, video), upserted by player syncs
  and by the manual completion toggle

Partitioned by user so account-wide statistics read a single partition.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from edutrack.utils.dates import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Progresso por usuario e video
# Partition key: user_id (estatisticas da conta leem uma particao)
# Clustering: video_id
VIDEO_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_progress (
    user_id UUID,
    video_id UUID,
    watched_percentage INT,
    watched_seconds INT,
    completed BOOLEAN,
    completed_at TIMESTAMP,
    view_counted BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY (user_id, video_id)
)
"""

PROGRESS_TABLES_CQL = [
    VIDEO_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class ProgressRecord:
    """Durable watch progress of one user on one video.

    Attributes:
        user_id: User UUID
        video_id: Video UUID
        watched_percentage: Position reached, 0-100
        watched_seconds: Watch time reported by the last sync
        completed: Completion flag (automatic or manual)
        completed_at: Set on the false->true transition, cleared on undo
        view_counted: Whether this pair already counted a video view
        updated_at: Last write timestamp
    """

    def __init__(
        self,
        user_id: UUID,
        video_id: UUID,
        watched_percentage: int = 0,
        watched_seconds: int = 0,
        completed: bool = False,
        completed_at: datetime | None = None,
        view_counted: bool = False,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.video_id = video_id
        self.watched_percentage = watched_percentage
        self.watched_seconds = watched_seconds
        self.completed = completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.view_counted = view_counted
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @property
    def is_started(self) -> bool:
        """Check if the user watched anything of the video."""
        return self.completed or self.watched_percentage > 0 or self.watched_seconds > 0

    @classmethod
    def empty(cls, user_id: UUID, video_id: UUID) -> "ProgressRecord":
        """Record shown for a video the user never opened."""
        return cls(user_id=user_id, video_id=video_id)

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create ProgressRecord instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            video_id=row.video_id,
            watched_percentage=row.watched_percentage or 0,
            watched_seconds=row.watched_seconds or 0,
            completed=bool(row.completed),
            completed_at=row.completed_at,
            view_counted=bool(row.view_counted),
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "video_id": self.video_id,
            "watched_percentage": self.watched_percentage,
            "watched_seconds": self.watched_seconds,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "view_counted": self.view_counted,
            "updated_at": self.updated_at,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgressRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord user={self.user_id} video={self.video_id} "
            f"{self.watched_percentage}% {self.watched_seconds}s "
            f"completed={self.completed}>"
        )
