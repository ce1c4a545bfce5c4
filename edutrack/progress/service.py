"""Video watch progress service layer.

Business logic for:
- Progress samples pushed by the player (upsert, last write wins; seconds never drop)
- Completion guard: automatic samples never un-complete a video
- Manual completion toggle (mark complete / mark incomplete)
- View counting, once per (user, video)
- Per-user write rate limiting (Redis)
"""

import asyncio
import weakref
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from edutrack.catalog.service import CatalogService, VideoNotFoundError
from edutrack.core.redis import progress_rate_key

from .models import ProgressRecord
from .policy import clamp_percentage, counts_as_view, is_auto_complete


if TYPE_CHECKING:
    import redis.asyncio as redis
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 60


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ProgressRateLimitError(ProgressError):
    """Too many progress writes."""

    def __init__(self, message: str = "Muitas atualizacoes de progresso. Aguarde."):
        super().__init__(message, "rate_limit_exceeded")


class ProgressWriteConflictError(ProgressError):
    """Conditional write kept losing against concurrent writers."""

    def __init__(self, message: str = "Conflito ao salvar progresso, tente novamente"):
        super().__init__(message, "write_conflict")


# ==============================================================================
# Merge Rule
# ==============================================================================


def merge_sample(
    existing: ProgressRecord | None,
    user_id: UUID,
    video_id: UUID,
    watched_percentage: float,
    watched_seconds: float,
    now: datetime,
) -> ProgressRecord:
    """Apply an automatic sample on top of the stored record.

    Last write wins for the percentage, except that a completed record stays
    completed (percentage and completed_at included) when the sample itself
    is below the completion threshold. Watched seconds never decrease: a
    sample carries the elapsed time of the current play segment, which
    restarts on every resume. ``completed_at`` is only set on the false->true
    transition.
    """
    percentage = clamp_percentage(watched_percentage)
    seconds = max(int(watched_seconds), 0)
    if existing is not None:
        seconds = max(seconds, existing.watched_seconds)
    auto_complete = is_auto_complete(percentage)
    was_completed = existing is not None and existing.completed

    if was_completed and not auto_complete:
        percentage = existing.watched_percentage
        completed_at = existing.completed_at
    elif was_completed:
        completed_at = existing.completed_at or now
    elif auto_complete:
        completed_at = now
    else:
        completed_at = None

    return ProgressRecord(
        user_id=user_id,
        video_id=video_id,
        watched_percentage=percentage,
        watched_seconds=seconds,
        completed=was_completed or auto_complete,
        completed_at=completed_at,
        view_counted=(existing is not None and existing.view_counted)
        or counts_as_view(seconds),
        updated_at=now,
    )


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Durable per-(user, video) progress store."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog: CatalogService,
        redis_client: "redis.Redis | None" = None,
        rate_limit_per_minute: int = 20,
        write_retries: int = 3,
    ):
        """Initialize with Cassandra session, catalog and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog
        self.redis = redis_client
        self.rate_limit_per_minute = rate_limit_per_minute
        self.write_retries = write_retries
        # One lock per (user, video); entries vanish once no writer holds them
        self._locks: weakref.WeakValueDictionary[tuple[UUID, UUID], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_progress
            WHERE user_id = ? AND video_id = ?
        """)

        self._get_user_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_progress
            WHERE user_id = ?
        """)

        self._get_progress_for_videos = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_progress
            WHERE user_id = ? AND video_id IN ?
        """)

        # First sample of a pair: lose to any concurrent creator
        self._insert_progress_if_absent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_progress
            (user_id, video_id, watched_percentage, watched_seconds, completed,
             completed_at, view_counted, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        # Later samples: only applied if neither completion nor the view flag
        # changed underneath
        self._update_progress_if_unchanged = self.session.prepare(f"""
            UPDATE {self.keyspace}.video_progress
            SET watched_percentage = ?, watched_seconds = ?, completed = ?,
                completed_at = ?, view_counted = ?, updated_at = ?
            WHERE user_id = ? AND video_id = ?
            IF completed = ? AND view_counted = ?
        """)

        # Manual toggle: authoritative overwrite
        self._upsert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_progress
            (user_id, video_id, watched_percentage, watched_seconds, completed,
             completed_at, view_counted, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

    def _lock_for(self, user_id: UUID, video_id: UUID) -> asyncio.Lock:
        key = (user_id, video_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @staticmethod
    def _values(record: ProgressRecord) -> list:
        return [
            record.watched_percentage,
            record.watched_seconds,
            record.completed,
            record.completed_at,
            record.view_counted,
            record.updated_at,
        ]

    async def _ensure_video(self, video_id: UUID) -> None:
        if await self.catalog.get_video(video_id) is None:
            raise VideoNotFoundError

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_rate_limit(self, user_id: UUID) -> bool:
        """Check if user is within the per-minute write limit.

        Returns True if within limit, raises ProgressRateLimitError otherwise.
        """
        if not self.redis:
            return True

        count = await self.redis.get(progress_rate_key(str(user_id)))
        if count and int(count) >= self.rate_limit_per_minute:
            logger.warning("progress_rate_limited", user_id=str(user_id))
            raise ProgressRateLimitError
        return True

    async def increment_rate_limit(self, user_id: UUID) -> None:
        """Increment the per-minute write counter."""
        if not self.redis:
            return

        key = progress_rate_key(str(user_id))
        pipe = self.redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, RATE_LIMIT_WINDOW_SECONDS)
        await pipe.execute()

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_progress(self, user_id: UUID, video_id: UUID) -> ProgressRecord | None:
        """Get the record of one (user, video) pair."""
        result = await self.session.aexecute(self._get_progress, [user_id, video_id])
        row = result.one()
        return ProgressRecord.from_row(row) if row else None

    async def list_user_progress(self, user_id: UUID) -> list[ProgressRecord]:
        """Get every record of a user."""
        rows = await self.session.aexecute(self._get_user_progress, [user_id])
        return [ProgressRecord.from_row(row) for row in rows]

    async def get_progress_for_videos(
        self,
        user_id: UUID,
        video_ids: Iterable[UUID],
    ) -> dict[UUID, ProgressRecord]:
        """Get the user's records for a set of videos, keyed by video."""
        ids = list(dict.fromkeys(video_ids))
        if not ids:
            return {}
        rows = await self.session.aexecute(
            self._get_progress_for_videos, [user_id, ids]
        )
        records = (ProgressRecord.from_row(row) for row in rows)
        return {record.video_id: record for record in records}

    # ==========================================================================
    # Automatic Samples
    # ==========================================================================

    async def record_sample(
        self,
        user_id: UUID,
        video_id: UUID,
        watched_percentage: float,
        watched_seconds: float,
        completed: bool = False,
    ) -> ProgressRecord:
        """Store a progress sample pushed by the player.

        The completion flag is recomputed from the percentage; the client
        flag is only compared for logging.

        Raises:
            VideoNotFoundError: If the video is not in the catalog
            ProgressRateLimitError: If the user exceeded the write limit
            ProgressWriteConflictError: If concurrent writers kept winning
        """
        await self.check_rate_limit(user_id)
        await self._ensure_video(video_id)

        if completed != is_auto_complete(watched_percentage):
            logger.debug(
                "completion_flag_mismatch",
                video_id=str(video_id),
                client_completed=completed,
                watched_percentage=watched_percentage,
            )

        async with self._lock_for(user_id, video_id):
            record, existing = await self._apply_sample(
                user_id, video_id, watched_percentage, watched_seconds
            )

        await self.increment_rate_limit(user_id)

        if existing and existing.completed and not is_auto_complete(watched_percentage):
            logger.info(
                "completion_regression_ignored",
                user_id=str(user_id),
                video_id=str(video_id),
                watched_percentage=watched_percentage,
            )
        if record.completed and not (existing and existing.completed):
            logger.info(
                "video_auto_completed",
                user_id=str(user_id),
                video_id=str(video_id),
            )
        if record.view_counted and not (existing and existing.view_counted):
            await self.catalog.increment_views(video_id)

        logger.debug(
            "progress_synced",
            video_id=str(video_id),
            watched_percentage=record.watched_percentage,
            watched_seconds=record.watched_seconds,
            completed=record.completed,
        )
        return record

    async def _apply_sample(
        self,
        user_id: UUID,
        video_id: UUID,
        watched_percentage: float,
        watched_seconds: float,
    ) -> tuple[ProgressRecord, ProgressRecord | None]:
        """Read, merge and conditionally write; re-read when another writer won."""
        for attempt in range(self.write_retries + 1):
            existing = await self.get_progress(user_id, video_id)
            record = merge_sample(
                existing,
                user_id,
                video_id,
                watched_percentage,
                watched_seconds,
                datetime.now(UTC),
            )

            if existing is None:
                result = await self.session.aexecute(
                    self._insert_progress_if_absent,
                    [user_id, video_id, *self._values(record)],
                )
            else:
                result = await self.session.aexecute(
                    self._update_progress_if_unchanged,
                    [
                        *self._values(record),
                        user_id,
                        video_id,
                        existing.completed,
                        existing.view_counted,
                    ],
                )

            if result.was_applied:
                return record, existing

            logger.debug(
                "progress_write_conflict",
                video_id=str(video_id),
                attempt=attempt + 1,
            )

        logger.warning(
            "progress_write_conflict_exhausted",
            user_id=str(user_id),
            video_id=str(video_id),
            retries=self.write_retries,
        )
        raise ProgressWriteConflictError

    # ==========================================================================
    # Manual Completion Toggle
    # ==========================================================================

    async def mark_complete(self, user_id: UUID, video_id: UUID) -> ProgressRecord:
        """Force a video to completed at 100%.

        Idempotent: an already complete record at 100% is returned unchanged.

        Raises:
            VideoNotFoundError: If the video is not in the catalog
        """
        await self._ensure_video(video_id)

        async with self._lock_for(user_id, video_id):
            existing = await self.get_progress(user_id, video_id)
            if existing and existing.completed and existing.watched_percentage == 100:  # noqa: PLR2004
                return existing

            now = datetime.now(UTC)
            record = ProgressRecord(
                user_id=user_id,
                video_id=video_id,
                watched_percentage=100,
                watched_seconds=existing.watched_seconds if existing else 0,
                completed=True,
                completed_at=(existing.completed_at if existing else None) or now,
                view_counted=existing.view_counted if existing else False,
                updated_at=now,
            )
            await self.session.aexecute(
                self._upsert_progress, [user_id, video_id, *self._values(record)]
            )

        logger.info(
            "video_marked_complete",
            user_id=str(user_id),
            video_id=str(video_id),
        )
        return record

    async def mark_incomplete(self, user_id: UUID, video_id: UUID) -> ProgressRecord:
        """Reset a video to a clean, unwatched state.

        Partial progress is discarded on purpose: percentage and seconds go to
        zero, not just the completion flag. A view already counted stays counted.

        Raises:
            VideoNotFoundError: If the video is not in the catalog
        """
        await self._ensure_video(video_id)

        async with self._lock_for(user_id, video_id):
            existing = await self.get_progress(user_id, video_id)
            record = ProgressRecord(
                user_id=user_id,
                video_id=video_id,
                watched_percentage=0,
                watched_seconds=0,
                completed=False,
                completed_at=None,
                view_counted=existing.view_counted if existing else False,
                updated_at=datetime.now(UTC),
            )
            await self.session.aexecute(
                self._upsert_progress, [user_id, video_id, *self._values(record)]
            )

        logger.info(
            "video_marked_incomplete",
            user_id=str(user_id),
            video_id=str(video_id),
            previous_percentage=existing.watched_percentage if existing else 0,
        )
        return record
