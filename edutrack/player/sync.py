"""Fire-and-forget transport of progress samples.

Sends never block the player and never raise into it. A failed send is
logged and dropped; the next periodic tick or the close flush carries a newer
sample anyway. In-flight sends are never cancelled.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

import structlog

from edutrack.progress.policy import COMPLETION_THRESHOLD_PERCENT

from .clock import PlaybackState, WatchSession


logger = structlog.get_logger(__name__)

SYNC_INTERVAL_SECONDS = 30

SyncedCallback = Callable[[], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class ProgressSample:
    """Payload of one progress write."""

    video_id: UUID
    watched_percentage: int
    watched_seconds: int
    completed: bool

    @classmethod
    def from_session(cls, session: WatchSession) -> "ProgressSample | None":
        """Build a sample; None while the duration is unusable.

        The end event always reports 100%.
        """
        if session.state is PlaybackState.ENDED:
            percentage = 100
        else:
            percentage = session.watched_percentage
            if percentage is None:
                return None
        return cls(
            video_id=session.video_id,
            watched_percentage=percentage,
            watched_seconds=max(session.elapsed_seconds, 0),
            completed=percentage >= COMPLETION_THRESHOLD_PERCENT,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "video_id": str(self.video_id),
            "watched_percentage": self.watched_percentage,
            "watched_seconds": self.watched_seconds,
            "completed": self.completed,
        }


class ProgressWriter(Protocol):
    """Anything that can persist a sample (HTTP client, test double)."""

    async def write_progress(self, sample: ProgressSample) -> None: ...


async def run_callback(callback: SyncedCallback | None) -> None:
    """Run a refresh callback, sync or async, logging its failures."""
    if callback is None:
        return
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning("progress_refresh_failed", error=str(e))


class SyncChannel:
    """Pushes samples to the progress store in background tasks."""

    def __init__(
        self,
        writer: ProgressWriter,
        on_synced: SyncedCallback | None = None,
        interval: float = SYNC_INTERVAL_SECONDS,
    ) -> None:
        """Initialize sync channel.

        Args:
            writer: Progress store transport
            on_synced: Called after every successful send (refresh stats)
            interval: Seconds between periodic syncs while playing
        """
        self.writer = writer
        self.on_synced = on_synced
        self.interval = interval
        self._pending: set[asyncio.Task] = set()
        self._sent = 0
        self._failed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def is_due(self, session: WatchSession, now: float) -> bool:
        """Check if a periodic sync is due for a playing session."""
        if not session.is_playing or session.last_synced_at is None:
            return False
        return now - session.last_synced_at >= self.interval

    def send(self, sample: ProgressSample) -> asyncio.Task:
        """Schedule a send without waiting for it.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self._send(sample))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, sample: ProgressSample) -> None:
        try:
            await self.writer.write_progress(sample)
        except Exception as e:
            self._failed += 1
            logger.warning(
                "progress_sync_failed",
                video_id=str(sample.video_id),
                watched_percentage=sample.watched_percentage,
                error=str(e),
            )
            return

        self._sent += 1
        logger.debug(
            "progress_sync_sent",
            video_id=str(sample.video_id),
            watched_percentage=sample.watched_percentage,
            watched_seconds=sample.watched_seconds,
        )
        await run_callback(self.on_synced)

    async def drain(self) -> None:
        """Wait for every in-flight send to finish."""
        while self._pending:
            await asyncio.gather(*self._pending)

    def get_stats(self) -> dict[str, int]:
        """Get channel statistics for monitoring."""
        return {
            "sent": self._sent,
            "failed": self._failed,
            "pending": self.pending,
        }
