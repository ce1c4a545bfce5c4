"""Video player session: media events in, progress syncs out.

``VideoPlayerSession`` is the state machine of one open player. Periodic syncs
and threshold checks are side effects of time updates while playing; the end
event and closing the player flush immediately.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any, Protocol
from uuid import UUID

import structlog

from edutrack.progress.policy import ThresholdDecision, counts_as_view, evaluate

from . import clock
from .clock import PlaybackState, WatchSession
from .sync import ProgressSample, SyncChannel, run_callback


logger = structlog.get_logger(__name__)


class CompletionWriter(Protocol):
    """Manual completion endpoints (HTTP client, test double)."""

    async def mark_complete(self, video_id: UUID) -> dict[str, Any]: ...

    async def mark_incomplete(self, video_id: UUID) -> dict[str, Any]: ...


class VideoPlayerSession:
    """One open player for one video."""

    def __init__(
        self,
        video_id: UUID,
        channel: SyncChannel,
        completion: CompletionWriter | None = None,
        now: Callable[[], float] = time.time,
    ) -> None:
        """Open the player.

        Args:
            video_id: Video being played
            channel: Where samples are pushed
            completion: Manual completion endpoints
            now: Wall-clock source in seconds
        """
        self.channel = channel
        self.completion = completion
        self._now = now
        self.session: WatchSession = clock.open_session(video_id, now())
        self.last_sample: ProgressSample | None = None
        self.view_counted = False
        self.closed = False

    @property
    def video_id(self) -> UUID:
        return self.session.video_id

    @property
    def state(self) -> PlaybackState:
        return self.session.state

    # ==========================================================================
    # Media Events
    # ==========================================================================

    def on_play(self) -> None:
        if self.closed:
            return
        self.session = clock.play(self.session, self._now())

    def on_pause(self) -> None:
        if self.closed:
            return
        self.session = clock.pause(self.session)

    def on_time_update(
        self,
        current_time: float,
        duration: float | None,
    ) -> ThresholdDecision | None:
        """Handle a time update; may schedule a periodic sync.

        Returns the threshold decision, or None when not playing or when no
        usable duration is known yet. The view threshold only needs elapsed
        time, so it is checked even without a duration.
        """
        if self.closed or not self.session.is_playing:
            return None

        now = self._now()
        self.session = clock.time_update(self.session, now, current_time, duration)

        if counts_as_view(self.session.elapsed_seconds) and not self.view_counted:
            self.view_counted = True
            logger.debug("video_view_threshold_reached", video_id=str(self.video_id))

        sample = ProgressSample.from_session(self.session)
        if sample is None:
            return None
        self.last_sample = sample

        decision = evaluate(sample.watched_percentage, self.session.elapsed_seconds)

        if self.channel.is_due(self.session, now):
            self.channel.send(sample)
            self.session = clock.mark_synced(self.session, now)

        return decision

    def on_ended(self) -> asyncio.Task | None:
        """Media finished: flush a 100% sample right away."""
        if self.closed:
            return None

        now = self._now()
        self.session = clock.end(self.session, now)
        sample = ProgressSample.from_session(self.session)
        self.last_sample = sample
        self.session = clock.mark_synced(self.session, now)
        return self.channel.send(sample)

    def on_error(self, error: str | None = None) -> None:
        if self.closed:
            return
        logger.warning("video_playback_error", video_id=str(self.video_id), error=error)
        self.session = clock.fail(self.session)

    def close(self) -> asyncio.Task | None:
        """Close the player, flushing the last known sample.

        The flush is scheduled before the session is dropped; it keeps running
        in the background. Nothing is sent if no sample was ever taken.
        """
        if self.closed:
            return None
        self.closed = True

        if self.session.is_playing:
            self.session = clock.pause(self.session)

        if self.last_sample is None:
            return None
        return self.channel.send(self.last_sample)

    # ==========================================================================
    # Manual Completion
    # ==========================================================================

    async def _toggle(self, action: str) -> dict[str, Any] | None:
        if self.completion is None:
            return None
        try:
            if action == "complete":
                result = await self.completion.mark_complete(self.video_id)
            else:
                result = await self.completion.mark_incomplete(self.video_id)
        except Exception as e:
            logger.warning(
                "completion_toggle_failed",
                video_id=str(self.video_id),
                action=action,
                error=str(e),
            )
            return None

        await run_callback(self.channel.on_synced)
        return result

    async def mark_complete(self) -> dict[str, Any] | None:
        """Mark the video watched. Returns the stored record, None on failure."""
        return await self._toggle("complete")

    async def mark_incomplete(self) -> dict[str, Any] | None:
        """Reset the video to unwatched. Returns the stored record, None on failure."""
        return await self._toggle("incomplete")
