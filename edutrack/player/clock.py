"""Playback clock: watch time of the current play segment.

The player's timer state is a ``WatchSession`` value; every media event maps
to a function returning the next value, so two players never share a timer.

Watch time is wall-clock time since the current segment started playing, not
the media position delta. Stalls count as watch time, and the count restarts
at every pause->play.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from uuid import UUID

from edutrack.progress.policy import watched_percentage


class PlaybackState(str, Enum):
    """Player states driven by media events."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True, slots=True)
class WatchSession:
    """Timer state of one open player.

    Attributes:
        video_id: Video being watched
        state: Current playback state
        session_started_at: Wall-clock start of the current segment (seconds)
        last_synced_at: Wall-clock time of the last sync (or player open)
        elapsed_seconds: Segment watch time as of the last time update
        current_time: Media position in seconds
        duration: Media duration; may be NaN until metadata loads
    """

    video_id: UUID
    state: PlaybackState = PlaybackState.IDLE
    session_started_at: float | None = None
    last_synced_at: float | None = None
    elapsed_seconds: int = 0
    current_time: float = 0.0
    duration: float | None = None

    @property
    def watched_percentage(self) -> int | None:
        """Percentage reached, None while the duration is unusable."""
        return watched_percentage(self.current_time, self.duration)

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING


def _elapsed(session: WatchSession, now: float) -> int:
    if session.session_started_at is None:
        return session.elapsed_seconds
    return max(math.floor(now - session.session_started_at), 0)


def open_session(video_id: UUID, now: float) -> WatchSession:
    """Session for a freshly opened player. The sync interval starts here."""
    return WatchSession(video_id=video_id, last_synced_at=now)


def play(session: WatchSession, now: float) -> WatchSession:
    """Start a new play segment; elapsed time restarts from zero."""
    return replace(
        session,
        state=PlaybackState.PLAYING,
        session_started_at=now,
        elapsed_seconds=0,
        last_synced_at=session.last_synced_at if session.last_synced_at is not None else now,
    )


def time_update(
    session: WatchSession,
    now: float,
    current_time: float,
    duration: float | None,
) -> WatchSession:
    """Record a time update. Ignored unless playing."""
    if not session.is_playing:
        return session

    if current_time is None or not math.isfinite(current_time) or current_time < 0:
        current_time = session.current_time

    return replace(
        session,
        elapsed_seconds=_elapsed(session, now),
        current_time=current_time,
        duration=duration,
    )


def pause(session: WatchSession) -> WatchSession:
    """Pause; elapsed time keeps its last value until the next play."""
    if not session.is_playing:
        return session
    return replace(session, state=PlaybackState.PAUSED)


def end(session: WatchSession, now: float) -> WatchSession:
    """Media reached its end event."""
    elapsed = _elapsed(session, now) if session.is_playing else session.elapsed_seconds
    duration = session.duration
    current_time = session.current_time
    if duration is not None and math.isfinite(duration) and duration > 0:
        current_time = duration
    return replace(
        session,
        state=PlaybackState.ENDED,
        elapsed_seconds=elapsed,
        current_time=current_time,
    )


def fail(session: WatchSession) -> WatchSession:
    """Media error: back to idle, last sample kept."""
    return replace(session, state=PlaybackState.IDLE, session_started_at=None)


def mark_synced(session: WatchSession, now: float) -> WatchSession:
    """Restart the sync interval."""
    return replace(session, last_synced_at=now)
