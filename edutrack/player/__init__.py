"""Player library: watch-session timer and progress sync."""

from .clock import PlaybackState, WatchSession
from .client import ProgressApiClient, ProgressApiError
from .session import VideoPlayerSession
from .sync import SYNC_INTERVAL_SECONDS, ProgressSample, SyncChannel


__all__ = [
    "SYNC_INTERVAL_SECONDS",
    "PlaybackState",
    "ProgressApiClient",
    "ProgressApiError",
    "ProgressSample",
    "SyncChannel",
    "VideoPlayerSession",
    "WatchSession",
]
