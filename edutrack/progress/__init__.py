"""Video watch progress module.

Provides:
- Threshold policy (view and completion thresholds)
- Progress store with completion guard and manual toggle
- Folder and account statistics
"""

from .aggregator import (
    AccountWatchStats,
    FolderStats,
    ProgressAggregator,
    account_watch_stats,
    folder_stats,
)
from .models import PROGRESS_TABLES_CQL, ProgressRecord
from .policy import (
    COMPLETION_THRESHOLD_PERCENT,
    VIEW_THRESHOLD_SECONDS,
    ThresholdDecision,
    evaluate,
    watched_percentage,
)
from .service import ProgressError, ProgressService


__all__ = [
    "COMPLETION_THRESHOLD_PERCENT",
    "PROGRESS_TABLES_CQL",
    "VIEW_THRESHOLD_SECONDS",
    "AccountWatchStats",
    "FolderStats",
    "ProgressAggregator",
    "ProgressError",
    "ProgressRecord",
    "ProgressService",
    "ThresholdDecision",
    "account_watch_stats",
    "evaluate",
    "folder_stats",
    "watched_percentage",
]
