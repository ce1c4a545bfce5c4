"""Utility modules for EduTrack."""

from edutrack.utils.dates import ensure_utc_aware
from edutrack.utils.duration import (
    format_duration_label,
    parse_duration,
    split_hours_minutes,
)


__all__ = [
    "ensure_utc_aware",
    "format_duration_label",
    "parse_duration",
    "split_hours_minutes",
]
