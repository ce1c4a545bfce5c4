"""Video duration parsing and formatting.

Teachers upload videos with durations typed as ``"MM:SS"`` or ``"HH:MM:SS"``
while the player reports plain seconds. Everything stored is whole seconds.
"""

import math


SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

_MM_SS_PARTS = 2
_HH_MM_SS_PARTS = 3


def _part(value: str) -> int:
    # Malformed components count as zero instead of rejecting the whole value
    try:
        return max(int(value.strip()), 0)
    except ValueError:
        return 0


def parse_duration(value: int | float | str | None) -> int:
    """Parse a duration into whole seconds.

    Accepts seconds (int/float), numeric strings, ``"MM:SS"`` and
    ``"HH:MM:SS"``. Missing, negative or non-finite values become 0.

    Examples:
        >>> parse_duration("12:30")
        750
        >>> parse_duration("1:02:03")
        3723
        >>> parse_duration(95.7)
        95
    """
    if value is None:
        return 0

    if isinstance(value, int | float):
        if not math.isfinite(value) or value < 0:
            return 0
        return int(value)

    parts = value.strip().split(":")
    if len(parts) == _MM_SS_PARTS:
        minutes, seconds = (_part(p) for p in parts)
        return minutes * SECONDS_PER_MINUTE + seconds
    if len(parts) == _HH_MM_SS_PARTS:
        hours, minutes, seconds = (_part(p) for p in parts)
        return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds

    try:
        return parse_duration(float(value))
    except ValueError:
        return 0


def split_hours_minutes(total_seconds: int) -> tuple[int, int]:
    """Split seconds into (hours, minutes) by integer division/modulo."""
    total_seconds = max(total_seconds, 0)
    hours = total_seconds // SECONDS_PER_HOUR
    minutes = (total_seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE
    return hours, minutes


def format_duration_label(total_seconds: int) -> str:
    """Human label used on folder cards, e.g. ``"2h 15m"``."""
    hours, minutes = split_hours_minutes(total_seconds)
    return f"{hours}h {minutes}m"
