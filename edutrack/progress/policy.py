"""Threshold policy for watch progress.

Decides, from a single sample, whether the watch counts as a view and whether
the video is complete. Shared by the player library and the progress store so
both sides agree on the thresholds.
"""

import math
from dataclasses import dataclass


# A view counts after 50 seconds of continuous playback (not per video)
VIEW_THRESHOLD_SECONDS = 50

# 95% watched = complete
COMPLETION_THRESHOLD_PERCENT = 95


def _finite_or_zero(value: float | None) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def round_half_up(value: float) -> int:
    """Round .5 up, like the player's ``Math.round`` (not banker's rounding)."""
    return math.floor(value + 0.5)


def clamp_percentage(value: float | None) -> int:
    """Clamp a percentage to an integer in [0, 100].

    Negative, NaN and missing values become 0.

    Examples:
        >>> clamp_percentage(120)
        100
        >>> clamp_percentage(float("nan"))
        0
    """
    return min(round_half_up(_finite_or_zero(value)), 100)


def watched_percentage(current_time: float | None, duration: float | None) -> int | None:
    """Percentage of the video reached, or None when the duration is unusable.

    Returns None for missing, non-finite or non-positive durations so the
    caller skips percentage-based decisions for that sample.

    Examples:
        >>> watched_percentage(30, 120)
        25
        >>> watched_percentage(55, 120)
        46
        >>> watched_percentage(130, 120)
        100
        >>> watched_percentage(10, float("nan")) is None
        True
    """
    if duration is None or not math.isfinite(duration) or duration <= 0:
        return None
    return clamp_percentage(_finite_or_zero(current_time) / duration * 100)


@dataclass(frozen=True, slots=True)
class ThresholdDecision:
    """Outcome of evaluating a sample. The two predicates are independent."""

    counts_as_view: bool
    is_auto_complete: bool


def counts_as_view(elapsed_seconds: float | None) -> bool:
    """Check if continuous watch time reached the view threshold."""
    return _finite_or_zero(elapsed_seconds) >= VIEW_THRESHOLD_SECONDS


def is_auto_complete(percentage: float | None) -> bool:
    """Check if the watched percentage reached the completion threshold."""
    return clamp_percentage(percentage) >= COMPLETION_THRESHOLD_PERCENT


def evaluate(percentage: float | None, elapsed_seconds: float | None) -> ThresholdDecision:
    """Evaluate a (watched percentage, elapsed seconds) sample."""
    return ThresholdDecision(
        counts_as_view=counts_as_view(elapsed_seconds),
        is_auto_complete=is_auto_complete(percentage),
    )
