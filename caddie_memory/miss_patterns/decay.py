"""Exponential time decay for miss-pattern confidence.

Confidence halves every :data:`HALF_LIFE` (14 days). Elapsed time is measured
in fractional days so the curve is continuous; events stamped in the future
are clamped to zero elapsed time and never boost a value above its raw level.
Naive datetimes are read as UTC wherever they enter this module.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone

from .constants import HALF_LIFE, SECONDS_PER_DAY


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def age_days(reference_time: datetime, event_time: datetime) -> float:
    """Return elapsed days between ``event_time`` and ``reference_time`` (>= 0)."""

    elapsed = as_utc(reference_time) - as_utc(event_time)
    return max(0.0, elapsed.total_seconds() / SECONDS_PER_DAY)


def decay_factor(
    reference_time: datetime,
    event_time: datetime,
    half_life: timedelta = HALF_LIFE,
) -> float:
    """Return ``0.5 ** (elapsed / half_life)`` in the range (0, 1].

    Past roughly a thousand half-lives the power underflows; the factor is
    then held at the smallest positive normal float.
    """

    half_life_days = half_life.total_seconds() / SECONDS_PER_DAY
    if half_life_days <= 0:
        raise ValueError("half_life must be positive")
    elapsed = age_days(reference_time, event_time)
    if elapsed == 0.0:
        return 1.0
    return max(0.5 ** (elapsed / half_life_days), sys.float_info.min)


def decayed_confidence(
    raw_confidence: float, reference_time: datetime, last_occurrence: datetime
) -> float:
    return raw_confidence * decay_factor(reference_time, last_occurrence)


def is_within_window(timestamp: datetime, days: int, now: datetime) -> bool:
    """True when ``timestamp`` is less than ``days`` old relative to ``now``."""

    return age_days(now, timestamp) < days


__all__ = ["age_days", "as_utc", "decay_factor", "decayed_confidence", "is_within_window"]
