from __future__ import annotations

from datetime import timedelta

HALF_LIFE = timedelta(days=14)
HALF_LIFE_DAYS = HALF_LIFE.total_seconds() / 86_400

MIN_SHOTS_FOR_PATTERN = 3
FREQUENCY_THRESHOLD = 0.30

# Roughly six half-lives; below this a cached pattern is treated as gone.
RETENTION_FLOOR = 0.01

DEFAULT_WINDOW_DAYS = 30
DEFAULT_MAX_SHOTS = 50
DEFAULT_RETENTION_DAYS = 90

SECONDS_PER_DAY = 86_400.0

__all__ = [
    "DEFAULT_MAX_SHOTS",
    "DEFAULT_RETENTION_DAYS",
    "DEFAULT_WINDOW_DAYS",
    "FREQUENCY_THRESHOLD",
    "HALF_LIFE",
    "HALF_LIFE_DAYS",
    "MIN_SHOTS_FOR_PATTERN",
    "RETENTION_FLOOR",
    "SECONDS_PER_DAY",
]
