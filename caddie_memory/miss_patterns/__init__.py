from .aggregate import MissPatternAggregator, aggregate, rank_patterns
from .constants import (
    FREQUENCY_THRESHOLD,
    HALF_LIFE,
    MIN_SHOTS_FOR_PATTERN,
    RETENTION_FLOOR,
)
from .decay import (
    age_days,
    as_utc,
    decay_factor,
    decayed_confidence,
    is_within_window,
)
from .models import (
    BY_PRESSURE,
    UNSCOPED,
    ByClub,
    ByClubAndPressure,
    ByPressure,
    Lie,
    MissDirection,
    MissPattern,
    PatternScope,
    Shot,
    ShotWindow,
    Unscoped,
)
from .pattern_store import PatternStoreAdapter
from .recorder import ShotRecorder
from .service import (
    MissPatternService,
    build_miss_pattern_service,
    get_miss_pattern_service,
)
from .stores import (
    Clock,
    FilePatternStore,
    FileShotStore,
    FixedClock,
    InMemoryPatternStore,
    InMemoryShotStore,
    MissPatternError,
    PatternStore,
    ShotStore,
    StoreUnavailableError,
    SystemClock,
)

__all__ = [
    "BY_PRESSURE",
    "ByClub",
    "ByClubAndPressure",
    "ByPressure",
    "Clock",
    "FREQUENCY_THRESHOLD",
    "FilePatternStore",
    "FileShotStore",
    "FixedClock",
    "HALF_LIFE",
    "InMemoryPatternStore",
    "InMemoryShotStore",
    "Lie",
    "MIN_SHOTS_FOR_PATTERN",
    "MissDirection",
    "MissPattern",
    "MissPatternAggregator",
    "MissPatternError",
    "MissPatternService",
    "PatternScope",
    "PatternStore",
    "PatternStoreAdapter",
    "RETENTION_FLOOR",
    "Shot",
    "ShotRecorder",
    "ShotStore",
    "ShotWindow",
    "StoreUnavailableError",
    "SystemClock",
    "UNSCOPED",
    "Unscoped",
    "age_days",
    "as_utc",
    "aggregate",
    "build_miss_pattern_service",
    "decay_factor",
    "decayed_confidence",
    "get_miss_pattern_service",
    "is_within_window",
    "rank_patterns",
]
