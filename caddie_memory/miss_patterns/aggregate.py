from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Sequence

from .constants import FREQUENCY_THRESHOLD, MIN_SHOTS_FOR_PATTERN
from .decay import decayed_confidence
from .models import UNSCOPED, MissDirection, MissPattern, PatternScope, Shot


def _ranking_key(pattern: MissPattern) -> tuple[float, int, int]:
    return (-pattern.decayed_confidence, -pattern.frequency, pattern.direction.rank)


def rank_patterns(patterns: Iterable[MissPattern]) -> list[MissPattern]:
    """Order by decayed confidence, then frequency, then direction order."""

    return sorted(patterns, key=_ranking_key)


def aggregate(
    shots: Sequence[Shot] | Iterable[Shot],
    now: datetime,
    scope: PatternScope = UNSCOPED,
    *,
    min_shots: int = MIN_SHOTS_FOR_PATTERN,
    frequency_threshold: float = FREQUENCY_THRESHOLD,
) -> list[MissPattern]:
    """Derive ranked miss patterns from ``shots`` as seen at ``now``.

    The input is treated as the whole population; window selection happens
    upstream. Only shots matching ``scope`` participate and the scoped
    population size is the denominator for every direction. A population
    smaller than ``min_shots`` yields no patterns, and a direction whose raw
    share is under ``frequency_threshold`` is dropped before decay is applied.
    """

    population = [shot for shot in shots if scope.matches(shot)]
    sample_size = len(population)
    if sample_size < min_shots:
        return []

    counts: dict[MissDirection, int] = defaultdict(int)
    latest: dict[MissDirection, datetime] = {}
    for shot in population:
        direction = shot.miss_direction
        counts[direction] += 1
        seen = latest.get(direction)
        if seen is None or shot.timestamp > seen:
            latest[direction] = shot.timestamp

    patterns: list[MissPattern] = []
    for direction, frequency in counts.items():
        raw_confidence = frequency / sample_size
        if raw_confidence < frequency_threshold:
            continue
        last_occurrence = latest[direction]
        patterns.append(
            MissPattern(
                direction=direction,
                frequency=frequency,
                sample_size=sample_size,
                raw_confidence=raw_confidence,
                decayed_confidence=decayed_confidence(
                    raw_confidence, now, last_occurrence
                ),
                last_occurrence=last_occurrence,
                scope=scope,
            )
        )

    return rank_patterns(patterns)


class MissPatternAggregator:
    """Aggregator bound to a set of thresholds."""

    def __init__(
        self,
        *,
        min_shots: int = MIN_SHOTS_FOR_PATTERN,
        frequency_threshold: float = FREQUENCY_THRESHOLD,
    ) -> None:
        self._min_shots = min_shots
        self._frequency_threshold = frequency_threshold

    def aggregate(
        self,
        shots: Sequence[Shot] | Iterable[Shot],
        now: datetime,
        scope: PatternScope = UNSCOPED,
    ) -> list[MissPattern]:
        return aggregate(
            shots,
            now,
            scope,
            min_shots=self._min_shots,
            frequency_threshold=self._frequency_threshold,
        )


__all__ = ["MissPatternAggregator", "aggregate", "rank_patterns"]
