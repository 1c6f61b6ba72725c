from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Sequence

from . import telemetry
from .aggregate import MissPatternAggregator, rank_patterns
from .constants import RETENTION_FLOOR
from .decay import as_utc
from .models import (
    BY_PRESSURE,
    UNSCOPED,
    ByClub,
    ByClubAndPressure,
    MissPattern,
    PatternScope,
    Shot,
    ShotWindow,
)
from .stores import Clock, PatternStore, ShotStore, SystemClock

_logger = logging.getLogger("caddie_memory.miss_patterns.pattern_store")


class PatternStoreAdapter:
    """Read side of the engine.

    Cached patterns are re-decayed against the caller's ``now`` on every read
    and nothing is written back, so repeated reads at the same instant agree.
    Scoped queries go back to the shot store and re-aggregate.
    """

    def __init__(
        self,
        shot_store: ShotStore,
        pattern_store: PatternStore,
        *,
        clock: Clock | None = None,
        window: ShotWindow | None = None,
        aggregator: MissPatternAggregator | None = None,
        retention_floor: float = RETENTION_FLOOR,
    ) -> None:
        self._shot_store = shot_store
        self._pattern_store = pattern_store
        self._clock = clock or SystemClock()
        self._window = window or ShotWindow()
        self._aggregator = aggregator or MissPatternAggregator()
        self._retention_floor = retention_floor

    @property
    def window(self) -> ShotWindow:
        return self._window

    def _resolve_now(self, now: datetime | None) -> datetime:
        return as_utc(now if now is not None else self._clock.now())

    def get_patterns_with_decay(self, now: datetime | None = None) -> List[MissPattern]:
        current = self._resolve_now(now)
        persisted = self._pattern_store.get_persisted_patterns()
        refreshed = [pattern.with_decay(current) for pattern in persisted]
        retained = [
            pattern
            for pattern in refreshed
            if pattern.decayed_confidence >= self._retention_floor
        ]
        telemetry.record_patterns_decayed(loaded=len(persisted), retained=len(retained))
        return rank_patterns(retained)

    def _aggregate_window(
        self, shots: Sequence[Shot], now: datetime, scope: PatternScope
    ) -> List[MissPattern]:
        windowed = self._window.apply((s for s in shots if scope.matches(s)), now)
        patterns = self._aggregator.aggregate(windowed, now, scope)
        sample_size = len(windowed)
        _logger.debug(
            "aggregated %d patterns for scope=%s from %d shots",
            len(patterns),
            scope.kind,
            sample_size,
        )
        telemetry.record_patterns_aggregated(
            scope.kind,
            sample_size=sample_size,
            pattern_count=len(patterns),
            club_id=scope.club_id,
        )
        return patterns

    def get_recent_patterns(self, now: datetime | None = None) -> List[MissPattern]:
        current = self._resolve_now(now)
        shots = self._shot_store.get_recent_shots(
            since=self._window.since(current), limit=self._window.max_shots
        )
        return self._aggregate_window(shots, current, UNSCOPED)

    def get_patterns_for_club(
        self, club_id: str, now: datetime | None = None
    ) -> List[MissPattern]:
        current = self._resolve_now(now)
        shots = self._shot_store.get_shots_by_club(club_id)
        return self._aggregate_window(shots, current, ByClub(club_id=club_id))

    def get_patterns_for_pressure(self, now: datetime | None = None) -> List[MissPattern]:
        current = self._resolve_now(now)
        shots = self._shot_store.get_shots_with_pressure()
        return self._aggregate_window(shots, current, BY_PRESSURE)

    def get_patterns_for_club_and_pressure(
        self, club_id: str, now: datetime | None = None
    ) -> List[MissPattern]:
        current = self._resolve_now(now)
        shots = self._shot_store.get_shots_by_club(club_id)
        return self._aggregate_window(
            shots, current, ByClubAndPressure(club_id=club_id)
        )


__all__ = ["PatternStoreAdapter"]
