from __future__ import annotations

import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional

from caddie_memory.config import get_settings

from .decay import as_utc
from .models import UNSCOPED, Lie, MissDirection, MissPattern, Shot, ShotWindow
from .pattern_store import PatternStoreAdapter
from .recorder import ShotListener, ShotRecorder
from .stores import (
    Clock,
    FilePatternStore,
    FileShotStore,
    InMemoryPatternStore,
    InMemoryShotStore,
    PatternStore,
    ShotStore,
    StoreUnavailableError,
    SystemClock,
)

_logger = logging.getLogger("caddie_memory.miss_patterns.service")


class MissPatternService:
    """Facade combining shot recording and pattern retrieval."""

    def __init__(
        self,
        shot_store: ShotStore | None = None,
        pattern_store: PatternStore | None = None,
        *,
        clock: Clock | None = None,
        window: ShotWindow | None = None,
        retention_days: int | None = None,
        on_recorded: ShotListener | None = None,
    ) -> None:
        settings = get_settings()
        self._shot_store = shot_store or InMemoryShotStore()
        self._pattern_store = pattern_store or InMemoryPatternStore()
        self._clock = clock or SystemClock()
        self._retention_days = retention_days or settings.retention_days
        self._recorder = ShotRecorder(
            self._shot_store, clock=self._clock, on_recorded=on_recorded
        )
        self._adapter = PatternStoreAdapter(
            self._shot_store,
            self._pattern_store,
            clock=self._clock,
            window=window
            or ShotWindow(days=settings.window_days, max_shots=settings.max_shots),
        )

    @property
    def recorder(self) -> ShotRecorder:
        return self._recorder

    @property
    def patterns(self) -> PatternStoreAdapter:
        return self._adapter

    # Shot recording
    def record_shot(self, shot: Shot) -> Shot:
        try:
            return self._recorder.record_shot(shot)
        except StoreUnavailableError:
            _logger.warning("shot store unavailable; shot %s not recorded", shot.id)
            raise

    def record_miss(
        self,
        club_id: str,
        direction: MissDirection | str,
        *,
        lie: Lie | str = Lie.FAIRWAY,
        pressure_flag: bool = False,
        hole_number: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Shot:
        try:
            return self._recorder.record_miss(
                club_id,
                direction,
                lie=lie,
                pressure_flag=pressure_flag,
                hole_number=hole_number,
                notes=notes,
            )
        except StoreUnavailableError:
            _logger.warning("shot store unavailable; miss for %s not recorded", club_id)
            raise

    # Pattern retrieval
    def get_patterns(
        self,
        club_id: str | None = None,
        *,
        pressure: bool = False,
        now: datetime | None = None,
    ) -> List[MissPattern]:
        try:
            if club_id is not None and pressure:
                return self._adapter.get_patterns_for_club_and_pressure(club_id, now)
            if club_id is not None:
                return self._adapter.get_patterns_for_club(club_id, now)
            if pressure:
                return self._adapter.get_patterns_for_pressure(now)
            return self._adapter.get_recent_patterns(now)
        except StoreUnavailableError:
            _logger.warning(
                "shot store unavailable; cannot aggregate patterns (club=%s, pressure=%s)",
                club_id,
                pressure,
            )
            raise

    def get_patterns_for_club(
        self, club_id: str, now: datetime | None = None
    ) -> List[MissPattern]:
        return self.get_patterns(club_id, now=now)

    def get_patterns_for_pressure(self, now: datetime | None = None) -> List[MissPattern]:
        return self.get_patterns(pressure=True, now=now)

    def get_patterns_with_decay(self, now: datetime | None = None) -> List[MissPattern]:
        try:
            return self._adapter.get_patterns_with_decay(now)
        except StoreUnavailableError:
            _logger.warning("pattern store unavailable; cannot load cached patterns")
            raise

    def get_dominant_pattern(
        self,
        club_id: str | None = None,
        *,
        pressure: bool = False,
        now: datetime | None = None,
    ) -> MissPattern | None:
        patterns = self.get_patterns(club_id, pressure=pressure, now=now)
        return patterns[0] if patterns else None

    # Shot history
    def get_recent_shots(self, count: int, now: datetime | None = None) -> List[Shot]:
        try:
            return self._recorder.get_recent_shots(
                count, days=self._retention_days, now=now
            )
        except StoreUnavailableError:
            _logger.warning("shot store unavailable; cannot read recent shots")
            raise

    def get_shots_by_club(self, club_id: str, limit: int | None = None) -> List[Shot]:
        try:
            return self._recorder.get_shots_by_club(club_id, limit)
        except StoreUnavailableError:
            _logger.warning("shot store unavailable; cannot read shots for %s", club_id)
            raise

    def get_pressure_shots_by_club(
        self, club_id: str, limit: int | None = None
    ) -> List[Shot]:
        try:
            return self._recorder.get_pressure_shots_by_club(club_id, limit)
        except StoreUnavailableError:
            _logger.warning(
                "shot store unavailable; cannot read pressure shots for %s", club_id
            )
            raise

    # Memory management
    def refresh_patterns(self, now: datetime | None = None) -> int:
        """Re-aggregate recent shots and persist the result for decay-on-read."""

        patterns = self._adapter.get_recent_patterns(now)
        self._pattern_store.replace_patterns(UNSCOPED, patterns)
        _logger.info("persisted %d refreshed patterns", len(patterns))
        return len(patterns)

    def clear_history(self) -> None:
        self._recorder.clear_history()
        self._pattern_store.clear()
        _logger.info("miss-pattern memory cleared")

    def enforce_retention_policy(self, now: datetime | None = None) -> int:
        current = as_utc(now if now is not None else self._clock.now())
        shots_deleted = self._recorder.enforce_retention_policy(
            self._retention_days, current
        )
        patterns_deleted = self._pattern_store.delete_before(
            current - timedelta(days=self._retention_days)
        )
        return shots_deleted + patterns_deleted


def build_miss_pattern_service() -> MissPatternService:
    settings = get_settings()
    if settings.store_backend == "file":
        data_dir = settings.data_dir.expanduser()
        return MissPatternService(FileShotStore(data_dir), FilePatternStore(data_dir))
    return MissPatternService()


@lru_cache(maxsize=1)
def get_miss_pattern_service() -> MissPatternService:
    return build_miss_pattern_service()


__all__ = [
    "MissPatternService",
    "build_miss_pattern_service",
    "get_miss_pattern_service",
]
