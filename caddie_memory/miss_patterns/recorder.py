from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from . import telemetry
from .constants import DEFAULT_RETENTION_DAYS
from .decay import as_utc
from .models import Lie, MissDirection, Shot
from .stores import Clock, ShotStore, SystemClock

ShotListener = Callable[[Shot], None]

_logger = logging.getLogger("caddie_memory.miss_patterns.recorder")


class ShotRecorder:
    """Write path for shots.

    Persistence is delegated to the shot store and its failures propagate
    unchanged; patterns are not recomputed here. ``on_recorded`` is called
    after a successful write so a host can schedule re-aggregation.
    """

    def __init__(
        self,
        shot_store: ShotStore,
        *,
        clock: Clock | None = None,
        on_recorded: ShotListener | None = None,
    ) -> None:
        self._shot_store = shot_store
        self._clock = clock or SystemClock()
        self._on_recorded = on_recorded

    def record_shot(self, shot: Shot) -> Shot:
        self._shot_store.record_shot(shot)
        _logger.debug(
            "recorded shot %s (%s, %s)", shot.id, shot.club_id, shot.miss_direction.value
        )
        telemetry.record_shot_recorded(
            shot.id,
            shot.club_id,
            shot.miss_direction.value,
            pressure=shot.pressure_flag,
        )
        if self._on_recorded is not None:
            self._on_recorded(shot)
        return shot

    def record_miss(
        self,
        club_id: str,
        direction: MissDirection | str,
        *,
        lie: Lie | str = Lie.FAIRWAY,
        pressure_flag: bool = False,
        hole_number: Optional[int] = None,
        notes: Optional[str] = None,
        timestamp: datetime | None = None,
    ) -> Shot:
        shot = Shot(
            timestamp=timestamp or self._clock.now(),
            club_id=club_id,
            miss_direction=direction,
            lie=lie,
            pressure_flag=pressure_flag,
            hole_number=hole_number,
            notes=notes,
        )
        return self.record_shot(shot)

    # Shot history
    def get_recent_shots(
        self,
        count: int,
        *,
        days: int = DEFAULT_RETENTION_DAYS,
        now: datetime | None = None,
    ) -> List[Shot]:
        """Return up to ``count`` shots from the last ``days`` days, newest first."""

        current = as_utc(now if now is not None else self._clock.now())
        return list(
            self._shot_store.get_recent_shots(
                since=current - timedelta(days=days), limit=max(0, count)
            )
        )

    def get_shots_by_club(self, club_id: str, limit: int | None = None) -> List[Shot]:
        shots = list(self._shot_store.get_shots_by_club(club_id))
        return shots if limit is None else shots[: max(0, limit)]

    def get_pressure_shots_by_club(
        self, club_id: str, limit: int | None = None
    ) -> List[Shot]:
        shots = [s for s in self._shot_store.get_shots_by_club(club_id) if s.pressure_flag]
        return shots if limit is None else shots[: max(0, limit)]

    def clear_history(self) -> None:
        self._shot_store.clear()

    def enforce_retention_policy(
        self,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        now: datetime | None = None,
    ) -> int:
        current = as_utc(now if now is not None else self._clock.now())
        removed = self._shot_store.delete_before(current - timedelta(days=retention_days))
        if removed:
            _logger.info("retention policy removed %d shots", removed)
        return removed


__all__ = ["ShotListener", "ShotRecorder"]
