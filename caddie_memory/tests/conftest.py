"""Shared pytest fixtures for miss-pattern tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from caddie_memory.config import reset_settings_cache
from caddie_memory.miss_patterns import (
    FixedClock,
    InMemoryPatternStore,
    InMemoryShotStore,
    Lie,
    MissDirection,
    Shot,
)
from caddie_memory.miss_patterns import telemetry
from caddie_memory.miss_patterns.service import get_miss_pattern_service

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

ShotFactory = Callable[..., Shot]


@pytest.fixture(autouse=True)
def _reset_caches():
    reset_settings_cache()
    get_miss_pattern_service.cache_clear()
    telemetry.set_miss_pattern_telemetry_emitter(None)
    yield
    reset_settings_cache()
    get_miss_pattern_service.cache_clear()
    telemetry.set_miss_pattern_telemetry_emitter(None)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def shot_store() -> InMemoryShotStore:
    return InMemoryShotStore()


@pytest.fixture
def pattern_store() -> InMemoryPatternStore:
    return InMemoryPatternStore()


@pytest.fixture
def make_shot() -> ShotFactory:
    counter = {"value": 0}

    def _build(
        direction: MissDirection | str = MissDirection.SLICE,
        *,
        club_id: str = "7-iron",
        age: timedelta = timedelta(hours=1),
        pressure: bool = False,
        lie: Lie = Lie.FAIRWAY,
    ) -> Shot:
        counter["value"] += 1
        return Shot(
            id=f"shot-{counter['value']}",
            timestamp=NOW - age,
            club_id=club_id,
            miss_direction=direction,
            lie=lie,
            pressure_flag=pressure,
        )

    return _build


@pytest.fixture
def events() -> list[tuple[str, dict]]:
    captured: list[tuple[str, dict]] = []
    telemetry.set_miss_pattern_telemetry_emitter(
        lambda name, payload: captured.append((name, dict(payload)))
    )
    return captured
