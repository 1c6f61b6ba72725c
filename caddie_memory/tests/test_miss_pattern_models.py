from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from caddie_memory.miss_patterns import (
    BY_PRESSURE,
    ByClub,
    MissDirection,
    MissPattern,
    Shot,
    ShotWindow,
)


def test_shot_accepts_camel_case_payload() -> None:
    shot = Shot.model_validate(
        {
            "id": "s1",
            "timestamp": "2024-06-01T10:00:00Z",
            "clubId": "7-iron",
            "missDirection": "slice",
            "lie": "rough",
            "pressureFlag": True,
        }
    )

    assert shot.club_id == "7-iron"
    assert shot.miss_direction is MissDirection.SLICE
    assert shot.timestamp == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    assert shot.pressure_flag is True


def test_naive_timestamp_treated_as_utc() -> None:
    shot = Shot(
        timestamp=datetime(2024, 6, 1, 10, 0),
        club_id="pw",
        miss_direction=MissDirection.FAT,
    )

    assert shot.timestamp.tzinfo is not None
    assert shot.timestamp.utcoffset() == timedelta(0)


def test_shot_requires_direction_and_timestamp() -> None:
    with pytest.raises(ValidationError):
        Shot(timestamp=datetime.now(timezone.utc), club_id="pw")
    with pytest.raises(ValidationError):
        Shot(club_id="pw", miss_direction=MissDirection.FAT)


def test_shot_is_immutable() -> None:
    shot = Shot(
        timestamp=datetime.now(timezone.utc),
        club_id="pw",
        miss_direction=MissDirection.THIN,
    )

    with pytest.raises(ValidationError):
        shot.club_id = "9-iron"


def test_pattern_rejects_decayed_above_raw(now) -> None:
    with pytest.raises(ValidationError):
        MissPattern(
            direction=MissDirection.SLICE,
            frequency=4,
            sample_size=10,
            raw_confidence=0.4,
            decayed_confidence=0.5,
            last_occurrence=now,
        )


def test_pattern_rejects_frequency_above_sample(now) -> None:
    with pytest.raises(ValidationError):
        MissPattern(
            direction=MissDirection.SLICE,
            frequency=11,
            sample_size=10,
            raw_confidence=1.0,
            decayed_confidence=1.0,
            last_occurrence=now,
        )


def test_pattern_serialises_scope_variant(now) -> None:
    pattern = MissPattern(
        direction=MissDirection.HOOK,
        frequency=3,
        sample_size=5,
        raw_confidence=0.6,
        decayed_confidence=0.6,
        last_occurrence=now,
        scope=ByClub(club_id="driver"),
    )

    payload = pattern.model_dump(mode="json", by_alias=True)

    assert payload["sampleSize"] == 5
    assert payload["scope"] == {"kind": "club", "clubId": "driver"}
    assert MissPattern.model_validate(payload) == pattern


def test_with_decay_returns_new_value(now) -> None:
    pattern = MissPattern(
        direction=MissDirection.PULL,
        frequency=3,
        sample_size=3,
        raw_confidence=1.0,
        decayed_confidence=1.0,
        last_occurrence=now - timedelta(days=14),
        scope=BY_PRESSURE,
    )

    refreshed = pattern.with_decay(now)

    assert refreshed is not pattern
    assert pattern.decayed_confidence == 1.0
    assert refreshed.decayed_confidence == pytest.approx(0.5)
    assert refreshed.pressure_context is True


def test_shot_window_keeps_newest(make_shot, now) -> None:
    shots = [make_shot(age=timedelta(days=d)) for d in (1, 3, 2, 40)]

    windowed = ShotWindow(days=30, max_shots=2).apply(shots, now)

    assert [s.timestamp for s in windowed] == [
        now - timedelta(days=1),
        now - timedelta(days=2),
    ]
