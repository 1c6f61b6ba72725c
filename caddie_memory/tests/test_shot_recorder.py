from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from caddie_memory.miss_patterns import (
    InMemoryShotStore,
    Lie,
    MissDirection,
    Shot,
    ShotRecorder,
    StoreUnavailableError,
)


class _UnavailableStore(InMemoryShotStore):
    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    def record_shot(self, shot: Shot) -> None:
        self.attempts += 1
        raise StoreUnavailableError("disk full")


def test_record_shot_appends_to_store(make_shot, shot_store, clock, now) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)
    shot = make_shot(MissDirection.HOOK, club_id="driver")

    returned = recorder.record_shot(shot)

    assert returned is shot
    assert shot_store.get_shots_by_club("driver") == [shot]


def test_record_miss_stamps_with_clock(shot_store, clock, now) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)

    shot = recorder.record_miss(
        "7-iron", "slice", lie=Lie.ROUGH, pressure_flag=True, hole_number=7
    )

    assert shot.timestamp == now
    assert shot.miss_direction is MissDirection.SLICE
    assert shot.lie is Lie.ROUGH
    assert shot.pressure_flag is True
    assert shot_store.get_shots_with_pressure() == [shot]


def test_store_failure_propagates_without_retry(make_shot, clock) -> None:
    store = _UnavailableStore()
    recorder = ShotRecorder(store, clock=clock)

    with pytest.raises(StoreUnavailableError):
        recorder.record_shot(make_shot())

    assert store.attempts == 1


def test_listener_called_only_after_successful_write(make_shot, shot_store, clock) -> None:
    seen: list[Shot] = []
    recorder = ShotRecorder(shot_store, clock=clock, on_recorded=seen.append)
    shot = make_shot()

    recorder.record_shot(shot)

    assert seen == [shot]

    failing = ShotRecorder(_UnavailableStore(), clock=clock, on_recorded=seen.append)
    with pytest.raises(StoreUnavailableError):
        failing.record_shot(make_shot())
    assert seen == [shot]


def test_invalid_direction_rejected_at_construction(shot_store, clock) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)

    with pytest.raises(ValidationError):
        recorder.record_miss("7-iron", "shank")

    assert shot_store.get_shots_by_club("7-iron") == []


def test_enforce_retention_policy(make_shot, shot_store, clock) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)
    recorder.record_shot(make_shot(age=timedelta(days=120)))
    keep = recorder.record_shot(make_shot(age=timedelta(days=10)))

    removed = recorder.enforce_retention_policy(90)

    assert removed == 1
    assert shot_store.get_shots_by_club("7-iron") == [keep]


def test_clear_history(make_shot, shot_store, clock) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)
    recorder.record_shot(make_shot())

    recorder.clear_history()

    assert shot_store.get_shots_by_club("7-iron") == []


def test_recording_emits_telemetry(make_shot, shot_store, clock, events) -> None:
    ShotRecorder(shot_store, clock=clock).record_shot(
        make_shot(MissDirection.PUSH, club_id="driver", pressure=True)
    )

    name, payload = events[-1]
    assert name == "shot.recorded"
    assert payload["clubId"] == "driver"
    assert payload["direction"] == "push"
    assert payload["pressure"] is True


def test_shot_history_reads_respect_limits(make_shot, shot_store, clock) -> None:
    recorder = ShotRecorder(shot_store, clock=clock)
    newest = recorder.record_shot(make_shot(MissDirection.HOOK, age=timedelta(hours=1)))
    recorder.record_shot(
        make_shot(MissDirection.SLICE, age=timedelta(hours=2), pressure=True)
    )
    recorder.record_shot(make_shot(MissDirection.FAT, age=timedelta(days=100)))
    recorder.record_shot(
        make_shot(MissDirection.PUSH, club_id="driver", age=timedelta(hours=3), pressure=True)
    )

    assert recorder.get_recent_shots(1) == [newest]
    assert len(recorder.get_recent_shots(10)) == 3
    assert len(recorder.get_recent_shots(10, days=365)) == 4
    assert recorder.get_recent_shots(0) == []
    assert [s.miss_direction for s in recorder.get_shots_by_club("7-iron", 2)] == [
        MissDirection.HOOK,
        MissDirection.SLICE,
    ]
    assert len(recorder.get_shots_by_club("7-iron")) == 3
    assert [s.miss_direction for s in recorder.get_pressure_shots_by_club("7-iron")] == [
        MissDirection.SLICE
    ]
