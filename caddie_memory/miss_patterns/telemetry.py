"""Telemetry helpers for miss-pattern engine instrumentation."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Mapping, MutableMapping, Optional

MissPatternTelemetryEmitter = Callable[[str, Mapping[str, object]], None]

_emitter: Optional[MissPatternTelemetryEmitter] = None
_logger = logging.getLogger("caddie_memory.miss_patterns.telemetry")


def set_miss_pattern_telemetry_emitter(
    candidate: MissPatternTelemetryEmitter | None,
) -> None:
    """Register a telemetry emitter used for engine instrumentation."""

    global _emitter
    _emitter = candidate if callable(candidate) else None


def _now_ms() -> int:
    return int(time.time() * 1000)


def _safe_emit(event: str, payload: MutableMapping[str, object]) -> None:
    if not _emitter:
        _logger.debug("telemetry emitter not configured for event %s", event)
        return
    try:
        _emitter(event, dict(payload))
    except Exception:
        _logger.exception("failed to emit telemetry event %s", event)


def record_shot_recorded(
    shot_id: str, club_id: str, direction: str, *, pressure: bool
) -> None:
    payload: Dict[str, object] = {
        "shotId": shot_id,
        "clubId": club_id,
        "direction": direction,
        "pressure": pressure,
        "ts": _now_ms(),
    }
    _safe_emit("shot.recorded", payload)


def record_patterns_aggregated(
    scope: str,
    *,
    sample_size: int,
    pattern_count: int,
    club_id: str | None = None,
) -> None:
    payload: Dict[str, object] = {
        "scope": scope,
        "sampleSize": int(sample_size),
        "patternCount": int(pattern_count),
        "ts": _now_ms(),
    }
    if club_id:
        payload["clubId"] = club_id
    _safe_emit("patterns.aggregated", payload)


def record_patterns_decayed(*, loaded: int, retained: int) -> None:
    payload: Dict[str, object] = {
        "loaded": int(loaded),
        "retained": int(retained),
        "dropped": max(0, int(loaded) - int(retained)),
        "ts": _now_ms(),
    }
    _safe_emit("patterns.decayed", payload)


__all__ = [
    "MissPatternTelemetryEmitter",
    "record_patterns_aggregated",
    "record_patterns_decayed",
    "record_shot_recorded",
    "set_miss_pattern_telemetry_emitter",
]
