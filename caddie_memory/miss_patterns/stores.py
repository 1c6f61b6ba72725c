"""Collaborator interfaces consumed by the engine, with reference stores.

The engine only talks to :class:`ShotStore`, :class:`PatternStore` and
:class:`Clock`. The in-memory and JSON-file implementations below own their
locking; the pure aggregation code never does.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Protocol, Sequence

from pydantic import ValidationError

from .decay import as_utc
from .models import MissPattern, PatternScope, Shot

_logger = logging.getLogger("caddie_memory.miss_patterns.stores")


class MissPatternError(Exception):
    pass


class StoreUnavailableError(MissPatternError):
    """Raised when a shot or pattern store cannot be read or written."""


class ShotStore(Protocol):
    def get_recent_shots(
        self, *, since: datetime, limit: int | None = None
    ) -> Sequence[Shot]: ...

    def get_shots_by_club(self, club_id: str) -> Sequence[Shot]: ...

    def get_shots_with_pressure(self) -> Sequence[Shot]: ...

    def record_shot(self, shot: Shot) -> None: ...

    def delete_before(self, cutoff: datetime) -> int: ...

    def clear(self) -> None: ...


class PatternStore(Protocol):
    def get_persisted_patterns(self) -> Sequence[MissPattern]: ...

    def save_patterns(self, patterns: Iterable[MissPattern]) -> None: ...

    def replace_patterns(
        self, scope: PatternScope, patterns: Iterable[MissPattern]
    ) -> None: ...

    def delete_before(self, cutoff: datetime) -> int: ...

    def clear(self) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to an instant; tests move it with :meth:`advance`."""

    def __init__(self, instant: datetime) -> None:
        self._instant = as_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> datetime:
        self._instant = self._instant + delta
        return self._instant


def _newest_first(shots: Iterable[Shot]) -> List[Shot]:
    return sorted(shots, key=lambda shot: shot.timestamp, reverse=True)


def _take(shots: List[Shot], limit: int | None) -> List[Shot]:
    if limit is None:
        return shots
    return shots[: max(0, limit)]


def _scope_key(scope: PatternScope) -> tuple[str, str | None]:
    return (scope.kind, scope.club_id)


def _replace_scope(
    current: Iterable[MissPattern], scope: PatternScope, patterns: Iterable[MissPattern]
) -> List[MissPattern]:
    key = _scope_key(scope)
    kept = [p for p in current if _scope_key(p.scope) != key]
    return kept + list(patterns)


class InMemoryShotStore:
    def __init__(self, shots: Iterable[Shot] = ()) -> None:
        self._lock = threading.Lock()
        self._shots: List[Shot] = list(shots)

    def _snapshot(self) -> List[Shot]:
        with self._lock:
            return list(self._shots)

    def get_recent_shots(
        self, *, since: datetime, limit: int | None = None
    ) -> List[Shot]:
        recent = [shot for shot in self._snapshot() if shot.timestamp >= since]
        return _take(_newest_first(recent), limit)

    def get_shots_by_club(self, club_id: str) -> List[Shot]:
        return _newest_first(s for s in self._snapshot() if s.club_id == club_id)

    def get_shots_with_pressure(self) -> List[Shot]:
        return _newest_first(s for s in self._snapshot() if s.pressure_flag)

    def record_shot(self, shot: Shot) -> None:
        with self._lock:
            self._shots.append(shot)

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [shot for shot in self._shots if shot.timestamp >= cutoff]
            removed = len(self._shots) - len(kept)
            self._shots = kept
        return removed

    def clear(self) -> None:
        with self._lock:
            self._shots.clear()


class InMemoryPatternStore:
    def __init__(self, patterns: Iterable[MissPattern] = ()) -> None:
        self._lock = threading.Lock()
        self._patterns: List[MissPattern] = list(patterns)

    def get_persisted_patterns(self) -> List[MissPattern]:
        with self._lock:
            return list(self._patterns)

    def save_patterns(self, patterns: Iterable[MissPattern]) -> None:
        incoming = list(patterns)
        with self._lock:
            merged = {pattern.dedupe_key: pattern for pattern in self._patterns}
            for pattern in incoming:
                merged[pattern.dedupe_key] = pattern
            self._patterns = list(merged.values())

    def replace_patterns(
        self, scope: PatternScope, patterns: Iterable[MissPattern]
    ) -> None:
        incoming = list(patterns)
        with self._lock:
            self._patterns = _replace_scope(self._patterns, scope, incoming)

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [p for p in self._patterns if p.last_occurrence >= cutoff]
            removed = len(self._patterns) - len(kept)
            self._patterns = kept
        return removed

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()


def _write_text_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


class FileShotStore:
    """Append-only JSON-lines shot log."""

    def __init__(self, root: Path | str) -> None:
        self._path = Path(root).expanduser() / "shots.jsonl"
        self._lock = threading.Lock()

    def _read_all(self) -> List[Shot]:
        if not self._path.exists():
            return []
        shots: List[Shot] = []
        try:
            with self._path.open("rb") as handle:
                for raw_line in handle:
                    try:
                        line = raw_line.decode("utf-8").strip()
                        if not line:
                            continue
                        shots.append(Shot.model_validate(json.loads(line)))
                    except (ValueError, ValidationError):
                        _logger.warning("skipping unreadable shot record in %s", self._path)
                        continue
        except OSError as exc:
            raise StoreUnavailableError(f"cannot read {self._path}: {exc}") from exc
        return shots

    def get_recent_shots(
        self, *, since: datetime, limit: int | None = None
    ) -> List[Shot]:
        with self._lock:
            shots = self._read_all()
        recent = [shot for shot in shots if shot.timestamp >= since]
        return _take(_newest_first(recent), limit)

    def get_shots_by_club(self, club_id: str) -> List[Shot]:
        with self._lock:
            shots = self._read_all()
        return _newest_first(s for s in shots if s.club_id == club_id)

    def get_shots_with_pressure(self) -> List[Shot]:
        with self._lock:
            shots = self._read_all()
        return _newest_first(s for s in shots if s.pressure_flag)

    def record_shot(self, shot: Shot) -> None:
        line = json.dumps(shot.model_dump(mode="json", by_alias=True))
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
                    handle.write("\n")
            except OSError as exc:
                raise StoreUnavailableError(f"cannot append to {self._path}: {exc}") from exc

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            shots = self._read_all()
            kept = [shot for shot in shots if shot.timestamp >= cutoff]
            lines = "".join(
                json.dumps(shot.model_dump(mode="json", by_alias=True)) + "\n"
                for shot in kept
            )
            try:
                _write_text_atomic(self._path, lines)
            except OSError as exc:
                raise StoreUnavailableError(f"cannot rewrite {self._path}: {exc}") from exc
        return len(shots) - len(kept)

    def clear(self) -> None:
        with self._lock:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as exc:
                raise StoreUnavailableError(f"cannot remove {self._path}: {exc}") from exc


class FilePatternStore:
    """Pattern cache persisted as a single JSON document."""

    def __init__(self, root: Path | str) -> None:
        self._path = Path(root).expanduser() / "patterns.json"
        self._lock = threading.Lock()

    def _read_all(self) -> List[MissPattern]:
        if not self._path.exists():
            return []
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            _logger.warning("pattern cache %s is not valid JSON; ignoring", self._path)
            return []
        except OSError as exc:
            raise StoreUnavailableError(f"cannot read {self._path}: {exc}") from exc

        entries = payload.get("patterns") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            _logger.warning("pattern cache %s has no pattern list; ignoring", self._path)
            return []

        patterns: List[MissPattern] = []
        for raw in entries:
            try:
                patterns.append(MissPattern.model_validate(raw))
            except ValidationError:
                continue
        return patterns

    def _write_all(self, patterns: List[MissPattern]) -> None:
        payload = {
            "patterns": [
                pattern.model_dump(mode="json", by_alias=True) for pattern in patterns
            ]
        }
        try:
            _write_text_atomic(self._path, json.dumps(payload, indent=2, sort_keys=True))
        except OSError as exc:
            raise StoreUnavailableError(f"cannot write {self._path}: {exc}") from exc

    def get_persisted_patterns(self) -> List[MissPattern]:
        with self._lock:
            return self._read_all()

    def save_patterns(self, patterns: Iterable[MissPattern]) -> None:
        incoming = list(patterns)
        with self._lock:
            merged = {pattern.dedupe_key: pattern for pattern in self._read_all()}
            for pattern in incoming:
                merged[pattern.dedupe_key] = pattern
            self._write_all(list(merged.values()))

    def replace_patterns(
        self, scope: PatternScope, patterns: Iterable[MissPattern]
    ) -> None:
        incoming = list(patterns)
        with self._lock:
            self._write_all(_replace_scope(self._read_all(), scope, incoming))

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            patterns = self._read_all()
            kept = [p for p in patterns if p.last_occurrence >= cutoff]
            if len(kept) != len(patterns):
                self._write_all(kept)
        return len(patterns) - len(kept)

    def clear(self) -> None:
        with self._lock:
            self._write_all([])


__all__ = [
    "Clock",
    "FilePatternStore",
    "FileShotStore",
    "FixedClock",
    "InMemoryPatternStore",
    "InMemoryShotStore",
    "MissPatternError",
    "PatternStore",
    "ShotStore",
    "StoreUnavailableError",
    "SystemClock",
]
