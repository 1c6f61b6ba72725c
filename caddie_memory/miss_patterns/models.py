from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .constants import DEFAULT_MAX_SHOTS, DEFAULT_WINDOW_DAYS
from .decay import as_utc, decayed_confidence, is_within_window


class MissDirection(str, Enum):
    # Declaration order is the ranking tiebreak.
    STRAIGHT = "straight"
    PUSH = "push"
    PULL = "pull"
    SLICE = "slice"
    HOOK = "hook"
    FAT = "fat"
    THIN = "thin"

    @property
    def rank(self) -> int:
        return _DIRECTION_ORDER[self]


_DIRECTION_ORDER = {direction: index for index, direction in enumerate(MissDirection)}


class Lie(str, Enum):
    TEE = "tee"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    BUNKER = "bunker"
    GREEN = "green"
    FRINGE = "fringe"
    HAZARD = "hazard"


class Shot(BaseModel):
    """A recorded shot. Immutable once created."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime
    club_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("club_id", "clubId", "club"),
        serialization_alias="clubId",
    )
    miss_direction: MissDirection = Field(
        validation_alias=AliasChoices("miss_direction", "missDirection", "direction"),
        serialization_alias="missDirection",
    )
    lie: Lie = Lie.FAIRWAY
    pressure_flag: bool = Field(
        default=False,
        validation_alias=AliasChoices("pressure_flag", "pressureFlag", "pressure"),
        serialization_alias="pressureFlag",
    )
    hole_number: Optional[int] = Field(
        default=None,
        ge=1,
        le=27,
        validation_alias=AliasChoices("hole_number", "holeNumber"),
        serialization_alias="holeNumber",
    )
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Unscoped(BaseModel):
    kind: Literal["all"] = "all"

    model_config = ConfigDict(frozen=True)

    @property
    def club_id(self) -> str | None:
        return None

    @property
    def pressure_context(self) -> bool | None:
        return None

    def matches(self, shot: Shot) -> bool:
        return True


class ByClub(BaseModel):
    kind: Literal["club"] = "club"
    club_id: str = Field(min_length=1, alias="clubId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def pressure_context(self) -> bool | None:
        return None

    def matches(self, shot: Shot) -> bool:
        return shot.club_id == self.club_id


class ByPressure(BaseModel):
    kind: Literal["pressure"] = "pressure"

    model_config = ConfigDict(frozen=True)

    @property
    def club_id(self) -> str | None:
        return None

    @property
    def pressure_context(self) -> bool | None:
        return True

    def matches(self, shot: Shot) -> bool:
        return shot.pressure_flag


class ByClubAndPressure(BaseModel):
    kind: Literal["club_pressure"] = "club_pressure"
    club_id: str = Field(min_length=1, alias="clubId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def pressure_context(self) -> bool | None:
        return True

    def matches(self, shot: Shot) -> bool:
        return shot.pressure_flag and shot.club_id == self.club_id


PatternScope = Union[Unscoped, ByClub, ByPressure, ByClubAndPressure]

UNSCOPED = Unscoped()
BY_PRESSURE = ByPressure()


class MissPattern(BaseModel):
    """A ranked tendency derived from a window of shots.

    ``raw_confidence`` is the share of the scoped population that missed in
    ``direction``; ``decayed_confidence`` is that share discounted by the age
    of the freshest contributing shot. Patterns are never edited in place:
    :meth:`with_decay` returns a new value.
    """

    direction: MissDirection
    frequency: int = Field(ge=1)
    sample_size: int = Field(ge=1, alias="sampleSize")
    raw_confidence: float = Field(ge=0.0, le=1.0, alias="rawConfidence")
    decayed_confidence: float = Field(ge=0.0, le=1.0, alias="decayedConfidence")
    last_occurrence: datetime = Field(alias="lastOccurrence")
    scope: PatternScope = Field(default_factory=Unscoped, discriminator="kind")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("last_occurrence")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_bounds(self) -> "MissPattern":
        if self.frequency > self.sample_size:
            raise ValueError("frequency cannot exceed sample_size")
        if self.decayed_confidence > self.raw_confidence:
            raise ValueError("decayed_confidence cannot exceed raw_confidence")
        return self

    @property
    def club_id(self) -> str | None:
        return self.scope.club_id

    @property
    def pressure_context(self) -> bool | None:
        return self.scope.pressure_context

    @property
    def dedupe_key(self) -> tuple[MissDirection, str, str | None]:
        return (self.direction, self.scope.kind, self.scope.club_id)

    def with_decay(self, now: datetime) -> "MissPattern":
        decayed = decayed_confidence(self.raw_confidence, now, self.last_occurrence)
        return self.model_copy(update={"decayed_confidence": decayed})


@dataclass(frozen=True)
class ShotWindow:
    """Recency bound applied before a population reaches the aggregator."""

    days: int = DEFAULT_WINDOW_DAYS
    max_shots: int | None = DEFAULT_MAX_SHOTS

    def since(self, now: datetime) -> datetime:
        return as_utc(now) - timedelta(days=self.days)

    def apply(self, shots: Iterable[Shot], now: datetime) -> list[Shot]:
        recent = [shot for shot in shots if is_within_window(shot.timestamp, self.days, now)]
        recent.sort(key=lambda shot: shot.timestamp, reverse=True)
        if self.max_shots is not None:
            recent = recent[: self.max_shots]
        return recent


__all__ = [
    "BY_PRESSURE",
    "ByClub",
    "ByClubAndPressure",
    "ByPressure",
    "Lie",
    "MissDirection",
    "MissPattern",
    "PatternScope",
    "Shot",
    "ShotWindow",
    "UNSCOPED",
    "Unscoped",
]
