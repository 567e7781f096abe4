"""Fatigue engine value types.

FatigueValues is the unit every component speaks: one non-negative float per
fatigue channel. Events and timelines are derived views recomputed on demand
from a snapshot of stored sessions and external activities; they are never
persisted themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

CHANNELS: tuple[str, str, str] = ("lower", "upper", "systemic")


class FatigueValues(BaseModel):
    """Per-channel fatigue (instantaneous sample or accumulated residual).

    Negative and non-finite inputs are clamped to 0 so no channel can ever go
    below the recovered baseline.
    """

    model_config = ConfigDict(frozen=True)

    lower: float = 0.0
    upper: float = 0.0
    systemic: float = 0.0

    @field_validator("lower", "upper", "systemic", mode="before")
    @classmethod
    def clamp_non_negative(cls, value: object) -> float:
        try:
            v = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(v) or v < 0.0:
            return 0.0
        if math.isinf(v):
            return 0.0
        return v

    def __add__(self, other: FatigueValues) -> FatigueValues:
        return FatigueValues(
            lower=self.lower + other.lower,
            upper=self.upper + other.upper,
            systemic=self.systemic + other.systemic,
        )

    def scaled(self, factor: float) -> FatigueValues:
        return FatigueValues(
            lower=self.lower * factor,
            upper=self.upper * factor,
            systemic=self.systemic * factor,
        )

    def channel(self, name: str) -> float:
        return float(getattr(self, name))

    def is_zero(self) -> bool:
        return self.lower == 0.0 and self.upper == 0.0 and self.systemic == 0.0


ZERO = FatigueValues()


class SourceKind(StrEnum):
    WORKOUT = "workout"
    EXTERNAL_ACTIVITY = "external_activity"


@dataclass(frozen=True)
class FatigueEvent:
    """A single training event placed on the timeline.

    Attributes:
        timestamp: Timezone-aware instant at which the contribution lands
        contribution: Raw per-channel fatigue added at that instant
        source_kind: Whether the event came from a logged workout or a synced activity
        source_id: Session id or external activity id
    """

    timestamp: datetime
    contribution: FatigueValues
    source_kind: SourceKind
    source_id: str


@dataclass(frozen=True)
class FatigueTimeline:
    """Fixed-cadence fatigue series over a trailing window.

    Attributes:
        graph_points: Ordered (timestamp, values) samples, strictly increasing
        daily_end_values: Calendar day (YYYY-MM-DD, local) -> last sample of that day
        window_start: First sample instant (local midnight of the first day)
        window_end: The "now" the timeline was built for
        event_count: Number of events applied inside the window
        skipped_events: Number of events dropped because their timestamp was unusable
    """

    graph_points: tuple[tuple[datetime, FatigueValues], ...]
    daily_end_values: dict[str, FatigueValues]
    window_start: datetime
    window_end: datetime
    event_count: int = 0
    skipped_events: int = 0

    @property
    def has_data(self) -> bool:
        """False when no event fell inside the window ("never trained" != "fully recovered")."""
        return self.event_count > 0

    @property
    def latest(self) -> FatigueValues:
        if not self.graph_points:
            return ZERO
        return self.graph_points[-1][1]
