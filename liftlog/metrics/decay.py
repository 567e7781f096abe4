"""Fatigue decay model.

Each channel recovers with an exponential half-life law:

    value(t) = value(0) * 0.5 ** (hours(t) * recovery_speed_multiplier / half_life_hours[channel])

Properties:
- decay(v, 0) == v
- Non-increasing in elapsed time, never negative, tends to 0
- Negative elapsed time is treated as zero

Two rendering modes exist. SMOOTH is the continuous curve and is the only mode
used for current reads. RAMP is a display interpolation: samples strictly
inside the lookahead window before an upcoming event rise linearly from the
smooth value at the ramp anchor to the post-event peak.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from enum import StrEnum

from liftlog.metrics.types import CHANNELS, FatigueValues
from liftlog.models.readiness_config import Calibration


class DecayMode(StrEnum):
    SMOOTH = "smooth"
    RAMP = "ramp"


def _hours(elapsed: timedelta) -> float:
    return max(elapsed.total_seconds(), 0.0) / 3600.0


class DecayModel:
    """Exponential per-channel decay parameterized by calibration constants."""

    def __init__(self, calibration: Calibration | None = None) -> None:
        self.calibration = calibration or Calibration()

    @property
    def ramp_lookahead(self) -> timedelta:
        return timedelta(minutes=self.calibration.ramp_lookahead_minutes)

    def decay(
        self,
        value: float,
        elapsed: timedelta,
        recovery_speed_multiplier: float = 1.0,
        channel: str = "systemic",
    ) -> float:
        """Decay one channel value over an elapsed duration.

        Args:
            value: Fatigue at the start of the interval
            elapsed: Interval length (negative is treated as zero)
            recovery_speed_multiplier: > 1 recovers faster, < 1 slower
            channel: Channel name selecting the half-life

        Returns:
            Decayed value, never negative
        """
        if value <= 0.0:
            return 0.0
        hours = _hours(elapsed)
        if hours == 0.0:
            return value
        half_life = self.calibration.half_life_hours(channel)
        return max(value * 0.5 ** (hours * recovery_speed_multiplier / half_life), 0.0)

    def decay_values(
        self,
        values: FatigueValues,
        elapsed: timedelta,
        recovery_speed_multiplier: float = 1.0,
    ) -> FatigueValues:
        return FatigueValues(
            **{
                channel: self.decay(values.channel(channel), elapsed, recovery_speed_multiplier, channel)
                for channel in CHANNELS
            }
        )

    def time_until(
        self,
        value: float,
        target: float,
        recovery_speed_multiplier: float = 1.0,
        channel: str = "systemic",
    ) -> timedelta | None:
        """Closed-form inverse of decay: time for `value` to fall to `target`.

        Returns:
            timedelta(0) when already at or below target, None when target <= 0
            (exponential decay never reaches zero)
        """
        if target <= 0.0:
            return None
        if value <= target:
            return timedelta(0)
        half_life = self.calibration.half_life_hours(channel)
        hours = half_life * math.log2(value / target) / recovery_speed_multiplier
        return timedelta(hours=hours)

    def select_mode(self, sample_time: datetime, next_event_time: datetime | None) -> DecayMode:
        """RAMP strictly inside (next_event - lookahead, next_event), SMOOTH otherwise."""
        if next_event_time is None or self.ramp_lookahead <= timedelta(0):
            return DecayMode.SMOOTH
        if next_event_time - self.ramp_lookahead < sample_time < next_event_time:
            return DecayMode.RAMP
        return DecayMode.SMOOTH

    @staticmethod
    def ramp(anchor: FatigueValues, peak: FatigueValues, progress: float) -> FatigueValues:
        """Linear interpolation from anchor to peak; progress is clamped to [0, 1]."""
        p = min(max(progress, 0.0), 1.0)
        return FatigueValues(
            **{
                channel: anchor.channel(channel) + (peak.channel(channel) - anchor.channel(channel)) * p
                for channel in CHANNELS
            }
        )
