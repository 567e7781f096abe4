"""Fatigue timeline construction.

Builds a fixed-cadence fatigue series over a trailing window ending at `now`.

Algorithm:
1. Split events into those before window_start and those with
   window_start <= timestamp <= now (boundary included). A stable sort keeps
   same-timestamp events in input order. Events before the window are
   replayed into the starting state without emitting samples, so a short
   window opens on the same residual fatigue a long one carries.
2. Walk the sample grid from window_start to now. State is held at the last
   applied event (the anchor) and every sample is the anchor state decayed to
   the sample instant. Each event is applied at its exact timestamp: decay to
   it, then add its contribution.
3. Samples strictly inside the ramp lookahead of the next event use RAMP mode
   (display interpolation towards the post-event peak); all others are SMOOTH.
4. daily_end_values holds the last sample of each local calendar day.

Grid arithmetic runs in UTC so DST transitions never break the fixed cadence;
sample timestamps are reported in the user's timezone.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime, time, timedelta, tzinfo

from loguru import logger

from liftlog.metrics.decay import DecayMode, DecayModel
from liftlog.metrics.types import ZERO, FatigueEvent, FatigueTimeline, FatigueValues
from liftlog.models.readiness_config import ReadinessConfig

DEFAULT_CADENCE = timedelta(hours=1)
DAY_KEY_FORMAT = "%Y-%m-%d"


class FatigueTimelineBuilder:
    """Deterministic fatigue timeline builder.

    The builder holds no per-build state, so one instance can serve concurrent
    builds from different threads.
    """

    def __init__(
        self,
        config: ReadinessConfig,
        tz: tzinfo = UTC,
        cadence: timedelta = DEFAULT_CADENCE,
        decay_model: DecayModel | None = None,
    ) -> None:
        if cadence <= timedelta(0):
            raise ValueError(f"Sample cadence must be positive, got {cadence}")
        self.config = config
        self.tz = tz
        self.cadence = cadence
        self.decay_model = decay_model or DecayModel(config.calibration)

    def _aware(self, moment: datetime) -> datetime:
        return moment if moment.tzinfo is not None else moment.replace(tzinfo=self.tz)

    def window_start(self, now: datetime, window_days: int) -> datetime:
        """Local midnight of (today - window_days + 1)."""
        if window_days < 1:
            raise ValueError(f"window_days must be >= 1, got {window_days}")
        local_today = self._aware(now).astimezone(self.tz).date()
        first_day = local_today - timedelta(days=window_days - 1)
        return datetime.combine(first_day, time.min, tzinfo=self.tz)

    def _split_events(
        self,
        events: Sequence[FatigueEvent],
        start: datetime,
        now: datetime,
    ) -> tuple[list[FatigueEvent], list[FatigueEvent]]:
        """Events before `start` and events inside [start, now], both stably sorted and in UTC."""
        ordered = sorted(
            (replace(e, timestamp=e.timestamp.astimezone(UTC)) for e in events if e.timestamp <= now),
            key=lambda e: e.timestamp,
        )
        prior = [e for e in ordered if e.timestamp < start]
        return prior, ordered[len(prior):]

    def _advance(self, state: FatigueValues, elapsed: timedelta) -> FatigueValues:
        return self.decay_model.decay_values(state, elapsed, self.config.recovery_speed_multiplier)

    def _replay(
        self,
        events: Sequence[FatigueEvent],
        state: FatigueValues,
        state_time: datetime,
    ) -> tuple[FatigueValues, datetime]:
        for event in events:
            state = self._advance(state, event.timestamp - state_time) + event.contribution
            state_time = event.timestamp
        return state, state_time

    def _initial_state(self, prior: Sequence[FatigueEvent], start_utc: datetime) -> tuple[FatigueValues, datetime]:
        """Residual state carried into the window; anchored at the last prior event."""
        if not prior:
            return ZERO, start_utc
        return self._replay(prior, ZERO, prior[0].timestamp)

    def build(
        self,
        events: Sequence[FatigueEvent],
        now: datetime,
        window_days: int,
        skipped_events: int = 0,
    ) -> FatigueTimeline:
        """Build the fatigue timeline for the trailing window ending at `now`.

        Args:
            events: Collected fatigue events (any order)
            now: End of the window (timezone-aware; naive is read in the user timezone)
            window_days: Number of local calendar days covered, today included
            skipped_events: Events already dropped upstream, carried into the result

        Returns:
            FatigueTimeline with fixed-cadence graph points and daily end values
        """
        now = self._aware(now)
        start = self.window_start(now, window_days)
        prior_events, window_events = self._split_events(events, start, now)

        start_utc = start.astimezone(UTC)
        now_utc = now.astimezone(UTC)

        state, state_time = self._initial_state(prior_events, start_utc)
        idx = 0
        points: list[tuple[datetime, FatigueValues]] = []

        t = start_utc
        while t <= now_utc:
            while idx < len(window_events) and window_events[idx].timestamp <= t:
                event = window_events[idx]
                state = self._advance(state, event.timestamp - state_time) + event.contribution
                state_time = event.timestamp
                idx += 1

            next_time = window_events[idx].timestamp if idx < len(window_events) else None
            if self.decay_model.select_mode(t, next_time) == DecayMode.RAMP:
                value = self._ramp_value(state, state_time, window_events, idx, t)
            else:
                value = self._advance(state, t - state_time)

            points.append((t.astimezone(self.tz), value))
            t += self.cadence

        timeline = FatigueTimeline(
            graph_points=tuple(points),
            daily_end_values=self._daily_end_values(points, start, now),
            window_start=start,
            window_end=now,
            event_count=len(window_events),
            skipped_events=skipped_events,
        )

        logger.bind(window_days=window_days).debug(
            f"[TIMELINE] Built {len(points)} samples from {len(window_events)} events "
            f"(carried={len(prior_events)}, skipped={skipped_events}, "
            f"start={start.isoformat()}, end={now.isoformat()})"
        )
        return timeline

    def _ramp_value(
        self,
        state: FatigueValues,
        state_time: datetime,
        events: Sequence[FatigueEvent],
        idx: int,
        sample_time: datetime,
    ) -> FatigueValues:
        """Interpolate from the smooth anchor value to the peak after the next event(s)."""
        next_time = events[idx].timestamp
        peak = self._advance(state, next_time - state_time)
        j = idx
        while j < len(events) and events[j].timestamp == next_time:
            peak = peak + events[j].contribution
            j += 1

        anchor_time = max(next_time - self.decay_model.ramp_lookahead, state_time)
        anchor = self._advance(state, anchor_time - state_time)
        span = (next_time - anchor_time).total_seconds()
        progress = (sample_time - anchor_time).total_seconds() / span if span > 0 else 1.0
        return self.decay_model.ramp(anchor, peak, progress)

    def _daily_end_values(
        self,
        points: Sequence[tuple[datetime, FatigueValues]],
        start: datetime,
        now: datetime,
    ) -> dict[str, FatigueValues]:
        """Last sample per local calendar day; days without a sample carry the previous value."""
        by_day: dict[str, FatigueValues] = {}
        for timestamp, values in points:
            by_day[timestamp.astimezone(self.tz).strftime(DAY_KEY_FORMAT)] = values

        daily: dict[str, FatigueValues] = {}
        carried = ZERO
        day = start.astimezone(self.tz).date()
        last_day = now.astimezone(self.tz).date()
        while day <= last_day:
            key = day.strftime(DAY_KEY_FORMAT)
            carried = by_day.get(key, carried)
            daily[key] = carried
            day += timedelta(days=1)
        return daily

    def current(self, events: Sequence[FatigueEvent], now: datetime, window_days: int) -> FatigueValues:
        """Smooth fatigue at exactly `now`, replayed the same way `build` replays."""
        now = self._aware(now)
        start = self.window_start(now, window_days)

        prior_events, window_events = self._split_events(events, start, now)
        state, state_time = self._initial_state(prior_events, start.astimezone(UTC))
        state, state_time = self._replay(window_events, state, state_time)
        return self._advance(state, now.astimezone(UTC) - state_time)
