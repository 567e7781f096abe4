"""Unit tests for fatigue event collection and timeline construction.

Tests cover:
- Zero events -> all-zero timeline with has_data False
- Fixed cadence, strictly increasing timestamps, one daily entry per day
- Half-life decay after a single event; accumulation of overlapping residuals
- Window boundary events included; earlier events carry residual fatigue in
  without being counted, later events ignored
- Ramp interpolation before an upcoming event
- Determinism and agreement between build() and current()
- Skipped session dates, ignored activities, weekend policy
- DST transitions keep the real-time cadence
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from liftlog.metrics.events import collect_events
from liftlog.metrics.timeline import FatigueTimelineBuilder
from liftlog.metrics.types import FatigueEvent, FatigueValues, SourceKind
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import ExerciseSet, TrainingSession

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


def _event(timestamp: datetime, systemic: float = 40.0, source_id: str = "e1") -> FatigueEvent:
    return FatigueEvent(
        timestamp=timestamp,
        contribution=FatigueValues(systemic=systemic),
        source_kind=SourceKind.WORKOUT,
        source_id=source_id,
    )


@pytest.fixture
def builder(config) -> FatigueTimelineBuilder:
    return FatigueTimelineBuilder(config)


def _value_at(timeline, moment: datetime) -> FatigueValues:
    for timestamp, values in timeline.graph_points:
        if timestamp == moment:
            return values
    raise AssertionError(f"No sample at {moment.isoformat()}")


class TestEmptyTimeline:
    """Test a window without any events."""

    def test_zero_events(self, builder):
        timeline = builder.build([], NOW, window_days=3)

        assert timeline.has_data is False
        assert timeline.event_count == 0
        assert all(values.is_zero() for _, values in timeline.graph_points)
        assert list(timeline.daily_end_values) == ["2025-01-13", "2025-01-14", "2025-01-15"]

    def test_window_shape(self, builder):
        timeline = builder.build([], NOW, window_days=3)

        assert timeline.window_start == datetime(2025, 1, 13, tzinfo=UTC)
        assert timeline.window_end == NOW
        # 2.5 days of hourly samples, both ends included
        assert len(timeline.graph_points) == 61
        assert timeline.graph_points[0][0] == timeline.window_start
        assert timeline.graph_points[-1][0] == NOW

    def test_invalid_window(self, builder):
        with pytest.raises(ValueError):
            builder.build([], NOW, window_days=0)

    def test_invalid_cadence(self, config):
        with pytest.raises(ValueError):
            FatigueTimelineBuilder(config, cadence=timedelta(0))


class TestTimelineValues:
    """Test decay, accumulation and ramp interpolation."""

    def test_single_event_decays_with_half_life(self, builder):
        event_time = datetime(2025, 1, 14, 10, 0, tzinfo=UTC)
        timeline = builder.build([_event(event_time)], NOW, window_days=3)

        assert timeline.has_data is True
        assert _value_at(timeline, event_time).systemic == pytest.approx(40.0)
        assert _value_at(timeline, event_time + timedelta(hours=24)).systemic == pytest.approx(20.0)

    def test_samples_before_event_are_zero(self, builder):
        event_time = datetime(2025, 1, 14, 10, 0, tzinfo=UTC)
        timeline = builder.build([_event(event_time)], NOW, window_days=3)

        assert _value_at(timeline, datetime(2025, 1, 14, 7, 0, tzinfo=UTC)).is_zero()
        # Ramp window (120 min) starts strictly after 08:00
        assert _value_at(timeline, datetime(2025, 1, 14, 8, 0, tzinfo=UTC)).is_zero()

    def test_ramp_rises_towards_peak(self, builder):
        event_time = datetime(2025, 1, 14, 10, 0, tzinfo=UTC)
        timeline = builder.build([_event(event_time)], NOW, window_days=3)

        assert _value_at(timeline, datetime(2025, 1, 14, 9, 0, tzinfo=UTC)).systemic == pytest.approx(20.0)

    def test_residuals_accumulate(self, builder):
        first = datetime(2025, 1, 14, 0, 0, tzinfo=UTC)
        second = datetime(2025, 1, 15, 0, 0, tzinfo=UTC)
        timeline = builder.build([_event(first, source_id="a"), _event(second, source_id="b")], NOW, window_days=3)

        assert _value_at(timeline, second).systemic == pytest.approx(60.0)
        assert timeline.event_count == 2

    def test_daily_end_value_is_last_sample_of_day(self, builder):
        event_time = datetime(2025, 1, 14, 10, 0, tzinfo=UTC)
        timeline = builder.build([_event(event_time)], NOW, window_days=3)

        assert timeline.daily_end_values["2025-01-14"] == _value_at(timeline, datetime(2025, 1, 14, 23, 0, tzinfo=UTC))
        assert timeline.daily_end_values["2025-01-15"] == timeline.latest

    def test_no_negative_values(self, builder):
        events = [_event(NOW - timedelta(hours=h), systemic=10.0 * h, source_id=str(h)) for h in (5, 17, 30, 44)]
        timeline = builder.build(events, NOW, window_days=3)

        for _, values in timeline.graph_points:
            assert values.lower >= 0 and values.upper >= 0 and values.systemic >= 0


class TestWindowBoundaries:
    """Test event inclusion at the window edges."""

    def test_boundary_events_included(self, builder):
        start = datetime(2025, 1, 13, tzinfo=UTC)
        timeline = builder.build([_event(start, source_id="start"), _event(NOW, source_id="now")], NOW, window_days=3)

        assert timeline.event_count == 2
        assert timeline.graph_points[0][1].systemic == pytest.approx(40.0)

    def test_events_outside_window_not_counted(self, builder):
        before = datetime(2025, 1, 12, 23, 0, tzinfo=UTC)
        after = NOW + timedelta(minutes=1)
        timeline = builder.build([_event(before, source_id="old"), _event(after, source_id="future")], NOW, window_days=3)

        assert timeline.event_count == 0
        assert timeline.has_data is False
        assert timeline.graph_points[0][1].systemic == pytest.approx(40.0 * 0.5 ** (1 / 24))
        assert timeline.latest.systemic == pytest.approx(40.0 * 0.5 ** (61 / 24))

    def test_residual_from_before_window_carries_in(self, builder):
        events = [_event(NOW - timedelta(hours=14), systemic=60.0)]

        short = builder.build(events, NOW, window_days=1)
        long = builder.build(events, NOW, window_days=28)

        assert short.event_count == 0
        assert long.event_count == 1
        assert short.latest.systemic == pytest.approx(long.latest.systemic)
        assert short.latest.systemic == pytest.approx(60.0 * 0.5 ** (14 / 24))
        assert builder.current(events, NOW, window_days=1).systemic == pytest.approx(short.latest.systemic)

    def test_window_length_does_not_change_overlapping_samples(self, builder):
        events = [
            _event(NOW - timedelta(days=5), systemic=50.0, source_id="a"),
            _event(NOW - timedelta(hours=30), source_id="b"),
            _event(NOW - timedelta(hours=2), source_id="c"),
        ]
        short = builder.build(events, NOW, window_days=2)
        long = builder.build(events, NOW, window_days=7)

        long_by_time = dict(long.graph_points)
        for timestamp, values in short.graph_points:
            assert values.systemic == pytest.approx(long_by_time[timestamp].systemic)


class TestDeterminism:
    """Test that identical inputs produce identical outputs."""

    def test_build_is_deterministic(self, builder):
        events = [_event(NOW - timedelta(hours=30), source_id="a"), _event(NOW - timedelta(hours=3), source_id="b")]
        assert builder.build(events, NOW, 3) == builder.build(list(reversed(events)), NOW, 3)

    def test_current_matches_last_sample(self, builder):
        events = [_event(NOW - timedelta(hours=30), source_id="a"), _event(NOW - timedelta(minutes=90), source_id="b")]
        timeline = builder.build(events, NOW, 3)

        assert builder.current(events, NOW, 3) == timeline.latest

    def test_cadence_is_fixed(self, config):
        builder = FatigueTimelineBuilder(config, cadence=timedelta(minutes=30))
        timeline = builder.build([], NOW, window_days=2)

        stamps = [timestamp for timestamp, _ in timeline.graph_points]
        assert all(b - a == timedelta(minutes=30) for a, b in zip(stamps, stamps[1:]))

    def test_dst_transition_keeps_real_time_cadence(self, config):
        berlin = ZoneInfo("Europe/Berlin")
        builder = FatigueTimelineBuilder(config, tz=berlin)
        now = datetime(2025, 3, 31, 12, 0, tzinfo=berlin)
        timeline = builder.build([], now, window_days=3)

        stamps = [timestamp.astimezone(UTC) for timestamp, _ in timeline.graph_points]
        assert all(b - a == timedelta(hours=1) for a, b in zip(stamps, stamps[1:]))
        assert list(timeline.daily_end_values) == ["2025-03-29", "2025-03-30", "2025-03-31"]


class TestEventCollection:
    """Test turning sessions and activities into events."""

    def test_unparsable_session_date_is_skipped(self, config):
        sessions = [
            TrainingSession(id="good", date="2025/01/14", exercises=[ExerciseSet(kg=50, reps=10)]),
            TrainingSession(id="bad", date="yesterday-ish", exercises=[ExerciseSet(kg=50, reps=10)]),
        ]
        collected = collect_events(sessions, {}, [], config, UTC)

        assert [e.source_id for e in collected.events] == ["good"]
        assert collected.skipped == 1

    def test_skipped_count_reaches_timeline(self, builder, config):
        sessions = [TrainingSession(id="bad", date="2025/13/45")]
        collected = collect_events(sessions, {}, [], config, UTC)
        timeline = builder.build(collected.events, NOW, 3, skipped_events=collected.skipped)

        assert timeline.skipped_events == 1

    def test_date_only_session_lands_after_default_duration(self, config):
        sessions = [TrainingSession(id="s", date="2025/01/14", exercises=[ExerciseSet(kg=50, reps=10)])]
        (event,) = collect_events(sessions, {}, [], config, UTC).events

        # 18:00 default start + 60 min default duration
        assert event.timestamp == datetime(2025, 1, 14, 19, 0, tzinfo=UTC)

    def test_ignored_activity_produces_no_event(self, config, make_activity):
        activities = [make_activity("kept"), make_activity("dropped", ignored=True, ignore_reason="manually_excluded")]
        collected = collect_events([], {}, activities, config, UTC)

        assert [e.source_id for e in collected.events] == ["kept"]
        assert collected.events[0].source_kind == SourceKind.EXTERNAL_ACTIVITY

    def test_weekend_policy_scales_weekend_events(self, make_activity):
        config = ReadinessConfig(ignore_fatigue_on_weekends=True)
        saturday = make_activity("sat", start=datetime(2025, 1, 11, 9, 0, tzinfo=UTC))
        monday = make_activity("mon", start=datetime(2025, 1, 13, 9, 0, tzinfo=UTC))
        by_id = {e.source_id: e for e in collect_events([], {}, [saturday, monday], config, UTC).events}

        assert by_id["sat"].contribution.is_zero()
        assert by_id["mon"].contribution == monday.fatigue_contribution

    def test_weekend_policy_disabled_by_default(self, config, make_activity):
        saturday = make_activity("sat", start=datetime(2025, 1, 11, 9, 0, tzinfo=UTC))
        (event,) = collect_events([], {}, [saturday], config, UTC).events

        assert event.contribution == saturday.fatigue_contribution
