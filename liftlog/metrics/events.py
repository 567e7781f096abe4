"""Fatigue event collection.

Turns stored training sessions and external activities into timestamped
FatigueEvents:
- Workout: lands at nominal session start + recorded or estimated duration
- External activity: lands at its end_time; ignored activities never produce events

Sessions whose date cannot be parsed are skipped and counted, never fatal.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import tzinfo

from loguru import logger

from liftlog.metrics.fatigue_score import score_session
from liftlog.metrics.session_timing import SessionTimingError, session_interval
from liftlog.metrics.types import FatigueEvent, SourceKind
from liftlog.models.external_activity import StoredExternalActivity
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import ExerciseDefinition, TrainingSession

SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class EventCollection:
    events: tuple[FatigueEvent, ...]
    skipped: int = 0


def session_events(
    sessions: Iterable[TrainingSession],
    library: Mapping[int, ExerciseDefinition] | None,
    config: ReadinessConfig,
    tz: tzinfo,
) -> EventCollection:
    """Score each session and place it on the timeline.

    Args:
        sessions: Logged training sessions
        library: Exercise library keyed by id
        config: Readiness configuration
        tz: User timezone for date-only and naive session dates

    Returns:
        EventCollection with one event per usable session and the skip count
    """
    events: list[FatigueEvent] = []
    skipped = 0
    for session in sessions:
        try:
            _, end = session_interval(session, tz, config.calibration)
        except SessionTimingError as e:
            skipped += 1
            logger.warning(f"[FATIGUE_EVENTS] Skipping session {session.id}: {e}")
            continue
        events.append(
            FatigueEvent(
                timestamp=end,
                contribution=score_session(session, library, config),
                source_kind=SourceKind.WORKOUT,
                source_id=session.id,
            )
        )
    return EventCollection(events=tuple(events), skipped=skipped)


def activity_events(activities: Iterable[StoredExternalActivity]) -> tuple[FatigueEvent, ...]:
    return tuple(
        FatigueEvent(
            timestamp=activity.end_time,
            contribution=activity.fatigue_contribution,
            source_kind=SourceKind.EXTERNAL_ACTIVITY,
            source_id=activity.id,
        )
        for activity in activities
        if not activity.ignored
    )


def apply_weekend_policy(
    events: Iterable[FatigueEvent],
    config: ReadinessConfig,
    tz: tzinfo,
) -> tuple[FatigueEvent, ...]:
    """Scale weekend contributions when weekend fatigue is ignored.

    Events whose local calendar day is Saturday or Sunday keep their place on
    the timeline but contribute `weekend_accrual_factor` times their load.
    With the policy disabled the events are returned unchanged.
    """
    events = tuple(events)
    if not config.ignore_fatigue_on_weekends:
        return events

    factor = config.calibration.weekend_accrual_factor
    adjusted: list[FatigueEvent] = []
    for event in events:
        if event.timestamp.astimezone(tz).weekday() in (SATURDAY, SUNDAY):
            event = FatigueEvent(
                timestamp=event.timestamp,
                contribution=event.contribution.scaled(factor),
                source_kind=event.source_kind,
                source_id=event.source_id,
            )
        adjusted.append(event)
    return tuple(adjusted)


def collect_events(
    sessions: Iterable[TrainingSession],
    library: Mapping[int, ExerciseDefinition] | None,
    activities: Iterable[StoredExternalActivity],
    config: ReadinessConfig,
    tz: tzinfo,
) -> EventCollection:
    """Collect workout and activity events, weekend policy applied, sorted by time.

    The sort is stable: events sharing a timestamp keep workout-then-activity
    input order.
    """
    workouts = session_events(sessions, library, config, tz)
    combined = workouts.events + activity_events(activities)
    ordered = sorted(apply_weekend_policy(combined, config, tz), key=lambda e: e.timestamp)
    return EventCollection(events=tuple(ordered), skipped=workouts.skipped)
