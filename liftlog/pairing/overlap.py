"""Overlap detection between synced activities and logged workouts.

A lifting session recorded both in the training log and on the health platform
must count once. The training log is authoritative, so a synced activity that
overlaps a logged session is ignored:

- Inferred session interval: [nominal start, nominal start + duration), with the
  recorded duration or `default_session_duration_minutes`
- Overlap: half-open intervals intersect
- Date-only sessions (no time of day recorded) also match an activity that
  starts on the same local day with a duration within
  `date_only_duration_tolerance_minutes` of the session's duration

Activities the user toggled by hand (`user_override`) are never reclassified.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo

from loguru import logger

from liftlog.metrics.session_timing import (
    SessionTimingError,
    is_date_only,
    parse_session_date,
    session_duration,
    session_interval,
)
from liftlog.models.external_activity import OVERLAP_IGNORE_REASON, ExternalActivity, StoredExternalActivity
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import TrainingSession


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) intersection test."""
    return a_start < b_end and b_start < a_end


def session_overlaps(
    activity: ExternalActivity,
    session: TrainingSession,
    config: ReadinessConfig,
    tz: tzinfo,
) -> bool:
    """Check whether one activity overlaps one logged session.

    Args:
        activity: Synced activity
        session: Logged training session
        config: Readiness configuration (duration defaults and tolerance)
        tz: User timezone for date-only sessions

    Returns:
        True if the activity duplicates the session

    Raises:
        SessionTimingError: If the session date cannot be parsed
    """
    calibration = config.calibration
    start, end = session_interval(session, tz, calibration)
    if intervals_overlap(activity.start_time, activity.end_time, start, end):
        return True

    if not is_date_only(session.date):
        return False

    if activity.start_time.astimezone(tz).date() != parse_session_date(session.date):
        return False

    activity_duration = activity.end_time - activity.start_time
    tolerance = timedelta(minutes=calibration.date_only_duration_tolerance_minutes)
    return abs(activity_duration - session_duration(session, calibration)) <= tolerance


def find_overlapping_session(
    activity: ExternalActivity,
    sessions: Iterable[TrainingSession],
    config: ReadinessConfig,
    tz: tzinfo,
) -> TrainingSession | None:
    """Return the first logged session the activity overlaps, if any.

    Sessions with unparsable dates cannot be matched and are skipped.
    """
    for session in sessions:
        try:
            if session_overlaps(activity, session, config, tz):
                return session
        except SessionTimingError as e:
            logger.debug(f"[OVERLAP] Skipping session {session.id} during overlap check: {e}")
    return None


def classify_overlap(
    stored: StoredExternalActivity,
    sessions: Iterable[TrainingSession],
    config: ReadinessConfig,
    tz: tzinfo,
) -> StoredExternalActivity:
    """Apply the automatic overlap rule to a stored activity.

    Returns a new StoredExternalActivity:
    - user_override set: returned unchanged
    - overlap found: ignored with the overlap reason
    - no overlap and previously ignored for overlap: included again
    - otherwise: unchanged (a manual exclusion stays)
    """
    if stored.user_override:
        return stored

    match = find_overlapping_session(stored, sessions, config, tz)
    if match is not None:
        if stored.ignored and stored.ignore_reason == OVERLAP_IGNORE_REASON:
            return stored
        logger.info(f"[OVERLAP] Activity {stored.id} ({stored.type}) overlaps logged session {match.id}, ignoring")
        return stored.model_copy(update={"ignored": True, "ignore_reason": OVERLAP_IGNORE_REASON})

    if stored.ignored and stored.ignore_reason == OVERLAP_IGNORE_REASON:
        logger.info(f"[OVERLAP] Activity {stored.id} no longer overlaps a logged session, including it again")
        return stored.model_copy(update={"ignored": False, "ignore_reason": None})

    return stored
