"""Nominal timing of logged training sessions.

The training log records a session date either as a calendar date
("YYYY/MM/DD" or "YYYY-MM-DD") or as an ISO datetime. Date-only sessions are
assumed to start at `default_session_start_hour` local time. Naive datetimes
are interpreted in the user's timezone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, tzinfo

from liftlog.models.readiness_config import Calibration
from liftlog.models.training import TrainingSession

_DATE_ONLY_RE = re.compile(r"^\s*(\d{4})[/-](\d{1,2})[/-](\d{1,2})\s*$")


class SessionTimingError(ValueError):
    """Raised when a session date cannot be interpreted."""


def is_date_only(raw: str) -> bool:
    return _DATE_ONLY_RE.match(raw or "") is not None


def parse_session_date(raw: str) -> date:
    """Calendar day of a session, in the session's own local frame."""
    match = _DATE_ONLY_RE.match(raw or "")
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError as e:
            raise SessionTimingError(f"Invalid session date '{raw}': {e}") from e
    try:
        return datetime.fromisoformat(raw.strip()).date()
    except (AttributeError, ValueError) as e:
        raise SessionTimingError(f"Invalid session date '{raw}'") from e


def parse_session_start(raw: str, tz: tzinfo, calibration: Calibration) -> datetime:
    """Parse a session's nominal start instant.

    Args:
        raw: Raw session date string from the training log
        tz: User timezone used for date-only and naive values
        calibration: Supplies the assumed start hour for date-only sessions

    Returns:
        Timezone-aware start datetime

    Raises:
        SessionTimingError: If the string is not a recognizable date or datetime
    """
    if is_date_only(raw):
        day = parse_session_date(raw)
        return datetime.combine(day, time(hour=calibration.default_session_start_hour), tzinfo=tz)

    try:
        parsed = datetime.fromisoformat(raw.strip())
    except (AttributeError, ValueError) as e:
        raise SessionTimingError(f"Invalid session date '{raw}'") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def session_duration(session: TrainingSession, calibration: Calibration) -> timedelta:
    """Recorded duration, or the calibrated estimate when none was logged."""
    if session.duration_seconds is not None and session.duration_seconds > 0:
        return timedelta(seconds=session.duration_seconds)
    return timedelta(minutes=calibration.default_session_duration_minutes)


def session_interval(session: TrainingSession, tz: tzinfo, calibration: Calibration) -> tuple[datetime, datetime]:
    """Inferred [start, end) interval of a session."""
    start = parse_session_start(session.date, tz, calibration)
    return start, start + session_duration(session, calibration)
