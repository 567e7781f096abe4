"""Readiness verdict types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum


class ReadinessStatus(StrEnum):
    READY = "READY"
    CAUTION = "CAUTION"
    BLOCKED = "BLOCKED"


class ActivityCategory(StrEnum):
    ENDURANCE = "ENDURANCE"  # Running / cycling
    SWIMMING = "SWIMMING"
    LOWER_BODY_LIFT = "LOWER_BODY_LIFT"
    UPPER_BODY_LIFT = "UPPER_BODY_LIFT"


@dataclass(frozen=True)
class ActivityReadiness:
    """Verdict for one activity category.

    Attributes:
        status: READY, CAUTION or BLOCKED
        message: Short human-readable guidance
        time_until_fresh: Time until the category is READY again; None when READY or already at the target
        metric: Weighted fatigue value the verdict was derived from
    """

    status: ReadinessStatus
    message: str
    time_until_fresh: timedelta | None = None
    metric: float = 0.0
