"""External (synced) activity records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from liftlog.metrics.types import FatigueValues

OVERLAP_IGNORE_REASON = "overlaps_logged_workout"
MANUAL_IGNORE_REASON = "manually_excluded"

DEFAULT_RETENTION_DAYS = 14
MIN_RETENTION_DAYS = 1
MAX_RETENTION_DAYS = 365


def clamp_retention_days(days: int) -> int:
    return min(max(int(days), MIN_RETENTION_DAYS), MAX_RETENTION_DAYS)


class ExternalActivity(BaseModel):
    """Activity converted from the health platform, before it is stored."""

    id: str
    start_time: datetime
    end_time: datetime
    type: str
    fatigue_contribution: FatigueValues


class StoredExternalActivity(ExternalActivity):
    """Persisted external activity.

    Attributes:
        ignored: Excluded from every fatigue timeline when True
        ignore_reason: Machine-readable reason (overlap or manual exclusion)
        synced_at: When the activity was first stored; drives retention pruning
        user_override: True once the user toggled `ignored` by hand. Automatic
            overlap classification never touches such an activity again.
    """

    ignored: bool = False
    ignore_reason: str | None = None
    synced_at: datetime
    user_override: bool = False


class ExternalActivityStorage(BaseModel):
    retention_days: int = DEFAULT_RETENTION_DAYS
    last_sync_time: datetime | None = None
    activities: list[StoredExternalActivity] = Field(default_factory=list)

    def by_id(self) -> dict[str, StoredExternalActivity]:
        return {a.id: a for a in self.activities}
