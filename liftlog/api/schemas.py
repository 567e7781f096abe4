"""Response and request schemas for the readiness API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from liftlog.metrics.types import FatigueValues
from liftlog.models.external_activity import StoredExternalActivity
from liftlog.readiness.types import ActivityReadiness, ReadinessStatus


class FatigueValuesResponse(BaseModel):
    lower: float
    upper: float
    systemic: float

    @classmethod
    def from_values(cls, values: FatigueValues) -> FatigueValuesResponse:
        return cls(lower=values.lower, upper=values.upper, systemic=values.systemic)


class ActivityReadinessResponse(BaseModel):
    status: ReadinessStatus
    message: str
    time_until_fresh_seconds: int | None = None
    metric: float

    @classmethod
    def from_readiness(cls, readiness: ActivityReadiness) -> ActivityReadinessResponse:
        seconds = None
        if readiness.time_until_fresh is not None:
            seconds = int(round(readiness.time_until_fresh.total_seconds()))
        return cls(
            status=readiness.status,
            message=readiness.message,
            time_until_fresh_seconds=seconds,
            metric=readiness.metric,
        )


class CurrentReadinessResponse(BaseModel):
    computed_at: datetime
    has_data: bool
    fatigue: FatigueValuesResponse
    readiness: dict[str, ActivityReadinessResponse]


class TimelinePointResponse(BaseModel):
    timestamp: datetime
    lower: float
    upper: float
    systemic: float


class TimelineResponse(BaseModel):
    window_start: datetime
    window_end: datetime
    has_data: bool
    event_count: int
    skipped_events: int
    graph_points: list[TimelinePointResponse]
    daily_end_values: dict[str, FatigueValuesResponse]


class ExternalActivityResponse(BaseModel):
    id: str
    type: str
    start_time: datetime
    end_time: datetime
    fatigue_contribution: FatigueValuesResponse
    ignored: bool
    ignore_reason: str | None = None
    synced_at: datetime
    user_override: bool

    @classmethod
    def from_activity(cls, activity: StoredExternalActivity) -> ExternalActivityResponse:
        return cls(
            id=activity.id,
            type=activity.type,
            start_time=activity.start_time,
            end_time=activity.end_time,
            fatigue_contribution=FatigueValuesResponse.from_values(activity.fatigue_contribution),
            ignored=activity.ignored,
            ignore_reason=activity.ignore_reason,
            synced_at=activity.synced_at,
            user_override=activity.user_override,
        )


class ExternalActivityListResponse(BaseModel):
    activities: list[ExternalActivityResponse]
    total: int


class SetIgnoredRequest(BaseModel):
    ignored: bool
