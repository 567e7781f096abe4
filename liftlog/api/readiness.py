"""Readiness endpoints.

Read-only fatigue, readiness and timeline views plus the manual
include/exclude toggle for synced external activities.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from liftlog.api.dependencies import get_readiness_config, get_readiness_service
from liftlog.api.schemas import (
    ActivityReadinessResponse,
    CurrentReadinessResponse,
    ExternalActivityListResponse,
    ExternalActivityResponse,
    FatigueValuesResponse,
    SetIgnoredRequest,
    TimelinePointResponse,
    TimelineResponse,
)
from liftlog.export.timeline_export import TimelineExport, TimelineExportError
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.persistence.errors import ExternalActivityNotFoundError, TrainingLogError
from liftlog.services.readiness_service import ReadinessService

router = APIRouter(prefix="/readiness", tags=["readiness"])


def _training_log_unavailable(e: TrainingLogError) -> HTTPException:
    logger.error(f"[READINESS_API] Training log unavailable: {e}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("", response_model=CurrentReadinessResponse)
def get_current_readiness(
    service: ReadinessService = Depends(get_readiness_service),
    config: ReadinessConfig = Depends(get_readiness_config),
):
    """Get current fatigue and readiness per activity category.

    Returns:
        Current fatigue values, per-category verdicts and the has_data flag
    """
    logger.info("[READINESS_API] GET /readiness called")
    try:
        current = service.compute_current_readiness(config)
    except TrainingLogError as e:
        raise _training_log_unavailable(e) from e

    return CurrentReadinessResponse(
        computed_at=current.computed_at,
        has_data=current.has_data,
        fatigue=FatigueValuesResponse.from_values(current.fatigue),
        readiness={
            category.value: ActivityReadinessResponse.from_readiness(readiness)
            for category, readiness in current.readiness.items()
        },
    )


@router.get("/timeline", response_model=TimelineResponse)
def get_timeline(
    days: int | None = Query(default=None, ge=1, le=365),
    service: ReadinessService = Depends(get_readiness_service),
    config: ReadinessConfig = Depends(get_readiness_config),
):
    """Get the sampled fatigue timeline over the trailing window.

    Args:
        days: Window length in days (default: configured window)
    """
    logger.info(f"[READINESS_API] GET /readiness/timeline called, days={days}")
    try:
        timeline = service.build_timeline(days, config)
    except TrainingLogError as e:
        raise _training_log_unavailable(e) from e

    return TimelineResponse(
        window_start=timeline.window_start,
        window_end=timeline.window_end,
        has_data=timeline.has_data,
        event_count=timeline.event_count,
        skipped_events=timeline.skipped_events,
        graph_points=[
            TimelinePointResponse(timestamp=ts, lower=v.lower, upper=v.upper, systemic=v.systemic)
            for ts, v in timeline.graph_points
        ],
        daily_end_values={day: FatigueValuesResponse.from_values(v) for day, v in timeline.daily_end_values.items()},
    )


@router.get("/export", response_model=TimelineExport)
def get_export(
    days: int | None = Query(default=None, ge=1, le=365),
    service: ReadinessService = Depends(get_readiness_service),
    config: ReadinessConfig = Depends(get_readiness_config),
):
    """Get the versioned timeline export document."""
    logger.info(f"[READINESS_API] GET /readiness/export called, days={days}")
    try:
        return service.export(days, config)
    except TrainingLogError as e:
        raise _training_log_unavailable(e) from e
    except TimelineExportError as e:
        logger.warning(f"[READINESS_API] Export failed ({e.reason}): {e}")
        raise HTTPException(
            status_code=422,
            detail={"reason": e.reason.value, "message": str(e)},
        ) from e


@router.get("/external-activities", response_model=ExternalActivityListResponse)
def list_external_activities(service: ReadinessService = Depends(get_readiness_service)):
    """List stored external activities, including ignored ones."""
    activities = service.list_external_activities()
    logger.info(f"[READINESS_API] Returning {len(activities)} external activities")
    return ExternalActivityListResponse(
        activities=[ExternalActivityResponse.from_activity(a) for a in activities],
        total=len(activities),
    )


@router.post("/external-activities/{activity_id}/ignore", response_model=ExternalActivityResponse)
def set_external_activity_ignored(
    activity_id: str,
    request: SetIgnoredRequest,
    service: ReadinessService = Depends(get_readiness_service),
):
    """Manually include or exclude an external activity.

    The choice is sticky: later syncs never reclassify this activity.

    Raises:
        HTTPException: 404 if the activity does not exist
    """
    logger.info(f"[READINESS_API] POST ignore activity_id={activity_id} ignored={request.ignored}")
    try:
        updated = service.set_external_activity_ignored(activity_id, request.ignored)
    except ExternalActivityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return ExternalActivityResponse.from_activity(updated)
