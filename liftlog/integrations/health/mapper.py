"""Mapping of health-platform exercise sessions to fatigue contributions.

Pure mapper functions with no side effects. Each exercise type gets a
per-minute load that is split across channels:

| Types                                  | per minute | lower | upper | systemic |
|----------------------------------------|-----------:|------:|------:|---------:|
| running, football, soccer, hiking      | 1.5        | 1.0   | 0     | 0.8      |
| biking, biking_stationary              | 1.0        | 1.0   | 0     | 0.6      |
| swimming_pool, swimming_open_water     | 1.2        | 0.2   | 1.0   | 1.0      |
| weightlifting                          | 0          | -     | -     | -        |
| anything else (walking, yoga, ...)     | 0.5        | 0.5   | 0     | 0.5      |

Weightlifting maps to zero: lifting logged in the app is the authoritative record.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger
from pydantic import ValidationError

from liftlog.integrations.health.schemas import HealthActivityRecord
from liftlog.metrics.types import FatigueValues
from liftlog.models.external_activity import ExternalActivity


@dataclass(frozen=True)
class ActivityLoadRule:
    per_minute: float
    lower: float = 0.0
    upper: float = 0.0
    systemic: float = 0.0

    def contribution(self, minutes: float) -> FatigueValues:
        score = max(minutes, 0.0) * self.per_minute
        return FatigueValues(lower=score * self.lower, upper=score * self.upper, systemic=score * self.systemic)


IMPACT_RULE = ActivityLoadRule(per_minute=1.5, lower=1.0, systemic=0.8)
CYCLING_RULE = ActivityLoadRule(per_minute=1.0, lower=1.0, systemic=0.6)
SWIMMING_RULE = ActivityLoadRule(per_minute=1.2, lower=0.2, upper=1.0, systemic=1.0)
LIFTING_RULE = ActivityLoadRule(per_minute=0.0)
DEFAULT_RULE = ActivityLoadRule(per_minute=0.5, lower=0.5, systemic=0.5)

ACTIVITY_LOAD_RULES: dict[str, ActivityLoadRule] = {
    "running": IMPACT_RULE,
    "run": IMPACT_RULE,
    "football_american": IMPACT_RULE,
    "football": IMPACT_RULE,
    "soccer": IMPACT_RULE,
    "hiking": IMPACT_RULE,
    "biking": CYCLING_RULE,
    "biking_stationary": CYCLING_RULE,
    "cycling": CYCLING_RULE,
    "ride": CYCLING_RULE,
    "swimming_pool": SWIMMING_RULE,
    "swimming_open_water": SWIMMING_RULE,
    "swimming": SWIMMING_RULE,
    "swim": SWIMMING_RULE,
    "weightlifting": LIFTING_RULE,
    "strength_training": LIFTING_RULE,
}


def rule_for_type(exercise_type: str) -> ActivityLoadRule:
    return ACTIVITY_LOAD_RULES.get(exercise_type.strip().lower(), DEFAULT_RULE)


def map_health_activity(record: HealthActivityRecord) -> ExternalActivity | None:
    """Convert one health-platform record to an ExternalActivity.

    Args:
        record: Validated health-platform record

    Returns:
        ExternalActivity with its fatigue contribution, or None when the
        record's end precedes its start
    """
    if record.end_time < record.start_time:
        logger.warning(
            f"[HEALTH_MAPPER] Skipping activity {record.id}: end_time {record.end_time.isoformat()} "
            f"is before start_time {record.start_time.isoformat()}"
        )
        return None

    minutes = (record.end_time - record.start_time).total_seconds() / 60.0
    contribution = rule_for_type(record.exercise_type).contribution(minutes)

    return ExternalActivity(
        id=record.id,
        start_time=record.start_time,
        end_time=record.end_time,
        type=record.exercise_type,
        fatigue_contribution=contribution,
    )


def map_health_payloads(payloads: Iterable[dict]) -> list[ExternalActivity]:
    """Validate and map raw payloads, skipping invalid ones with a warning."""
    activities: list[ExternalActivity] = []
    for payload in payloads:
        try:
            record = HealthActivityRecord.from_payload(payload)
        except (ValidationError, AttributeError) as e:
            logger.warning(f"[HEALTH_MAPPER] Skipping invalid activity payload: {e}")
            continue
        activity = map_health_activity(record)
        if activity is not None:
            activities.append(activity)
    return activities
