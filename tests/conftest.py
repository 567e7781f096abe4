"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

import json
from datetime import UTC, datetime, timedelta

import pytest

from liftlog.db.session import create_db_engine, make_session_factory
from liftlog.metrics.types import FatigueValues
from liftlog.models.external_activity import StoredExternalActivity
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.persistence.activity_store import ExternalActivityStore
from liftlog.persistence.training_log import TrainingLogRepository

# Wednesday; keeps weekend policy out of tests unless they opt in
FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def fixed_now() -> datetime:
    """Stable "now" for deterministic timelines."""
    return FIXED_NOW


@pytest.fixture
def config() -> ReadinessConfig:
    """Default readiness configuration (intermediate, moderate 30, high 50, CNS 80)."""
    return ReadinessConfig()


@pytest.fixture
def activity_store():
    """External activity store backed by an isolated in-memory SQLite database."""
    engine = create_db_engine("sqlite:///:memory:")
    store = ExternalActivityStore(make_session_factory(engine))
    try:
        yield store
    finally:
        engine.dispose()


@pytest.fixture
def training_log_document() -> dict:
    """Camel-case training log with one squat session and one bench session."""
    return {
        "exerciseLibrary": [
            {"id": 1, "name": "Back Squat", "region": "LOWER", "pattern": "SQUAT", "tier": "TIER_1"},
            {"id": 2, "name": "Bench Press", "region": "UPPER", "pattern": "PUSH_HORIZONTAL", "tier": "TIER_1"},
        ],
        "trainings": [
            {
                "id": "s1",
                "date": "2025-01-13T17:00:00+00:00",
                "durationSeconds": 3600,
                "exercises": [
                    {"exerciseId": 1, "exerciseName": "Back Squat", "setNumber": n, "kg": 100, "reps": 5, "rpe": 8}
                    for n in range(1, 6)
                ],
            },
            {
                "id": "s2",
                "date": "2025/01/14",
                "exercises": [
                    {"exerciseId": 2, "exerciseName": "Bench Press", "setNumber": n, "kg": 80, "reps": 8}
                    for n in range(1, 4)
                ],
            },
        ],
    }


@pytest.fixture
def training_log(tmp_path, training_log_document) -> TrainingLogRepository:
    """Training log repository reading a JSON file in tmp_path."""
    path = tmp_path / "training_data.json"
    path.write_text(json.dumps(training_log_document), encoding="utf-8")
    return TrainingLogRepository(path)


@pytest.fixture
def make_activity():
    """Factory for stored external activities."""

    def _make(
        activity_id: str = "a1",
        start: datetime = FIXED_NOW - timedelta(hours=5),
        minutes: float = 30,
        activity_type: str = "running",
        contribution: FatigueValues | None = None,
        synced_at: datetime | None = None,
        **kwargs,
    ) -> StoredExternalActivity:
        return StoredExternalActivity(
            id=activity_id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            type=activity_type,
            fatigue_contribution=contribution or FatigueValues(lower=20.0, systemic=10.0),
            synced_at=synced_at or FIXED_NOW,
            **kwargs,
        )

    return _make
