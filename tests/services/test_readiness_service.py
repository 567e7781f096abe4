"""Tests for the readiness service.

Tests cover:
- Current readiness from stored sessions and activities
- has_data distinguishes "never trained" from "recovered"
- Snapshots are immutable
- Timeline and export share the same snapshot semantics
- Ignored activities do not contribute
"""

from datetime import timedelta

import pytest

from liftlog.models.external_activity import ExternalActivityStorage
from liftlog.persistence.training_log import TrainingLogRepository
from liftlog.readiness.types import ActivityCategory
from liftlog.services.readiness_service import ReadinessService, current_readiness_from_snapshot


@pytest.fixture
def service(training_log, activity_store, fixed_now) -> ReadinessService:
    return ReadinessService(training_log, activity_store, clock=lambda: fixed_now)


class TestCurrentReadiness:
    """Test current fatigue and readiness computation."""

    def test_logged_sessions_produce_fatigue(self, service, config, fixed_now):
        current = service.compute_current_readiness(config)

        assert current.has_data is True
        assert current.computed_at == fixed_now
        assert current.fatigue.lower > 0
        assert current.fatigue.upper > 0
        assert set(current.readiness) == set(ActivityCategory)

    def test_empty_log_has_no_data(self, tmp_path, activity_store, config, fixed_now):
        service = ReadinessService(TrainingLogRepository(tmp_path / "none.json"), activity_store, clock=lambda: fixed_now)
        current = service.compute_current_readiness(config)

        assert current.has_data is False
        assert current.fatigue.is_zero()

    def test_ignored_activity_does_not_contribute(self, service, activity_store, config, make_activity):
        baseline = service.compute_current_readiness(config).fatigue

        activity_store.write(ExternalActivityStorage(activities=[make_activity("run", ignored=True)]))
        assert service.compute_current_readiness(config).fatigue == baseline

        service.set_external_activity_ignored("run", False)
        assert service.compute_current_readiness(config).fatigue.lower > baseline.lower

    def test_matches_timeline_latest(self, service, config):
        current = service.compute_current_readiness(config)
        timeline = service.build_timeline(None, config)

        assert timeline.latest == current.fatigue

    def test_snapshot_is_immutable(self, service, config):
        snapshot = service.snapshot(config)

        with pytest.raises(TypeError):
            snapshot.library[99] = None
        assert isinstance(snapshot.sessions, tuple)

    def test_pure_function_is_deterministic(self, service, config):
        snapshot = service.snapshot(config)
        assert current_readiness_from_snapshot(snapshot, 28) == current_readiness_from_snapshot(snapshot, 28)


class TestTimelineAndExport:
    """Test timeline and export through the service."""

    def test_window_days_override(self, service, config, fixed_now):
        timeline = service.build_timeline(3, config)

        assert timeline.window_start == (fixed_now - timedelta(days=2)).replace(hour=0)
        assert timeline.event_count == 2

    def test_export_uses_clock(self, service, config, fixed_now):
        document = service.export(3, config)

        assert document.metadata.exported_at == fixed_now.isoformat()
        assert document.metadata.event_count == 2
