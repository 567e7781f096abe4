"""Readiness service.

Entry point for every consumer (API, CLI, refresher). Each call takes an
immutable ReadinessSnapshot of (sessions, library, activities, config, now)
and runs the pure engine over it, so concurrent builds never share mutable
state.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from types import MappingProxyType
from typing import TYPE_CHECKING

from loguru import logger

from liftlog.export.timeline_export import TimelineExport, export_timeline
from liftlog.integrations.health.source import ActivitySource
from liftlog.integrations.health.sync import SyncResult, set_activity_ignored, sync_external_activities
from liftlog.metrics.decay import DecayModel
from liftlog.metrics.events import collect_events
from liftlog.metrics.timeline import DEFAULT_CADENCE, FatigueTimelineBuilder
from liftlog.metrics.types import FatigueTimeline, FatigueValues
from liftlog.models.external_activity import StoredExternalActivity
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import ExerciseDefinition, TrainingSession
from liftlog.persistence.activity_store import ExternalActivityStore
from liftlog.persistence.training_log import TrainingLogRepository
from liftlog.readiness.classifier import classify_all
from liftlog.readiness.types import ActivityCategory, ActivityReadiness

if TYPE_CHECKING:
    from liftlog.config.settings import Settings

DEFAULT_WINDOW_DAYS = 28


@dataclass(frozen=True)
class ReadinessSnapshot:
    sessions: tuple[TrainingSession, ...]
    library: Mapping[int, ExerciseDefinition]
    activities: tuple[StoredExternalActivity, ...]
    config: ReadinessConfig
    now: datetime


@dataclass(frozen=True)
class CurrentReadiness:
    """Current fatigue and per-category verdicts.

    Attributes:
        fatigue: Smooth fatigue at `computed_at`
        readiness: Verdict per activity category
        has_data: False when no event fell inside the window
        computed_at: Instant the values refer to
    """

    fatigue: FatigueValues
    readiness: dict[ActivityCategory, ActivityReadiness]
    has_data: bool
    computed_at: datetime


def build_timeline_from_snapshot(
    snapshot: ReadinessSnapshot,
    window_days: int,
    tz: tzinfo = UTC,
    cadence: timedelta = DEFAULT_CADENCE,
) -> FatigueTimeline:
    """Build the fatigue timeline for a snapshot. Pure and deterministic."""
    collected = collect_events(snapshot.sessions, snapshot.library, snapshot.activities, snapshot.config, tz)
    builder = FatigueTimelineBuilder(snapshot.config, tz=tz, cadence=cadence)
    return builder.build(collected.events, snapshot.now, window_days, skipped_events=collected.skipped)


def current_readiness_from_snapshot(
    snapshot: ReadinessSnapshot,
    window_days: int,
    tz: tzinfo = UTC,
) -> CurrentReadiness:
    """Current fatigue and readiness for a snapshot. Pure and deterministic."""
    config = snapshot.config
    decay_model = DecayModel(config.calibration)
    collected = collect_events(snapshot.sessions, snapshot.library, snapshot.activities, config, tz)
    builder = FatigueTimelineBuilder(config, tz=tz, decay_model=decay_model)

    start = builder.window_start(snapshot.now, window_days)
    has_data = any(start <= e.timestamp <= snapshot.now for e in collected.events)
    fatigue = builder.current(collected.events, snapshot.now, window_days)

    return CurrentReadiness(
        fatigue=fatigue,
        readiness=classify_all(fatigue, config, decay_model),
        has_data=has_data,
        computed_at=snapshot.now,
    )


class ReadinessService:
    """Reads stored data and runs the fatigue engine over it.

    Args:
        training_log: Training log repository
        activity_store: External activity store
        tz: User timezone for calendar-day bucketing
        cadence: Timeline sample cadence
        window_days: Default trailing window
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        training_log: TrainingLogRepository,
        activity_store: ExternalActivityStore,
        tz: tzinfo = UTC,
        cadence: timedelta = DEFAULT_CADENCE,
        window_days: int = DEFAULT_WINDOW_DAYS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.training_log = training_log
        self.activity_store = activity_store
        self.tz = tz
        self.cadence = cadence
        self.window_days = window_days
        self._clock = clock or (lambda: datetime.now(UTC))

    def now(self) -> datetime:
        return self._clock()

    def snapshot(self, config: ReadinessConfig, now: datetime | None = None) -> ReadinessSnapshot:
        """Take an immutable snapshot of sessions, library and activities."""
        log = self.training_log.read()
        return ReadinessSnapshot(
            sessions=tuple(log.trainings),
            library=MappingProxyType(log.library_by_id()),
            activities=tuple(self.activity_store.list_activities()),
            config=config,
            now=now or self.now(),
        )

    def compute_current_readiness(self, config: ReadinessConfig, now: datetime | None = None) -> CurrentReadiness:
        snapshot = self.snapshot(config, now)
        result = current_readiness_from_snapshot(snapshot, self.window_days, self.tz)
        logger.debug(
            f"[READINESS] lower={result.fatigue.lower:.1f} upper={result.fatigue.upper:.1f} "
            f"systemic={result.fatigue.systemic:.1f} has_data={result.has_data}"
        )
        return result

    def build_timeline(
        self,
        window_days: int | None,
        config: ReadinessConfig,
        now: datetime | None = None,
    ) -> FatigueTimeline:
        snapshot = self.snapshot(config, now)
        return build_timeline_from_snapshot(snapshot, window_days or self.window_days, self.tz, self.cadence)

    def export(
        self,
        window_days: int | None,
        config: ReadinessConfig,
        now: datetime | None = None,
    ) -> TimelineExport:
        """Build a timeline and convert it to the versioned export document."""
        moment = now or self.now()
        timeline = self.build_timeline(window_days, config, moment)
        return export_timeline(timeline, config, exported_at=moment)

    def list_external_activities(self) -> list[StoredExternalActivity]:
        return self.activity_store.list_activities()

    def set_external_activity_ignored(self, activity_id: str, ignored: bool) -> StoredExternalActivity:
        return set_activity_ignored(self.activity_store, activity_id, ignored)

    def sync(
        self,
        source: ActivitySource,
        config: ReadinessConfig,
        lookback_days: int,
        now: datetime | None = None,
    ) -> SyncResult:
        """Sync external activities against the full training history."""
        return sync_external_activities(
            self.activity_store,
            source,
            self.training_log.read_sessions(),
            config,
            self.tz,
            now or self.now(),
            lookback_days,
        )


def create_readiness_service(settings: Settings, activity_store: ExternalActivityStore) -> ReadinessService:
    """Build a ReadinessService from application settings."""
    return ReadinessService(
        training_log=TrainingLogRepository(settings.training_log_path),
        activity_store=activity_store,
        tz=settings.tzinfo,
        cadence=timedelta(minutes=settings.sample_cadence_minutes),
        window_days=settings.timeline_window_days,
    )
