"""External activity sync.

One sync run, all inside a single store transaction:
1. Fetch raw activities ending within the lookback window and map them
2. Insert activities whose id is not stored yet (never twice); new activities
   that overlap a logged session are stored ignored with the overlap reason.
   Activities that ended before the retention cutoff are skipped, so a
   lookback longer than retention never resurrects a pruned activity
3. Re-evaluate the overlap rule for stored activities without a user override
4. Prune activities whose synced_at is older than the retention window
5. Record last_sync_time

Manual toggles set user_override, so no later sync reverts a user decision.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo

from loguru import logger

from liftlog.integrations.health.mapper import map_health_payloads
from liftlog.integrations.health.source import ActivitySource
from liftlog.models.external_activity import (
    MANUAL_IGNORE_REASON,
    ExternalActivityStorage,
    StoredExternalActivity,
    clamp_retention_days,
)
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import TrainingSession
from liftlog.pairing.overlap import classify_overlap
from liftlog.persistence.activity_store import ExternalActivityStore
from liftlog.persistence.errors import ExternalActivityNotFoundError

DEFAULT_LOOKBACK_DAYS = 7


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync run.

    Attributes:
        new_count: Activities inserted by this sync
        ignored_count: Newly inserted activities ignored for overlapping a logged session
        duplicate_count: Fetched activities already stored (matched by id)
        reclassified_count: Stored activities whose automatic ignore state changed
        pruned_count: Activities removed by retention
        expired_count: Fetched activities skipped for ending before the retention cutoff
        total_stored: Activities stored after the sync
    """

    new_count: int = 0
    ignored_count: int = 0
    duplicate_count: int = 0
    reclassified_count: int = 0
    pruned_count: int = 0
    expired_count: int = 0
    total_stored: int = 0

    def summary(self) -> str:
        if self.new_count == 0:
            return f"No new activities ({self.duplicate_count} duplicates, {self.pruned_count} pruned)"
        return (
            f"Synced {self.new_count} activities ({self.ignored_count} ignored due to workout overlap, "
            f"{self.duplicate_count} duplicates, {self.pruned_count} pruned)"
        )


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    return now - timedelta(days=clamp_retention_days(retention_days))


def prune_expired(
    activities: Sequence[StoredExternalActivity],
    now: datetime,
    retention_days: int,
) -> tuple[list[StoredExternalActivity], int]:
    """Drop activities synced more than `retention_days` before `now`."""
    cutoff = retention_cutoff(now, retention_days)
    kept = [a for a in activities if a.synced_at >= cutoff]
    return kept, len(activities) - len(kept)


def merge_activities(
    storage: ExternalActivityStorage,
    fetched: Sequence[StoredExternalActivity],
    sessions: Sequence[TrainingSession],
    config: ReadinessConfig,
    tz: tzinfo,
    now: datetime,
) -> tuple[ExternalActivityStorage, SyncResult]:
    """Pure merge step of a sync: dedupe, classify overlap, prune.

    Args:
        storage: Current stored state
        fetched: Newly fetched activities (synced_at already set)
        sessions: Full training history used for overlap detection
        config: Readiness configuration
        tz: User timezone
        now: Sync time

    Returns:
        (new storage, SyncResult)
    """
    existing = storage.by_id()
    merged: list[StoredExternalActivity] = []
    reclassified = 0

    for activity in storage.activities:
        updated = classify_overlap(activity, sessions, config, tz)
        if updated.ignored != activity.ignored:
            reclassified += 1
        merged.append(updated)

    new_count = 0
    ignored_count = 0
    duplicates = 0
    expired = 0
    cutoff = retention_cutoff(now, storage.retention_days)
    seen: set[str] = set(existing)
    for activity in fetched:
        if activity.id in seen:
            duplicates += 1
            continue
        # An activity that ended before the cutoff was synced before it too, so it may have been pruned
        if activity.end_time < cutoff:
            expired += 1
            continue
        seen.add(activity.id)
        classified = classify_overlap(activity, sessions, config, tz)
        merged.append(classified)
        new_count += 1
        if classified.ignored:
            ignored_count += 1

    kept, pruned = prune_expired(merged, now, storage.retention_days)
    kept.sort(key=lambda a: (a.start_time, a.id))

    result = SyncResult(
        new_count=new_count,
        ignored_count=ignored_count,
        duplicate_count=duplicates,
        reclassified_count=reclassified,
        pruned_count=pruned,
        expired_count=expired,
        total_stored=len(kept),
    )
    return (
        ExternalActivityStorage(retention_days=storage.retention_days, last_sync_time=now, activities=kept),
        result,
    )


def sync_external_activities(
    store: ExternalActivityStore,
    source: ActivitySource,
    sessions: Sequence[TrainingSession],
    config: ReadinessConfig,
    tz: tzinfo,
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> SyncResult:
    """Fetch recent activities and merge them into the store.

    Args:
        store: External activity store
        source: Health-platform activity source
        sessions: Full training history used for overlap detection
        config: Readiness configuration
        tz: User timezone
        now: Sync time (timezone-aware)
        lookback_days: Fetch window length

    Returns:
        SyncResult with counts for the run
    """
    since = now - timedelta(days=lookback_days)
    payloads = source.fetch_recent_activities(since, now)
    fetched = [
        StoredExternalActivity.model_validate({**activity.model_dump(), "synced_at": now})
        for activity in map_health_payloads(payloads)
    ]

    with store.transaction():
        storage = store.read()
        updated, result = merge_activities(storage, fetched, sessions, config, tz, now)
        store.write(updated)

    logger.bind(lookback_days=lookback_days, retention_days=storage.retention_days).info(
        f"[HEALTH_SYNC] {result.summary()}; reclassified={result.reclassified_count} "
        f"expired={result.expired_count} total={result.total_stored}"
    )
    return result


def set_activity_ignored(store: ExternalActivityStore, activity_id: str, ignored: bool) -> StoredExternalActivity:
    """Manually include or exclude a stored activity.

    The activity is marked user_override so automatic overlap classification
    never touches it again.

    Raises:
        ExternalActivityNotFoundError: If no activity with this id is stored
    """
    with store.transaction():
        storage = store.read()
        activities = storage.by_id()
        if activity_id not in activities:
            raise ExternalActivityNotFoundError(activity_id)

        updated = activities[activity_id].model_copy(
            update={
                "ignored": ignored,
                "ignore_reason": MANUAL_IGNORE_REASON if ignored else None,
                "user_override": True,
            }
        )
        store.write(
            storage.model_copy(
                update={"activities": [updated if a.id == activity_id else a for a in storage.activities]}
            )
        )

    logger.info(f"[HEALTH_SYNC] Activity {activity_id} manually {'excluded' if ignored else 'included'}")
    return updated
