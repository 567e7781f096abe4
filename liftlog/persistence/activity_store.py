"""External activity store.

Holds synced external activities together with the store-level retention
setting and last sync time. Every read-modify-write (manual toggle, sync
merge, retention prune) runs inside `transaction()`, which holds a per-store
re-entrant lock so a toggle can never be lost to a concurrent sync.

Datetimes are stored as naive UTC and returned timezone-aware.
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from liftlog.db.models import ExternalActivityRow, ExternalActivityStoreMeta
from liftlog.db.session import session_scope
from liftlog.metrics.types import FatigueValues
from liftlog.models.external_activity import (
    DEFAULT_RETENTION_DAYS,
    ExternalActivityStorage,
    StoredExternalActivity,
    clamp_retention_days,
)

META_ROW_ID = 1


def _to_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_time(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _row_to_activity(row: ExternalActivityRow) -> StoredExternalActivity:
    return StoredExternalActivity(
        id=row.id,
        start_time=_from_db_time(row.start_time),
        end_time=_from_db_time(row.end_time),
        type=row.type,
        fatigue_contribution=FatigueValues(lower=row.lower, upper=row.upper, systemic=row.systemic),
        ignored=row.ignored,
        ignore_reason=row.ignore_reason,
        synced_at=_from_db_time(row.synced_at),
        user_override=row.user_override,
    )


def _activity_to_row(activity: StoredExternalActivity) -> ExternalActivityRow:
    return ExternalActivityRow(
        id=activity.id,
        start_time=_to_db_time(activity.start_time),
        end_time=_to_db_time(activity.end_time),
        type=activity.type,
        lower=activity.fatigue_contribution.lower,
        upper=activity.fatigue_contribution.upper,
        systemic=activity.fatigue_contribution.systemic,
        ignored=activity.ignored,
        ignore_reason=activity.ignore_reason,
        synced_at=_to_db_time(activity.synced_at),
        user_override=activity.user_override,
    )


class ExternalActivityStore:
    """SQLAlchemy-backed store with single-writer discipline."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Generator[ExternalActivityStore, None, None]:
        """Serialize a read-modify-write sequence on this store.

        Usage:
            with store.transaction():
                storage = store.read()
                ...
                store.write(updated)
        """
        with self._lock:
            yield self

    def read(self) -> ExternalActivityStorage:
        """Read all stored activities plus retention and last sync time."""
        with self._lock, session_scope(self._session_factory) as session:
            meta = session.get(ExternalActivityStoreMeta, META_ROW_ID)
            rows = session.execute(select(ExternalActivityRow).order_by(ExternalActivityRow.start_time)).scalars().all()
            return ExternalActivityStorage(
                retention_days=clamp_retention_days(meta.retention_days) if meta else DEFAULT_RETENTION_DAYS,
                last_sync_time=_from_db_time(meta.last_sync_time) if meta and meta.last_sync_time else None,
                activities=[_row_to_activity(row) for row in rows],
            )

    def write(self, storage: ExternalActivityStorage) -> None:
        """Replace the stored state with `storage`."""
        with self._lock, session_scope(self._session_factory) as session:
            session.execute(delete(ExternalActivityRow))
            session.add_all(_activity_to_row(activity) for activity in storage.activities)

            meta = session.get(ExternalActivityStoreMeta, META_ROW_ID)
            if meta is None:
                meta = ExternalActivityStoreMeta(id=META_ROW_ID)
                session.add(meta)
            meta.retention_days = clamp_retention_days(storage.retention_days)
            meta.last_sync_time = _to_db_time(storage.last_sync_time) if storage.last_sync_time else None

        logger.debug(f"[ACTIVITY_STORE] Wrote {len(storage.activities)} activities (retention={storage.retention_days}d)")

    def list_activities(self) -> list[StoredExternalActivity]:
        return self.read().activities

    def set_retention_days(self, days: int) -> int:
        """Update the retention window, clamped to 1..365 days."""
        clamped = clamp_retention_days(days)
        with self.transaction():
            storage = self.read()
            self.write(storage.model_copy(update={"retention_days": clamped}))
        return clamped
