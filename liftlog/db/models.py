from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class ExternalActivityRow(Base):
    """Synced external activity.

    Stores:
    - id: Stable health-platform id (deduplication key)
    - start_time / end_time: Activity interval (UTC)
    - type: Normalized exercise type
    - lower / upper / systemic: Fatigue contribution per channel
    - ignored / ignore_reason: Exclusion from fatigue timelines
    - synced_at: First sync time, drives retention pruning
    - user_override: Set once the user toggled `ignored` by hand
    """

    __tablename__ = "external_activities"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)

    lower: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    upper: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    systemic: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    ignored: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    user_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_external_activities_end_time", "end_time"),
        Index("idx_external_activities_synced_at", "synced_at"),
    )


class ExternalActivityStoreMeta(Base):
    """Single-row table holding store-level settings co-located with the activities."""

    __tablename__ = "external_activity_store_meta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    retention_days: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    last_sync_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
