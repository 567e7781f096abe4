"""Versioned fatigue timeline export.

The export document is a contract for external analysis tools. Its layout is
fixed by SCHEMA_VERSION and does not change when decay or load constants do;
the constants used for a given export travel inside `metadata.config`.

    {
      "schema_version": "1.0",
      "metadata": {"exported_at", "total_data_points", "date_range": {"start", "end"},
                   "has_data", "event_count", "skipped_events", "config"},
      "graph_points": [{"timestamp", "timestamp_iso", "timestamp_readable",
                        "lower", "upper", "systemic"}, ...],
      "daily_end_values": {"YYYY-MM-DD": {"lower", "upper", "systemic"}, ...}
    }

`timestamp` is epoch milliseconds.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_core import PydanticSerializationError

from liftlog.metrics.types import FatigueTimeline, FatigueValues
from liftlog.models.readiness_config import ReadinessConfig

SCHEMA_VERSION = "1.0"
READABLE_FORMAT = "%Y-%m-%d %H:%M"


class ExportFailureReason(StrEnum):
    EMPTY_TIMELINE = "empty_timeline"
    IO_ERROR = "io_error"
    SERIALIZATION_ERROR = "serialization_error"


class TimelineExportError(Exception):
    """Raised when a timeline cannot be exported.

    The in-memory timeline is never modified by a failed export.
    """

    def __init__(self, reason: ExportFailureReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ChannelValues(BaseModel):
    lower: float
    upper: float
    systemic: float

    @classmethod
    def from_values(cls, values: FatigueValues) -> ChannelValues:
        return cls(lower=values.lower, upper=values.upper, systemic=values.systemic)


class ExportDateRange(BaseModel):
    start: str
    end: str


class ExportMetadata(BaseModel):
    exported_at: str
    total_data_points: int
    date_range: ExportDateRange
    has_data: bool
    event_count: int
    skipped_events: int
    config: dict[str, Any]


class ExportGraphPoint(BaseModel):
    timestamp: int
    timestamp_iso: str
    timestamp_readable: str
    lower: float
    upper: float
    systemic: float


class TimelineExport(BaseModel):
    schema_version: str = SCHEMA_VERSION
    metadata: ExportMetadata
    graph_points: list[ExportGraphPoint] = Field(default_factory=list)
    daily_end_values: dict[str, ChannelValues] = Field(default_factory=dict)


def _epoch_ms(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


def export_timeline(timeline: FatigueTimeline, config: ReadinessConfig, exported_at: datetime) -> TimelineExport:
    """Convert a timeline into the versioned export document.

    Args:
        timeline: Built fatigue timeline
        config: Config the timeline was built with
        exported_at: Export instant

    Returns:
        TimelineExport ready to serialize

    Raises:
        TimelineExportError: EMPTY_TIMELINE if the timeline has no samples
    """
    if not timeline.graph_points:
        raise TimelineExportError(ExportFailureReason.EMPTY_TIMELINE, "Timeline has no data points to export")

    points = [
        ExportGraphPoint(
            timestamp=_epoch_ms(timestamp),
            timestamp_iso=timestamp.isoformat(),
            timestamp_readable=timestamp.strftime(READABLE_FORMAT),
            lower=values.lower,
            upper=values.upper,
            systemic=values.systemic,
        )
        for timestamp, values in timeline.graph_points
    ]

    return TimelineExport(
        metadata=ExportMetadata(
            exported_at=exported_at.isoformat(),
            total_data_points=len(points),
            date_range=ExportDateRange(
                start=timeline.graph_points[0][0].isoformat(),
                end=timeline.graph_points[-1][0].isoformat(),
            ),
            has_data=timeline.has_data,
            event_count=timeline.event_count,
            skipped_events=timeline.skipped_events,
            config=config.model_dump(mode="json"),
        ),
        graph_points=points,
        daily_end_values={day: ChannelValues.from_values(v) for day, v in timeline.daily_end_values.items()},
    )


def serialize_export(export: TimelineExport) -> str:
    try:
        return export.model_dump_json(indent=2)
    except (PydanticSerializationError, ValueError) as e:
        raise TimelineExportError(ExportFailureReason.SERIALIZATION_ERROR, f"Failed to serialize export: {e}") from e


def write_timeline_export(export: TimelineExport, path: str | Path) -> Path:
    """Write the export as JSON, atomically replacing any existing file.

    Raises:
        TimelineExportError: SERIALIZATION_ERROR or IO_ERROR
    """
    target = Path(path)
    payload = serialize_export(export)

    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target.parent, prefix=f".{target.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(payload)
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error(f"[EXPORT] Failed to write timeline export to {target}: {e}")
        raise TimelineExportError(ExportFailureReason.IO_ERROR, f"Failed to write export to {target}: {e}") from e

    logger.info(f"[EXPORT] Wrote {export.metadata.total_data_points} data points to {target}")
    return target
