"""Health-platform activity sources.

The platform client itself lives outside this package; anything that can
return recent exercise-session payloads satisfies ActivitySource.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class ActivitySourceError(RuntimeError):
    """Raised when a source cannot deliver activities."""


class ActivitySource(Protocol):
    def fetch_recent_activities(self, since: datetime, until: datetime) -> list[dict[str, Any]]:
        """Return raw exercise-session payloads that end within [since, until]."""
        ...


class JsonFileActivitySource:
    """Reads an exported JSON file of exercise sessions.

    The file holds either a list of payloads or an object with an
    `activities` list.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> list[dict[str, Any]]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ActivitySourceError(f"Activity export not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise ActivitySourceError(f"Failed to read activity export {self.path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("activities", [])
        if not isinstance(data, list):
            raise ActivitySourceError(f"Activity export {self.path} must contain a list of activities")
        return [item for item in data if isinstance(item, dict)]

    def fetch_recent_activities(self, since: datetime, until: datetime) -> list[dict[str, Any]]:
        payloads = self._load()
        recent: list[dict[str, Any]] = []
        for payload in payloads:
            end = _payload_end_time(payload)
            # Unparsable payloads are passed through so the mapper reports them
            if end is None or since <= end <= until:
                recent.append(payload)
        logger.info(f"[HEALTH_SOURCE] Read {len(payloads)} activities from {self.path}, {len(recent)} in sync window")
        return recent


def _payload_end_time(payload: dict[str, Any]) -> datetime | None:
    raw = payload.get("end_time") or payload.get("endTime")
    if raw is None:
        return None
    try:
        return _parse_aware(raw)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_aware(raw: Any) -> datetime:
    if isinstance(raw, int | float):
        # Epoch milliseconds or seconds
        return datetime.fromtimestamp(raw / 1000 if raw > 1e11 else raw, tz=UTC)
    value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
