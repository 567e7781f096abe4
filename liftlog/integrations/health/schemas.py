from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator


class HealthActivityRecord(BaseModel):
    """Exercise session as exported by the health platform.

    Accepts both snake_case and the platform's camelCase keys
    (`startTime`, `endTime`, `exerciseType`).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    start_time: datetime
    end_time: datetime
    exercise_type: str = "other"

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        if value is None or str(value).strip() == "":
            raise ValueError("activity id must not be empty")
        return str(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def ensure_aware(cls, value: datetime) -> datetime:
        """Naive timestamps from the platform export are UTC."""
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    @field_validator("exercise_type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> str:
        return str(value or "other").strip().lower()

    @classmethod
    def from_payload(cls, payload: dict) -> HealthActivityRecord:
        """Build a record from a raw payload with either key style."""
        return cls(
            id=payload.get("id") or payload.get("activityId") or "",
            start_time=payload.get("start_time") or payload.get("startTime"),
            end_time=payload.get("end_time") or payload.get("endTime"),
            exercise_type=payload.get("exercise_type") or payload.get("exerciseType") or payload.get("type") or "other",
        )
