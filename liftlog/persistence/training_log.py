"""Training log reader.

The training log is a camelCase JSON document written by the logging app:

    {"exerciseLibrary": [...], "trainings": [{"id": ..., "date": "2025/01/06", ...}]}

A missing file is an empty log. Individually invalid sessions or library
entries are skipped with a warning; a file that is not valid JSON raises
TrainingLogError.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from liftlog.models.training import ExerciseDefinition, TrainingLog, TrainingSession
from liftlog.persistence.errors import TrainingLogError


class TrainingLogRepository:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load_document(self) -> dict:
        if not self.path.exists():
            logger.info(f"[TRAINING_LOG] No training log at {self.path}, treating as empty")
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise TrainingLogError(f"Training log {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise TrainingLogError(f"Failed to read training log {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise TrainingLogError(f"Training log {self.path} must be a JSON object, got {type(data).__name__}")
        return data

    @staticmethod
    def _parse_sessions(document: dict) -> list[TrainingSession]:
        sessions: list[TrainingSession] = []
        for index, raw in enumerate(document.get("trainings") or []):
            try:
                sessions.append(TrainingSession.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"[TRAINING_LOG] Skipping invalid session at index {index}: {e.error_count()} error(s)")
        return sessions

    @staticmethod
    def _parse_library(document: dict) -> dict[int, ExerciseDefinition]:
        library: dict[int, ExerciseDefinition] = {}
        for index, raw in enumerate(document.get("exerciseLibrary") or []):
            try:
                definition = ExerciseDefinition.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"[TRAINING_LOG] Skipping invalid exercise definition at index {index}: {e.error_count()} error(s)")
                continue
            library[definition.id] = definition
        return library

    def read_sessions(self) -> list[TrainingSession]:
        """Read all valid training sessions."""
        return self._parse_sessions(self._load_document())

    def read_library(self) -> dict[int, ExerciseDefinition]:
        """Read the exercise library keyed by exercise id."""
        return self._parse_library(self._load_document())

    def read(self) -> TrainingLog:
        """Read sessions and library from a single load of the file."""
        document = self._load_document()
        return TrainingLog(
            exercise_library=list(self._parse_library(document).values()),
            trainings=self._parse_sessions(document),
        )
