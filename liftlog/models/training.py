"""Training log models.

The training log is written by the logging app as camelCase JSON
(`exerciseLibrary`, `trainings`, `durationSeconds`, ...). Models accept both the
camelCase aliases and snake_case field names.

Session dates are kept as raw strings: a malformed date must only drop that
one session from the fatigue timeline, not fail validation of the whole log.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BodyRegion(StrEnum):
    UPPER = "UPPER"
    LOWER = "LOWER"
    CORE = "CORE"
    FULL = "FULL"


class Tier(StrEnum):
    TIER_1 = "TIER_1"  # Main lift / heavy
    TIER_2 = "TIER_2"  # Assistance / volume
    TIER_3 = "TIER_3"  # Accessory / isolation


class Mechanics(StrEnum):
    COMPOUND = "COMPOUND"
    ISOLATION = "ISOLATION"


class MovementPattern(StrEnum):
    SQUAT = "SQUAT"
    HINGE = "HINGE"
    LUNGE = "LUNGE"
    PUSH_HORIZONTAL = "PUSH_HORIZONTAL"
    PUSH_VERTICAL = "PUSH_VERTICAL"
    PULL_HORIZONTAL = "PULL_HORIZONTAL"
    PULL_VERTICAL = "PULL_VERTICAL"
    CARRY = "CARRY"
    ISOLATION_ELBOW_FLEXION = "ISOLATION_ELBOW_FLEXION"
    ISOLATION_ELBOW_EXTENSION = "ISOLATION_ELBOW_EXTENSION"
    ISOLATION_SHOULDER_ABDUCTION = "ISOLATION_SHOULDER_ABDUCTION"
    ISOLATION_SHOULDER_FLEXION = "ISOLATION_SHOULDER_FLEXION"
    ISOLATION_SHOULDER_EXTENSION = "ISOLATION_SHOULDER_EXTENSION"
    ISOLATION_KNEE_FLEXION = "ISOLATION_KNEE_FLEXION"
    ISOLATION_KNEE_EXTENSION = "ISOLATION_KNEE_EXTENSION"
    ISOLATION_PLANTAR_FLEXION = "ISOLATION_PLANTAR_FLEXION"
    CORE_FLEXION = "CORE_FLEXION"
    CORE_STABILITY = "CORE_STABILITY"
    OTHER = "OTHER"
    # Legacy tags still present in older logs
    ISOLATION_ARMS = "ISOLATION_ARMS"
    CORE = "CORE"


class TargetMuscle(StrEnum):
    CHEST_UPPER = "CHEST_UPPER"
    CHEST_MIDDLE = "CHEST_MIDDLE"
    CHEST_LOWER = "CHEST_LOWER"
    LATS = "LATS"
    TRAPS_MID = "TRAPS_MID"
    TRAPS_UPPER = "TRAPS_UPPER"
    LOWER_BACK = "LOWER_BACK"
    DELT_FRONT = "DELT_FRONT"
    DELT_SIDE = "DELT_SIDE"
    DELT_REAR = "DELT_REAR"
    BICEPS = "BICEPS"
    TRICEPS_LONG = "TRICEPS_LONG"
    TRICEPS_LATERAL = "TRICEPS_LATERAL"
    FOREARMS = "FOREARMS"
    QUADS = "QUADS"
    HAMSTRINGS = "HAMSTRINGS"
    GLUTES = "GLUTES"
    CALVES = "CALVES"
    TIBIALIS = "TIBIALIS"
    ADDUCTORS = "ADDUCTORS"
    ABDUCTORS = "ABDUCTORS"
    HIPFLEXORS = "HIPFLEXORS"
    ABS = "ABS"
    OBLIQUES = "OBLIQUES"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ExerciseTags(_CamelModel):
    """Movement classification used to attribute load to fatigue channels."""

    region: BodyRegion | None = None
    pattern: MovementPattern | None = None
    tier: Tier | None = None
    mechanics: Mechanics | None = Field(default=None, alias="manualMechanics")
    primary_targets: list[TargetMuscle] = Field(default_factory=list)
    secondary_targets: list[TargetMuscle] = Field(default_factory=list)


class ExerciseDefinition(ExerciseTags):
    id: int
    name: str


class ExerciseSet(_CamelModel):
    """One logged set. `kg` is the external load; `rpe` is optional."""

    exercise_id: int | None = None
    exercise_name: str = ""
    set_number: int = 1
    kg: float = 0.0
    reps: int = 0
    rpe: float | None = None
    tags: ExerciseTags | None = None


class TrainingSession(_CamelModel):
    id: str
    date: str
    duration_seconds: int | None = None
    exercises: list[ExerciseSet] = Field(default_factory=list)


class TrainingLog(_CamelModel):
    exercise_library: list[ExerciseDefinition] = Field(default_factory=list)
    trainings: list[TrainingSession] = Field(default_factory=list)

    def library_by_id(self) -> dict[int, ExerciseDefinition]:
        return {item.id: item for item in self.exercise_library}
