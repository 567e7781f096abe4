"""Session fatigue scoring.

Converts one logged training session into raw per-channel fatigue:

    set_load = (set_base_load + volume_coefficient * (kg * reps) ** volume_exponent)
               * (rpe / reference_rpe) ** intensity_exponent
               * tier_multiplier
               * experience_load_scale

The load is monotonically increasing in kg * reps and in RPE. Each set's load
is split across channels by the attribution policy (see attribution.py) and
summed over the session.

Properties:
- Deterministic: Same session and config always produce the same values
- Empty session -> all-zero values
- Unknown or untagged exercise -> systemic-only contribution
"""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from liftlog.metrics.attribution import channel_shares, resolve_region, tier_multiplier
from liftlog.metrics.types import ZERO, FatigueValues
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.models.training import ExerciseDefinition, ExerciseSet, ExerciseTags, TrainingSession

MIN_RPE = 1.0
MAX_RPE = 10.0


def effective_rpe(exercise_set: ExerciseSet, config: ReadinessConfig) -> float:
    """Logged RPE, or the configured default when the set has none."""
    rpe = exercise_set.rpe if exercise_set.rpe is not None else config.default_rpe
    return min(max(float(rpe), MIN_RPE), MAX_RPE)


def compute_set_load(exercise_set: ExerciseSet, tags: ExerciseTags | None, config: ReadinessConfig) -> float:
    """Compute the scalar load of one set before channel attribution.

    Args:
        exercise_set: Logged set
        tags: Resolved exercise classification (may be None)
        config: Readiness configuration

    Returns:
        Non-negative set load (0.0 for sets without reps)
    """
    reps = max(int(exercise_set.reps), 0)
    if reps == 0:
        return 0.0

    cal = config.calibration
    volume = max(float(exercise_set.kg), 0.0) * reps
    volume_load = cal.set_base_load + cal.volume_coefficient * volume**cal.volume_exponent
    intensity_factor = (effective_rpe(exercise_set, config) / cal.reference_rpe) ** cal.intensity_exponent
    experience_scale = cal.experience_load_scale.get(config.training_experience, 1.0)

    return max(volume_load * intensity_factor * tier_multiplier(tags, cal) * experience_scale, 0.0)


def resolve_tags(
    exercise_set: ExerciseSet,
    library: Mapping[int, ExerciseDefinition] | None,
) -> ExerciseTags | None:
    """Inline tags win; otherwise look the exercise up in the library."""
    if exercise_set.tags is not None:
        return exercise_set.tags
    if library is None or exercise_set.exercise_id is None:
        return None
    return library.get(exercise_set.exercise_id)


def score_session(
    session: TrainingSession,
    library: Mapping[int, ExerciseDefinition] | None,
    config: ReadinessConfig,
) -> FatigueValues:
    """Calculate raw fatigue for one training session.

    Args:
        session: Logged training session
        library: Exercise library keyed by exercise id (may be None)
        config: Readiness configuration (default RPE, experience, calibration)

    Returns:
        FatigueValues summed over all sets, always >= 0
    """
    if not session.exercises:
        return ZERO

    lower = 0.0
    upper = 0.0
    systemic = 0.0
    untagged_sets = 0

    for exercise_set in session.exercises:
        tags = resolve_tags(exercise_set, library)
        load = compute_set_load(exercise_set, tags, config)
        if load == 0.0:
            continue

        shares = channel_shares(tags, config.calibration)
        if resolve_region(tags) is None:
            untagged_sets += 1

        lower += load * shares.lower
        upper += load * shares.upper
        systemic += load * shares.systemic

    if untagged_sets:
        logger.debug(
            f"[FATIGUE_SCORE] Session {session.id}: {untagged_sets} set(s) without exercise classification, "
            "using systemic-only contribution"
        )

    return FatigueValues(lower=lower, upper=upper, systemic=systemic)
