"""Exercise tag -> fatigue channel attribution policy.

Attribution is a set of lookup tables so new movement taxonomies can be added
by extending a table, without touching the score, decay or timeline code.

Resolution order for a set's body region:
1. Explicit region tag
2. Movement pattern table
3. Derivation from primary target muscles
4. Unknown -> systemic-only fallback
"""

from __future__ import annotations

from dataclasses import dataclass

from liftlog.models.readiness_config import Calibration
from liftlog.models.training import BodyRegion, ExerciseTags, Mechanics, MovementPattern, TargetMuscle


@dataclass(frozen=True)
class RegionSplit:
    """Fraction of a set's load attributed to the lower and upper channels."""

    lower: float
    upper: float


REGION_SPLITS: dict[BodyRegion, RegionSplit] = {
    BodyRegion.LOWER: RegionSplit(lower=1.0, upper=0.0),
    BodyRegion.UPPER: RegionSplit(lower=0.0, upper=1.0),
    BodyRegion.FULL: RegionSplit(lower=0.7, upper=0.5),
    BodyRegion.CORE: RegionSplit(lower=0.0, upper=0.0),
}

PATTERN_REGIONS: dict[MovementPattern, BodyRegion] = {
    MovementPattern.SQUAT: BodyRegion.LOWER,
    MovementPattern.HINGE: BodyRegion.LOWER,
    MovementPattern.LUNGE: BodyRegion.LOWER,
    MovementPattern.ISOLATION_KNEE_FLEXION: BodyRegion.LOWER,
    MovementPattern.ISOLATION_KNEE_EXTENSION: BodyRegion.LOWER,
    MovementPattern.ISOLATION_PLANTAR_FLEXION: BodyRegion.LOWER,
    MovementPattern.PUSH_HORIZONTAL: BodyRegion.UPPER,
    MovementPattern.PUSH_VERTICAL: BodyRegion.UPPER,
    MovementPattern.PULL_HORIZONTAL: BodyRegion.UPPER,
    MovementPattern.PULL_VERTICAL: BodyRegion.UPPER,
    MovementPattern.ISOLATION_ELBOW_FLEXION: BodyRegion.UPPER,
    MovementPattern.ISOLATION_ELBOW_EXTENSION: BodyRegion.UPPER,
    MovementPattern.ISOLATION_SHOULDER_ABDUCTION: BodyRegion.UPPER,
    MovementPattern.ISOLATION_SHOULDER_FLEXION: BodyRegion.UPPER,
    MovementPattern.ISOLATION_SHOULDER_EXTENSION: BodyRegion.UPPER,
    MovementPattern.ISOLATION_ARMS: BodyRegion.UPPER,
    MovementPattern.CARRY: BodyRegion.FULL,
    MovementPattern.CORE_FLEXION: BodyRegion.CORE,
    MovementPattern.CORE_STABILITY: BodyRegion.CORE,
    MovementPattern.CORE: BodyRegion.CORE,
}

PATTERN_MECHANICS: dict[MovementPattern, Mechanics] = {
    MovementPattern.SQUAT: Mechanics.COMPOUND,
    MovementPattern.HINGE: Mechanics.COMPOUND,
    MovementPattern.LUNGE: Mechanics.COMPOUND,
    MovementPattern.PUSH_HORIZONTAL: Mechanics.COMPOUND,
    MovementPattern.PUSH_VERTICAL: Mechanics.COMPOUND,
    MovementPattern.PULL_HORIZONTAL: Mechanics.COMPOUND,
    MovementPattern.PULL_VERTICAL: Mechanics.COMPOUND,
    MovementPattern.CARRY: Mechanics.COMPOUND,
    MovementPattern.ISOLATION_ELBOW_FLEXION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_ELBOW_EXTENSION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_SHOULDER_ABDUCTION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_SHOULDER_FLEXION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_SHOULDER_EXTENSION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_KNEE_FLEXION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_KNEE_EXTENSION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_PLANTAR_FLEXION: Mechanics.ISOLATION,
    MovementPattern.ISOLATION_ARMS: Mechanics.ISOLATION,
}

LOWER_BODY_TARGETS: frozenset[TargetMuscle] = frozenset({
    TargetMuscle.QUADS,
    TargetMuscle.HAMSTRINGS,
    TargetMuscle.GLUTES,
    TargetMuscle.CALVES,
    TargetMuscle.TIBIALIS,
    TargetMuscle.ADDUCTORS,
    TargetMuscle.ABDUCTORS,
    TargetMuscle.HIPFLEXORS,
})

UPPER_BODY_TARGETS: frozenset[TargetMuscle] = frozenset({
    TargetMuscle.CHEST_UPPER,
    TargetMuscle.CHEST_MIDDLE,
    TargetMuscle.CHEST_LOWER,
    TargetMuscle.LATS,
    TargetMuscle.TRAPS_MID,
    TargetMuscle.TRAPS_UPPER,
    TargetMuscle.LOWER_BACK,
    TargetMuscle.DELT_FRONT,
    TargetMuscle.DELT_SIDE,
    TargetMuscle.DELT_REAR,
    TargetMuscle.BICEPS,
    TargetMuscle.TRICEPS_LONG,
    TargetMuscle.TRICEPS_LATERAL,
    TargetMuscle.FOREARMS,
})

CORE_TARGETS: frozenset[TargetMuscle] = frozenset({TargetMuscle.ABS, TargetMuscle.OBLIQUES})


@dataclass(frozen=True)
class ChannelShares:
    """Fractions of one set's load credited to each channel."""

    lower: float
    upper: float
    systemic: float


def derive_region_from_targets(primary_targets: list[TargetMuscle]) -> BodyRegion | None:
    """Derive the body region from primary target muscles.

    Args:
        primary_targets: Primary target muscles of the exercise

    Returns:
        FULL when both lower and upper targets are present, otherwise the
        matching region, or None if nothing can be derived
    """
    if not primary_targets:
        return None

    has_lower = any(t in LOWER_BODY_TARGETS for t in primary_targets)
    has_upper = any(t in UPPER_BODY_TARGETS for t in primary_targets)
    has_core = any(t in CORE_TARGETS for t in primary_targets)

    if has_lower and has_upper:
        return BodyRegion.FULL
    if has_lower:
        return BodyRegion.LOWER
    if has_upper:
        return BodyRegion.UPPER
    if has_core:
        return BodyRegion.CORE
    return None


def resolve_region(tags: ExerciseTags | None) -> BodyRegion | None:
    if tags is None:
        return None
    if tags.region is not None:
        return tags.region
    if tags.pattern is not None and tags.pattern in PATTERN_REGIONS:
        return PATTERN_REGIONS[tags.pattern]
    return derive_region_from_targets(tags.primary_targets)


def resolve_mechanics(tags: ExerciseTags) -> Mechanics:
    if tags.mechanics is not None:
        return tags.mechanics
    if tags.pattern is not None and tags.pattern in PATTERN_MECHANICS:
        return PATTERN_MECHANICS[tags.pattern]
    if tags.secondary_targets or len(tags.primary_targets) > 1:
        return Mechanics.COMPOUND
    return Mechanics.ISOLATION


def channel_shares(tags: ExerciseTags | None, calibration: Calibration) -> ChannelShares:
    """Look up how one set of this exercise is split across channels.

    Args:
        tags: Exercise classification (None when the exercise is unknown)
        calibration: Calibration constants with systemic shares

    Returns:
        ChannelShares; unknown or unclassifiable exercises get a systemic-only share
    """
    region = resolve_region(tags)
    if tags is None or region is None:
        return ChannelShares(lower=0.0, upper=0.0, systemic=calibration.untagged_systemic_share)

    split = REGION_SPLITS[region]
    if region == BodyRegion.CORE:
        systemic = calibration.core_systemic_share
    elif resolve_mechanics(tags) == Mechanics.COMPOUND:
        systemic = calibration.compound_systemic_share
    else:
        systemic = calibration.isolation_systemic_share

    return ChannelShares(lower=split.lower, upper=split.upper, systemic=systemic)


def tier_multiplier(tags: ExerciseTags | None, calibration: Calibration) -> float:
    if tags is None or tags.tier is None:
        return calibration.untiered_multiplier
    return calibration.tier_multipliers.get(tags.tier.value, calibration.untiered_multiplier)
