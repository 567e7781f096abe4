"""Readiness configuration and calibration constants.

Every number the fatigue engine depends on lives here, either as a
user-facing setting on ReadinessConfig or as a calibration constant on
Calibration. Nothing downstream hard-codes a decay or load constant.

Out-of-range values are rejected (ValidationError) or clamped at this
boundary so the decay math never sees a non-positive multiplier or half-life.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from liftlog.config.settings import Settings


class TrainingExperience(StrEnum):
    NOVICE = "NOVICE"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


# High threshold scales with training experience; moderate and CNS max do not.
DEFAULT_HIGH_THRESHOLD: dict[TrainingExperience, float] = {
    TrainingExperience.NOVICE: 40.0,
    TrainingExperience.INTERMEDIATE: 50.0,
    TrainingExperience.ADVANCED: 60.0,
}
DEFAULT_MODERATE_THRESHOLD = 30.0
DEFAULT_CNS_MAX = 80.0


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    moderate: float = Field(default=DEFAULT_MODERATE_THRESHOLD, gt=0)
    high: float = Field(default=50.0, gt=0)
    cns_max: float = Field(default=DEFAULT_CNS_MAX, gt=0)

    @model_validator(mode="after")
    def check_ordering(self) -> Thresholds:
        if self.moderate > self.high:
            raise ValueError(f"moderate threshold ({self.moderate}) must not exceed high threshold ({self.high})")
        return self


class Calibration(BaseModel):
    """Numeric constants of the decay law, load curve and timing heuristics.

    Attributes:
        half_life_hours_lower: Half-life of the lower-body channel at multiplier 1.0
        half_life_hours_upper: Half-life of the upper-body channel at multiplier 1.0
        half_life_hours_systemic: Half-life of the systemic channel at multiplier 1.0
        ramp_lookahead_minutes: Width of the linear ramp drawn before each event
        set_base_load: Load of a set independent of its volume
        volume_coefficient: Scale applied to (kg * reps) ** volume_exponent
        volume_exponent: Shape of the volume curve (0 < exp <= 1 keeps it concave)
        reference_rpe: RPE at which the intensity factor equals 1.0
        intensity_exponent: Steepness of the RPE -> load scaling
        tier_multipliers: Load multiplier per exercise tier
        untiered_multiplier: Load multiplier when the tier is unknown
        experience_load_scale: Load multiplier per training experience
        compound_systemic_share: Systemic share of a compound set's load
        isolation_systemic_share: Systemic share of an isolation set's load
        core_systemic_share: Systemic share of a core set's load
        untagged_systemic_share: Systemic-only share for unclassified exercises
        default_session_duration_minutes: Assumed duration when a session has none
        default_session_start_hour: Local hour assumed for date-only sessions
        weekend_accrual_factor: Contribution scale for weekend events when weekends are ignored
        date_only_duration_tolerance_minutes: Duration tolerance for matching date-only sessions
    """

    model_config = ConfigDict(frozen=True)

    half_life_hours_lower: float = Field(default=30.0, gt=0)
    half_life_hours_upper: float = Field(default=24.0, gt=0)
    half_life_hours_systemic: float = Field(default=24.0, gt=0)
    ramp_lookahead_minutes: float = Field(default=120.0, ge=0)

    set_base_load: float = Field(default=2.0, ge=0)
    volume_coefficient: float = Field(default=0.15, ge=0)
    volume_exponent: float = Field(default=0.5, gt=0, le=1.0)
    reference_rpe: float = Field(default=7.0, gt=0)
    intensity_exponent: float = Field(default=1.5, ge=0)
    tier_multipliers: dict[str, float] = Field(
        default_factory=lambda: {"TIER_1": 1.5, "TIER_2": 1.2, "TIER_3": 0.8},
    )
    untiered_multiplier: float = Field(default=1.0, ge=0)
    experience_load_scale: dict[TrainingExperience, float] = Field(
        default_factory=lambda: {
            TrainingExperience.NOVICE: 1.1,
            TrainingExperience.INTERMEDIATE: 1.0,
            TrainingExperience.ADVANCED: 0.9,
        },
    )
    compound_systemic_share: float = Field(default=0.6, ge=0)
    isolation_systemic_share: float = Field(default=0.2, ge=0)
    core_systemic_share: float = Field(default=0.25, ge=0)
    untagged_systemic_share: float = Field(default=0.5, ge=0)

    default_session_duration_minutes: float = Field(default=60.0, gt=0)
    default_session_start_hour: int = Field(default=18, ge=0, le=23)
    weekend_accrual_factor: float = Field(default=0.0, ge=0, le=1.0)
    date_only_duration_tolerance_minutes: float = Field(default=10.0, ge=0)

    @field_validator("tier_multipliers")
    @classmethod
    def validate_tier_multipliers(cls, value: dict[str, float]) -> dict[str, float]:
        for tier, multiplier in value.items():
            if multiplier < 0:
                raise ValueError(f"tier multiplier for {tier} must be non-negative, got {multiplier}")
        return value

    def half_life_hours(self, channel: str) -> float:
        return float(getattr(self, f"half_life_hours_{channel}"))


class ReadinessConfig(BaseModel):
    """User-calibrated readiness settings plus calibration constants."""

    model_config = ConfigDict(frozen=True)

    recovery_speed_multiplier: float = Field(default=1.0, gt=0, le=5.0)
    default_rpe: float = 7.0
    thresholds: Thresholds = Field(default_factory=Thresholds)
    ignore_fatigue_on_weekends: bool = False
    allow_running_on_tired_legs: bool = False
    strict_run_blocking: bool = False
    training_experience: TrainingExperience = TrainingExperience.INTERMEDIATE
    calibration: Calibration = Field(default_factory=Calibration)

    @field_validator("default_rpe")
    @classmethod
    def clamp_default_rpe(cls, value: float) -> float:
        """Clamp the fallback RPE to the 1..10 scale."""
        return min(max(float(value), 1.0), 10.0)

    @classmethod
    def for_experience(cls, experience: TrainingExperience, **overrides: object) -> ReadinessConfig:
        """Build a config whose high threshold follows the experience level."""
        thresholds = overrides.pop("thresholds", None) or Thresholds(high=DEFAULT_HIGH_THRESHOLD[experience])
        return cls(training_experience=experience, thresholds=thresholds, **overrides)


def readiness_config_from_settings(settings: Settings) -> ReadinessConfig:
    """Create ReadinessConfig from application settings.

    Args:
        settings: Loaded application settings

    Returns:
        ReadinessConfig with experience-derived thresholds
    """
    return ReadinessConfig.for_experience(
        TrainingExperience(settings.training_experience),
        recovery_speed_multiplier=settings.recovery_speed_multiplier,
        default_rpe=settings.default_rpe,
        ignore_fatigue_on_weekends=settings.ignore_fatigue_on_weekends,
        allow_running_on_tired_legs=settings.allow_running_on_tired_legs,
        strict_run_blocking=settings.strict_run_blocking,
    )
