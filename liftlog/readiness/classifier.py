"""Readiness classification per activity category.

Each category gates on a weighted sum of fatigue channels:

| Category        | Metric                                            | CNS-gated |
|-----------------|---------------------------------------------------|-----------|
| ENDURANCE       | lower + systemic (systemic only on tired legs)    | no        |
| SWIMMING        | upper                                             | no        |
| LOWER_BODY_LIFT | lower                                             | yes       |
| UPPER_BODY_LIFT | upper                                             | yes       |

Verdict order: CNS burnout (systemic > cns_max, lifts only) -> BLOCKED;
metric > high -> BLOCKED; metric >= moderate -> CAUTION; else READY.
strict_run_blocking escalates an ENDURANCE CAUTION to BLOCKED.

time_until_fresh uses the same DecayModel as the timeline builder, so the
countdown matches the chart.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from liftlog.metrics.decay import DecayModel
from liftlog.metrics.types import FatigueValues
from liftlog.models.readiness_config import ReadinessConfig
from liftlog.readiness.types import ActivityCategory, ActivityReadiness, ReadinessStatus

READY_MESSAGE = "Ready to go"
BLOCKED_MESSAGE = "Blocked - Rest required"
CNS_BURNOUT_MESSAGE = "CNS burnout - Full rest required"

# Bisection bounds for multi-channel metrics
MAX_SEARCH_HOURS = 24.0 * 365
SEARCH_TOLERANCE_SECONDS = 1.0


@dataclass(frozen=True)
class CategoryRule:
    """Classification rule for one activity category.

    Attributes:
        weights: Channel -> weight of the gating metric
        caution_message: Guidance shown for the CAUTION verdict
        cns_gated: Blocked outright when systemic exceeds cns_max
        tired_legs_weights: Replacement weights when allow_running_on_tired_legs is set
        strict_escalation: CAUTION becomes BLOCKED when strict_run_blocking is set
    """

    weights: dict[str, float]
    caution_message: str
    cns_gated: bool = False
    tired_legs_weights: dict[str, float] | None = None
    strict_escalation: bool = False

    def metric_weights(self, config: ReadinessConfig) -> dict[str, float]:
        if config.allow_running_on_tired_legs and self.tired_legs_weights is not None:
            return self.tired_legs_weights
        return self.weights


CATEGORY_RULES: dict[ActivityCategory, CategoryRule] = {
    ActivityCategory.ENDURANCE: CategoryRule(
        weights={"lower": 1.0, "systemic": 1.0},
        tired_legs_weights={"systemic": 1.0},
        caution_message="Caution - Easy Zone 2 only",
        strict_escalation=True,
    ),
    ActivityCategory.SWIMMING: CategoryRule(
        weights={"upper": 1.0},
        caution_message="Caution - Easy pace only",
    ),
    ActivityCategory.LOWER_BODY_LIFT: CategoryRule(
        weights={"lower": 1.0},
        caution_message="Caution - Light work only",
        cns_gated=True,
    ),
    ActivityCategory.UPPER_BODY_LIFT: CategoryRule(
        weights={"upper": 1.0},
        caution_message="Caution - Light work only",
        cns_gated=True,
    ),
}


@dataclass(frozen=True)
class _Target:
    weights: dict[str, float]
    limit: float


def weighted_metric(values: FatigueValues, weights: dict[str, float]) -> float:
    return sum(values.channel(channel) * weight for channel, weight in weights.items())


def _decayed_metric(
    values: FatigueValues,
    weights: dict[str, float],
    elapsed: timedelta,
    config: ReadinessConfig,
    decay_model: DecayModel,
) -> float:
    decayed = decay_model.decay_values(values, elapsed, config.recovery_speed_multiplier)
    return weighted_metric(decayed, weights)


def _time_until_target(
    values: FatigueValues,
    target: _Target,
    config: ReadinessConfig,
    decay_model: DecayModel,
) -> timedelta:
    """Smallest non-negative delta such that the decayed weighted metric <= limit."""
    active = {c: w for c, w in target.weights.items() if w > 0 and values.channel(c) > 0}
    if weighted_metric(values, active) <= target.limit:
        return timedelta(0)

    if len(active) == 1:
        ((channel, weight),) = active.items()
        result = decay_model.time_until(
            values.channel(channel),
            target.limit / weight,
            config.recovery_speed_multiplier,
            channel,
        )
        return result if result is not None else timedelta(hours=MAX_SEARCH_HOURS)

    # Sum of decaying exponentials is monotonic: bracket, then bisect
    lo = 0.0
    hi = 1.0
    while hi < MAX_SEARCH_HOURS and _decayed_metric(values, active, timedelta(hours=hi), config, decay_model) > target.limit:
        lo = hi
        hi *= 2.0
    hi = min(hi, MAX_SEARCH_HOURS)

    while (hi - lo) * 3600.0 > SEARCH_TOLERANCE_SECONDS:
        mid = (lo + hi) / 2.0
        if _decayed_metric(values, active, timedelta(hours=mid), config, decay_model) > target.limit:
            lo = mid
        else:
            hi = mid
    return timedelta(hours=hi)


def time_until_fresh(
    category: ActivityCategory,
    current: FatigueValues,
    config: ReadinessConfig,
    decay_model: DecayModel | None = None,
) -> timedelta:
    """Time until the category's metric decays to `moderate` (and systemic to `cns_max` when CNS-gated).

    Args:
        category: Activity category
        current: Current fatigue values
        config: Readiness configuration
        decay_model: Decay model (defaults to one built from config.calibration)

    Returns:
        Non-negative timedelta; timedelta(0) if the targets are already met
    """
    model = decay_model or DecayModel(config.calibration)
    rule = CATEGORY_RULES[category]

    targets = [_Target(weights=rule.metric_weights(config), limit=config.thresholds.moderate)]
    if rule.cns_gated:
        targets.append(_Target(weights={"systemic": 1.0}, limit=config.thresholds.cns_max))

    return max(_time_until_target(current, target, config, model) for target in targets)


def classify(
    category: ActivityCategory,
    current: FatigueValues,
    config: ReadinessConfig,
    decay_model: DecayModel | None = None,
) -> ActivityReadiness:
    """Classify readiness for one activity category.

    Args:
        category: Activity category to classify
        current: Current (smooth) fatigue values
        config: Readiness configuration with thresholds and flags
        decay_model: Decay model shared with the timeline builder

    Returns:
        ActivityReadiness with status, message and countdown (None when READY)
    """
    rule = CATEGORY_RULES[category]
    thresholds = config.thresholds
    metric = weighted_metric(current, rule.metric_weights(config))

    if rule.cns_gated and current.systemic > thresholds.cns_max:
        status, message = ReadinessStatus.BLOCKED, CNS_BURNOUT_MESSAGE
    elif metric > thresholds.high:
        status, message = ReadinessStatus.BLOCKED, BLOCKED_MESSAGE
    elif metric >= thresholds.moderate:
        if rule.strict_escalation and config.strict_run_blocking:
            status, message = ReadinessStatus.BLOCKED, BLOCKED_MESSAGE
        else:
            status, message = ReadinessStatus.CAUTION, rule.caution_message
    else:
        return ActivityReadiness(status=ReadinessStatus.READY, message=READY_MESSAGE, metric=metric)

    # A metric sitting exactly on `moderate` is CAUTION but already at its target
    countdown = time_until_fresh(category, current, config, decay_model)
    return ActivityReadiness(
        status=status,
        message=message,
        time_until_fresh=countdown if countdown > timedelta(0) else None,
        metric=metric,
    )


def classify_all(
    current: FatigueValues,
    config: ReadinessConfig,
    decay_model: DecayModel | None = None,
) -> dict[ActivityCategory, ActivityReadiness]:
    model = decay_model or DecayModel(config.calibration)
    return {category: classify(category, current, config, model) for category in ActivityCategory}
