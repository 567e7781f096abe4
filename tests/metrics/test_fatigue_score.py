"""Unit tests for session fatigue scoring and channel attribution.

Tests cover:
- Empty session -> all-zero fatigue
- Monotonic in load (kg * reps) and RPE
- Region routing (lower vs upper) via tags, pattern and target muscles
- Unknown exercises -> systemic-only contribution
- Default RPE fallback and clamping
- Determinism
"""

import pytest

from liftlog.metrics.attribution import (
    channel_shares,
    derive_region_from_targets,
    resolve_mechanics,
    resolve_region,
)
from liftlog.metrics.fatigue_score import compute_set_load, effective_rpe, score_session
from liftlog.models.readiness_config import Calibration, ReadinessConfig
from liftlog.models.training import (
    BodyRegion,
    ExerciseDefinition,
    ExerciseSet,
    ExerciseTags,
    Mechanics,
    MovementPattern,
    TargetMuscle,
    TrainingSession,
)

SQUAT = ExerciseDefinition(id=1, name="Back Squat", region=BodyRegion.LOWER, pattern=MovementPattern.SQUAT)
CURL = ExerciseDefinition(id=2, name="Curl", pattern=MovementPattern.ISOLATION_ELBOW_FLEXION)


def _session(*sets: ExerciseSet, session_id: str = "s1") -> TrainingSession:
    return TrainingSession(id=session_id, date="2025/01/14", exercises=list(sets))


class TestScoreSession:
    """Test whole-session scoring."""

    def test_empty_session_is_zero(self, config):
        assert score_session(_session(), {}, config).is_zero()

    def test_lower_body_session_loads_lower_and_systemic(self, config):
        values = score_session(_session(ExerciseSet(exercise_id=1, kg=100, reps=5, rpe=8)), {1: SQUAT}, config)
        assert values.lower > 0
        assert values.upper == 0
        assert values.systemic > 0

    def test_isolation_upper_routes_to_upper(self, config):
        values = score_session(_session(ExerciseSet(exercise_id=2, kg=15, reps=12)), {2: CURL}, config)
        assert values.upper > 0
        assert values.lower == 0
        # Isolation carries a smaller systemic share than compound work
        assert values.systemic == pytest.approx(values.upper * config.calibration.isolation_systemic_share)

    def test_unknown_exercise_is_systemic_only(self, config):
        values = score_session(_session(ExerciseSet(exercise_id=99, kg=50, reps=10)), {}, config)
        assert values.lower == 0
        assert values.upper == 0
        assert values.systemic > 0

    def test_inline_tags_win_over_library(self, config):
        inline = ExerciseTags(region=BodyRegion.UPPER)
        values = score_session(_session(ExerciseSet(exercise_id=1, kg=100, reps=5, tags=inline)), {1: SQUAT}, config)
        assert values.upper > 0
        assert values.lower == 0

    def test_sets_without_reps_contribute_nothing(self, config):
        assert score_session(_session(ExerciseSet(exercise_id=1, kg=100, reps=0)), {1: SQUAT}, config).is_zero()

    def test_deterministic(self, config):
        session = _session(
            ExerciseSet(exercise_id=1, kg=120, reps=3, rpe=9),
            ExerciseSet(exercise_id=2, kg=12, reps=15),
        )
        library = {1: SQUAT, 2: CURL}
        assert score_session(session, library, config) == score_session(session, library, config)

    def test_more_sets_more_fatigue(self, config):
        one = score_session(_session(ExerciseSet(exercise_id=1, kg=100, reps=5)), {1: SQUAT}, config)
        two = score_session(
            _session(ExerciseSet(exercise_id=1, kg=100, reps=5), ExerciseSet(exercise_id=1, kg=100, reps=5)),
            {1: SQUAT},
            config,
        )
        assert two.lower == pytest.approx(2 * one.lower)


class TestSetLoad:
    """Test the per-set load curve."""

    def test_monotonic_in_volume(self, config):
        light = compute_set_load(ExerciseSet(kg=60, reps=5, rpe=7), SQUAT, config)
        heavy = compute_set_load(ExerciseSet(kg=140, reps=5, rpe=7), SQUAT, config)
        assert heavy > light

    def test_monotonic_in_rpe(self, config):
        easy = compute_set_load(ExerciseSet(kg=100, reps=5, rpe=6), SQUAT, config)
        hard = compute_set_load(ExerciseSet(kg=100, reps=5, rpe=9.5), SQUAT, config)
        assert hard > easy

    def test_missing_rpe_uses_default(self):
        config = ReadinessConfig(default_rpe=9)
        assert effective_rpe(ExerciseSet(kg=100, reps=5), config) == 9

    def test_rpe_is_clamped(self, config):
        assert effective_rpe(ExerciseSet(kg=100, reps=5, rpe=14), config) == 10.0

    def test_default_rpe_clamped_at_config_boundary(self):
        assert ReadinessConfig(default_rpe=0).default_rpe == 1.0


class TestAttribution:
    """Test tag -> region and mechanics resolution."""

    def test_pattern_resolves_region(self):
        assert resolve_region(ExerciseTags(pattern=MovementPattern.HINGE)) == BodyRegion.LOWER

    def test_targets_resolve_full_body(self):
        assert derive_region_from_targets([TargetMuscle.QUADS, TargetMuscle.LATS]) == BodyRegion.FULL

    def test_no_tags_resolve_to_none(self):
        assert resolve_region(None) is None
        assert resolve_region(ExerciseTags()) is None

    def test_multiple_primary_targets_are_compound(self):
        tags = ExerciseTags(primary_targets=[TargetMuscle.QUADS, TargetMuscle.GLUTES])
        assert resolve_mechanics(tags) == Mechanics.COMPOUND

    def test_untagged_share_is_systemic_only(self):
        shares = channel_shares(None, Calibration())
        assert (shares.lower, shares.upper) == (0.0, 0.0)
        assert shares.systemic == Calibration().untagged_systemic_share
