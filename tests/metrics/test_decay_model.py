"""Unit tests for the fatigue decay model.

Tests cover:
- Zero elapsed time returns the input unchanged
- Half-life law (40 -> 20 -> 10 over two half-lives)
- Monotonic, non-negative decay; negative elapsed treated as zero
- Recovery speed multiplier
- Closed-form time_until inverse
- RAMP/SMOOTH mode selection at the lookahead boundaries
"""

from datetime import UTC, datetime, timedelta

import pytest

from liftlog.metrics.decay import DecayMode, DecayModel
from liftlog.metrics.types import FatigueValues
from liftlog.models.readiness_config import Calibration


@pytest.fixture
def model() -> DecayModel:
    return DecayModel(Calibration())


class TestDecay:
    """Test the exponential half-life law."""

    def test_zero_elapsed_is_identity(self, model):
        assert model.decay(42.5, timedelta(0)) == 42.5

    def test_negative_elapsed_is_treated_as_zero(self, model):
        assert model.decay(42.5, timedelta(hours=-3)) == 42.5

    def test_two_half_lives(self, model):
        """Systemic half-life is 24h: 40 -> 20 after 24h -> 10 after 48h."""
        assert model.decay(40.0, timedelta(hours=24)) == pytest.approx(20.0)
        assert model.decay(40.0, timedelta(hours=48)) == pytest.approx(10.0)

    def test_channel_selects_half_life(self, model):
        """Lower body recovers slower (30h half-life)."""
        assert model.decay(40.0, timedelta(hours=30), channel="lower") == pytest.approx(20.0)
        assert model.decay(40.0, timedelta(hours=30), channel="lower") > model.decay(40.0, timedelta(hours=30))

    def test_monotonic_and_non_negative(self, model):
        previous = 100.0
        for hours in range(1, 500, 7):
            value = model.decay(100.0, timedelta(hours=hours))
            assert 0.0 <= value <= previous
            previous = value

    def test_zero_stays_zero(self, model):
        assert model.decay(0.0, timedelta(hours=10)) == 0.0

    def test_recovery_speed_multiplier(self, model):
        """Multiplier 2.0 halves the effective half-life."""
        assert model.decay(40.0, timedelta(hours=12), recovery_speed_multiplier=2.0) == pytest.approx(20.0)

    def test_decay_values_per_channel(self, model):
        values = FatigueValues(lower=40.0, upper=40.0, systemic=40.0)
        decayed = model.decay_values(values, timedelta(hours=24))
        assert decayed.upper == pytest.approx(20.0)
        assert decayed.systemic == pytest.approx(20.0)
        assert decayed.lower > decayed.upper


class TestTimeUntil:
    """Test the closed-form inverse of decay."""

    def test_two_half_lives_to_quarter(self, model):
        assert model.time_until(40.0, 10.0).total_seconds() == pytest.approx(48 * 3600)

    def test_already_below_target(self, model):
        assert model.time_until(5.0, 10.0) == timedelta(0)

    def test_zero_target_is_unreachable(self, model):
        assert model.time_until(5.0, 0.0) is None

    def test_inverse_of_decay(self, model):
        elapsed = model.time_until(73.0, 21.0, recovery_speed_multiplier=1.3, channel="lower")
        assert model.decay(73.0, elapsed, 1.3, "lower") == pytest.approx(21.0)


class TestModeSelection:
    """Test RAMP window selection (lookahead 120 minutes)."""

    def test_no_next_event_is_smooth(self, model):
        assert model.select_mode(datetime(2025, 1, 1, tzinfo=UTC), None) == DecayMode.SMOOTH

    def test_inside_lookahead_is_ramp(self, model):
        event = datetime(2025, 1, 1, 18, 0, tzinfo=UTC)
        assert model.select_mode(event - timedelta(hours=1), event) == DecayMode.RAMP

    def test_window_bounds_are_exclusive(self, model):
        event = datetime(2025, 1, 1, 18, 0, tzinfo=UTC)
        assert model.select_mode(event - timedelta(hours=2), event) == DecayMode.SMOOTH
        assert model.select_mode(event, event) == DecayMode.SMOOTH

    def test_zero_lookahead_disables_ramp(self):
        model = DecayModel(Calibration(ramp_lookahead_minutes=0))
        event = datetime(2025, 1, 1, 18, 0, tzinfo=UTC)
        assert model.select_mode(event - timedelta(minutes=1), event) == DecayMode.SMOOTH

    def test_ramp_progress_is_clamped(self):
        anchor = FatigueValues(lower=10.0)
        peak = FatigueValues(lower=30.0)
        assert DecayModel.ramp(anchor, peak, 0.5).lower == pytest.approx(20.0)
        assert DecayModel.ramp(anchor, peak, -1.0).lower == pytest.approx(10.0)
        assert DecayModel.ramp(anchor, peak, 2.0).lower == pytest.approx(30.0)
