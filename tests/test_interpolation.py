"""
Interpolation helper tests.

Envelope phases, easing endpoints, per-step decay bounds and color math.

Run with: pytest tests/test_interpolation.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from bisect_viz.config import Envelope
from bisect_viz.interpolation import (
    calc_interpolation_multiplier,
    ease_in_out_cubic,
    time_factor_decay,
    parse_hex_color,
    to_hex_color,
    lerp_color,
    lerp_hex,
    lerp_point,
)


# ============================================================
# TEST 1: Trapezoidal envelope
# ============================================================

class TestInterpolationMultiplier:
    """Rise, hold, fade, then zero."""

    ENV = Envelope(highlight=100, hold=50, fade=200)

    def test_starts_at_zero(self):
        assert calc_interpolation_multiplier(0, self.ENV) == 0.0

    def test_negative_progress_is_zero(self):
        assert calc_interpolation_multiplier(-10, self.ENV) == 0.0

    def test_linear_rise(self):
        assert calc_interpolation_multiplier(25, self.ENV) == pytest.approx(0.25)
        assert calc_interpolation_multiplier(50, self.ENV) == pytest.approx(0.5)

    def test_hold_is_one(self):
        for t in (100, 120, 149.9):
            assert calc_interpolation_multiplier(t, self.ENV) == 1.0, f"t={t}"

    def test_linear_fade(self):
        """Fade phase falls from 1 to 0 over 200 ms."""
        assert calc_interpolation_multiplier(150, self.ENV) == pytest.approx(1.0)
        assert calc_interpolation_multiplier(250, self.ENV) == pytest.approx(0.5)

    def test_zero_after_total(self):
        for t in (350, 351, 10_000):
            assert calc_interpolation_multiplier(t, self.ENV) == 0.0, f"t={t}"

    def test_always_in_unit_interval(self):
        for t in range(-50, 500, 7):
            m = calc_interpolation_multiplier(t, self.ENV)
            assert 0.0 <= m <= 1.0, f"multiplier {m} out of range at t={t}"

    def test_zero_length_envelope(self):
        """An all-zero envelope never lights up and never divides by zero."""
        env = Envelope()
        assert calc_interpolation_multiplier(0, env) == 0.0
        assert calc_interpolation_multiplier(5, env) == 0.0

    def test_rise_only(self):
        env = Envelope(highlight=1000)
        assert calc_interpolation_multiplier(500, env) == pytest.approx(0.5)
        assert calc_interpolation_multiplier(1000, env) == 0.0


# ============================================================
# TEST 2: Easing
# ============================================================

class TestEasing:
    """Cubic ease-in/out."""

    def test_endpoints(self):
        assert ease_in_out_cubic(0.0) == 0.0
        assert ease_in_out_cubic(1.0) == 1.0

    def test_midpoint(self):
        assert ease_in_out_cubic(0.5) == pytest.approx(0.5)

    def test_symmetric(self):
        for t in (0.1, 0.25, 0.4):
            assert ease_in_out_cubic(t) + ease_in_out_cubic(1 - t) == pytest.approx(1.0)

    def test_monotonic(self):
        values = [ease_in_out_cubic(i / 100) for i in range(101)]
        assert all(b >= a for a, b in zip(values, values[1:])), "Easing is not monotonic"


# ============================================================
# TEST 3: Time-factor decay
# ============================================================

class TestTimeFactorDecay:
    """Geometric decay keeping looped animations inside a budget."""

    def test_known_value(self):
        assert time_factor_decay(10000, 100) == pytest.approx(0.99)

    def test_bounds(self):
        for max_total, per_step in [(10000, 100), (30000, 2000), (100, 100), (10, 500)]:
            decay = time_factor_decay(max_total, per_step)
            assert 0.0 <= decay < 1.0, f"decay {decay} for ({max_total}, {per_step})"

    def test_step_larger_than_budget(self):
        assert time_factor_decay(10, 500) == 0.0

    def test_series_stays_within_budget(self):
        """Summing an unbounded number of decayed steps approaches the budget."""
        budget, slot = 10000.0, 100.0
        decay = time_factor_decay(budget, slot)
        total = 0.0
        for _ in range(5000):
            total += slot
            slot *= decay
        assert total <= budget + 1e-6


# ============================================================
# TEST 4: Colors and points
# ============================================================

class TestColorMath:
    """Hex parsing and linear interpolation."""

    def test_parse(self):
        assert parse_hex_color("#2B7CE9") == (0x2B, 0x7C, 0xE9)
        assert parse_hex_color("ff8080") == (255, 128, 128)

    def test_parse_rejects_short_form(self):
        with pytest.raises(ValueError):
            parse_hex_color("#FFF")

    def test_to_hex_is_uppercase(self):
        assert to_hex_color((43, 124, 233)) == "#2B7CE9"

    def test_lerp_endpoints(self):
        assert lerp_color((0, 0, 0), (255, 255, 255), 0.0) == (0, 0, 0)
        assert lerp_color((0, 0, 0), (255, 255, 255), 1.0) == (255, 255, 255)

    def test_lerp_clamps(self):
        assert lerp_color((0, 0, 0), (100, 100, 100), 2.0) == (100, 100, 100)
        assert lerp_color((0, 0, 0), (100, 100, 100), -1.0) == (0, 0, 0)

    def test_lerp_hex_midpoint(self):
        assert lerp_hex("#000000", "#FF0000", 0.5) == "#7F0000"

    def test_lerp_point(self):
        assert lerp_point((0.0, 0.0), (10.0, -20.0), 0.25) == (2.5, -5.0)
