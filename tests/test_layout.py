"""
Layout tests: semicircle slots and the seeded scatter.

Run with: pytest tests/test_layout.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import math

import pytest

from bisect_viz.layout import (
    BASE_CIRCLE_RADIUS,
    BASE_PARTITION_DISTANCE,
    nodes_in_partition,
    calculate_x,
    calculate_y,
    partition_position,
    scatter_layout,
    semicircle_layout,
)


# ============================================================
# TEST 1: Semicircle slots
# ============================================================

class TestSemicircleSlots:
    """Slot geometry for the two partition arcs."""

    def test_partition_sizes(self):
        assert nodes_in_partition(0, 7) == 4
        assert nodes_in_partition(1, 7) == 3
        assert nodes_in_partition(0, 10) == 5
        assert nodes_in_partition(1, 10) == 5

    def test_first_slot_is_top_of_arc(self):
        """Rank 0 sits at angle pi/2 on both sides."""
        n = 10
        scale = n / 10
        radius = BASE_CIRCLE_RADIUS * scale
        half = BASE_PARTITION_DISTANCE * scale / 2
        assert calculate_x(0, 0, n) == pytest.approx(-half)
        assert calculate_y(0, 0, n) == pytest.approx(radius)
        assert calculate_x(0, 1, n) == pytest.approx(half)
        assert calculate_y(0, 1, n) == pytest.approx(radius)

    def test_last_slot_is_bottom_of_arc(self):
        n = 10
        radius = BASE_CIRCLE_RADIUS
        assert calculate_y(4, 0, n) == pytest.approx(-radius)
        assert calculate_y(4, 1, n) == pytest.approx(-radius)

    def test_arcs_bulge_outward(self):
        """Side 0 sweeps left of its center, side 1 right of its center."""
        n = 10
        half = BASE_PARTITION_DISTANCE / 2
        for rank in range(1, 4):
            assert calculate_x(rank, 0, n) < -half
            assert calculate_x(rank, 1, n) > half

    def test_all_slots_on_circle(self):
        n = 12
        scale = n / 10
        radius = BASE_CIRCLE_RADIUS * scale
        for side, center_x in ((0, -BASE_PARTITION_DISTANCE * scale / 2), (1, BASE_PARTITION_DISTANCE * scale / 2)):
            for rank in range(nodes_in_partition(side, n)):
                x, y = partition_position(rank, side, n)
                assert math.hypot(x - center_x, y) == pytest.approx(radius)

    def test_single_slot_side(self):
        """A side with one slot gets a finite position at the top of its arc."""
        x, y = partition_position(0, 1, 3)
        assert math.isfinite(x) and math.isfinite(y)
        assert y == pytest.approx(BASE_CIRCLE_RADIUS * 0.3)

    def test_scale_grows_with_node_count(self):
        assert abs(calculate_x(0, 1, 20)) == pytest.approx(2 * abs(calculate_x(0, 1, 10)))

    def test_semicircle_layout_ranks_in_order(self):
        order = ["a", "b", "c", "d"]
        partition = {"a": 0, "b": 1, "c": 0, "d": 1}
        positions = semicircle_layout(partition, order)
        assert positions["a"] == partition_position(0, 0, 4)
        assert positions["c"] == partition_position(1, 0, 4)
        assert positions["d"] == partition_position(1, 1, 4)


# ============================================================
# TEST 2: Scatter layout
# ============================================================

class TestScatterLayout:
    """Seeded force-directed start positions."""

    def test_deterministic(self):
        ids = [str(i) for i in range(8)]
        edges = [(str(i), str(i + 1)) for i in range(7)]
        first = scatter_layout(ids, edges, rng_seed=3)
        second = scatter_layout(ids, edges, rng_seed=3)
        assert first == second

    def test_every_node_placed_within_spread(self):
        ids = [str(i) for i in range(6)]
        positions = scatter_layout(ids, [("0", "1"), ("2", "3")], spread=100.0, rng_seed=0)
        assert set(positions) == set(ids)
        for x, y in positions.values():
            assert -100.0 <= x <= 100.0
            assert -100.0 <= y <= 100.0

    def test_empty(self):
        assert scatter_layout([], []) == {}

    def test_ignores_unknown_and_self_edges(self):
        positions = scatter_layout(["a", "b"], [("a", "zz"), ("a", "a")], rng_seed=1)
        assert set(positions) == {"a", "b"}
