"""Tests for the force-directed layout."""

from __future__ import annotations

import math

import pytest

from secondbrain.layout import (
    Canvas,
    ForceSettings,
    GraphNode,
    LayoutState,
    Springs,
    run_layout,
    seed_layout,
    step,
)
from secondbrain.models import Edge


def _assert_finite_and_inside(state: LayoutState) -> None:
    min_x, max_x, min_y, max_y = state.canvas.bounds()
    for node in state.nodes:
        assert math.isfinite(node.x) and math.isfinite(node.y)
        assert math.isfinite(node.vx) and math.isfinite(node.vy)
        assert min_x <= node.x <= max_x
        assert min_y <= node.y <= max_y


class TestCanvas:
    def test_bounds_respect_margin(self):
        assert Canvas(800, 600, 50).bounds() == (50, 750, 50, 550)

    def test_narrow_canvas_collapses_to_center(self):
        canvas = Canvas(width=60, height=600, margin=50)
        min_x, max_x, _, _ = canvas.bounds()
        assert min_x == max_x == 30
        assert canvas.clamp(0, 300) == (30, 300)

    def test_contains(self):
        canvas = Canvas(800, 600)
        assert canvas.contains(0, 0)
        assert canvas.contains(800, 600)
        assert not canvas.contains(-1, 10)
        assert not canvas.contains(10, 601)


class TestForceSettings:
    def test_defaults(self):
        forces = ForceSettings()
        assert forces.repulsion == 5000
        assert forces.attraction == 0.01
        assert forces.center == 0.01
        assert forces.damping == 0.9

    @pytest.mark.parametrize("field", ["repulsion", "attraction", "center", "damping"])
    def test_rejects_non_finite(self, field):
        with pytest.raises(ValueError):
            ForceSettings(**{field: float("nan")})

    def test_rejects_non_positive_min_distance(self):
        with pytest.raises(ValueError):
            ForceSettings(min_distance=0)

    def test_from_overrides_ignores_unknown_keys(self):
        forces = ForceSettings.from_overrides({"repulsion": 100, "gravity": 3})
        assert forces.repulsion == 100.0
        assert forces.attraction == 0.01


class TestSeed:
    def test_deterministic(self):
        ids = ["a", "b", "c", "d", "e"]
        assert seed_layout(ids) == seed_layout(ids)

    def test_ring_positions(self):
        state = seed_layout(["a", "b", "c", "d"], Canvas(800, 600))
        # radius = 0.3 * min(800, 600) = 180
        assert state.position("a") == pytest.approx((400 + 180 * 0.5, 300))
        assert state.position("b") == pytest.approx((400, 300 + 180 * 0.65))
        assert state.position("c") == pytest.approx((400 - 180 * 1.0, 300 + 180 * 0.0), abs=1e-9)

    def test_starts_at_rest_with_degrees(self):
        state = seed_layout(["a", "b"], degrees={"a": 4})
        assert state.kinetic_energy() == 0
        assert state.node("a").degree == 4
        assert state.node("b").degree == 0
        assert state.frame == 0

    def test_empty(self):
        state = seed_layout([])
        assert state.is_empty
        assert len(state) == 0


class TestStep:
    def test_empty_state_is_unchanged(self):
        state = LayoutState()
        assert step(state, Springs()) is state

    def test_pure(self):
        state = seed_layout(["a", "b", "c"])
        springs = Springs.from_edges(state, [Edge(source="a", target="b")])
        before = state.nodes

        after = step(state, springs)

        assert state.nodes == before
        assert state.frame == 0
        assert after.frame == 1
        assert after.nodes != before

    def test_single_node_settles_at_center(self):
        state = seed_layout(["solo"])
        state = run_layout(state, Springs.from_edges(state, []), 500)
        assert state.position("solo") == pytest.approx((400, 300), abs=1e-3)

    def test_two_linked_nodes_reach_equilibrium(self):
        # repulsion/d^2 = d * (attraction + center/2)  =>  d = (5000 / 0.015) ** (1/3)
        expected = (5000 / 0.015) ** (1 / 3)
        state = seed_layout(["a", "b"])
        springs = Springs.from_edges(state, [Edge(source="a", target="b")])

        state = run_layout(state, springs, 1000)

        (ax, ay), (bx, by) = state.position("a"), state.position("b")
        assert math.dist((ax, ay), (bx, by)) == pytest.approx(expected, abs=0.5)
        assert ((ax + bx) / 2, (ay + by) / 2) == pytest.approx((400, 300), abs=0.5)
        assert state.kinetic_energy() < 1e-6

    def test_coincident_nodes_stay_finite(self):
        nodes = (GraphNode("a", 400, 300), GraphNode("b", 400, 300), GraphNode("c", 400.5, 300))
        state = LayoutState(nodes=nodes)
        state = run_layout(state, Springs.from_edges(state, []), 50)
        _assert_finite_and_inside(state)

    def test_huge_constants_stay_finite_and_inside(self):
        forces = ForceSettings(repulsion=1e308, attraction=1e10, center=1e10)
        state = seed_layout([str(i) for i in range(6)])
        edges = [Edge(source="0", target="1"), Edge(source="2", target="3")]
        state = run_layout(state, Springs.from_edges(state, edges), 20, forces)
        _assert_finite_and_inside(state)

    def test_nodes_stay_inside_margins(self):
        state = seed_layout([f"n{i}" for i in range(20)], Canvas(300, 200))
        state = run_layout(state, Springs.from_edges(state, []), 100)
        _assert_finite_and_inside(state)


class TestPinning:
    def test_pin_clamps_and_zeroes_velocity(self):
        state = seed_layout(["a", "b"])
        state = step(state, Springs.from_edges(state, []))

        pinned = state.pin("a", 10, 10)

        assert pinned.pinned == "a"
        assert pinned.pin_position == (50, 50)
        assert pinned.node("a").x == 50 and pinned.node("a").y == 50
        assert pinned.node("a").vx == 0 and pinned.node("a").vy == 0

    def test_pinned_node_ignores_physics(self):
        state = seed_layout(["a", "b", "c"]).pin("a", 200, 200)
        springs = Springs.from_edges(state, [Edge(source="a", target="b")])

        state = run_layout(state, springs, 10)

        assert state.position("a") == (200, 200)
        assert state.node("a").vx == 0 and state.node("a").vy == 0
        assert state.position("b") != seed_layout(["a", "b", "c"]).position("b")

    def test_pin_without_coordinates_holds_in_place(self):
        state = seed_layout(["a"])
        assert state.pin("a").position("a") == state.position("a")

    def test_release_resumes_physics_at_rest(self):
        state = seed_layout(["a", "b"]).pin("a", 200, 200)
        released = state.release()

        assert released.pinned is None
        assert released.pin_position is None
        assert released.position("a") == (200, 200)
        assert released.kinetic_energy() == 0

        moved = step(released, Springs.from_edges(released, []))
        assert moved.position("a") != (200, 200)

    def test_unknown_node_is_ignored(self):
        state = seed_layout(["a"])
        assert state.pin("ghost", 1, 1) is state
        assert state.release() is state


class TestSprings:
    def test_drops_self_loops_and_unknown_nodes(self):
        state = seed_layout(["a", "b"])
        springs = Springs.from_edges(
            state,
            [Edge(source="a", target="a"), Edge(source="a", target="ghost"), Edge(source="a", target="b")],
        )
        assert springs.neighbors == ((1,), (0,))

    def test_reciprocal_links_pull_twice(self):
        state = seed_layout(["a", "b"])
        springs = Springs.from_edges(state, [Edge(source="a", target="b"), Edge(source="b", target="a")])
        assert springs.neighbors == ((1, 1), (0, 0))


def test_run_layout_zero_steps():
    state = seed_layout(["a"])
    assert run_layout(state, Springs.from_edges(state, []), 0) is state
