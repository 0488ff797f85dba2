"""Tests for hit testing, click-to-select and drag pinning."""

from __future__ import annotations

import pytest

from secondbrain.interaction import InteractionController, hit_test, node_radius
from secondbrain.layout import Canvas, GraphNode, LayoutState, Springs, step


@pytest.fixture
def state() -> LayoutState:
    return LayoutState(
        nodes=(
            GraphNode("a", 100, 100, degree=0),  # radius 6
            GraphNode("b", 104, 100, degree=5),  # radius 16
            GraphNode("c", 400, 300, degree=20),  # radius capped at 20
        ),
        canvas=Canvas(800, 600),
    )


class TestNodeRadius:
    @pytest.mark.parametrize("degree,expected", [(0, 6), (1, 8), (3, 12), (7, 20), (100, 20)])
    def test_radius_grows_with_degree_and_caps(self, degree, expected):
        assert node_radius(degree) == expected


class TestHitTest:
    def test_first_node_in_order_wins(self, state):
        assert hit_test(state, 103, 100).id == "a"

    def test_larger_radius_reaches_further(self, state):
        assert hit_test(state, 115, 100).id == "b"

    def test_boundary_is_inclusive(self, state):
        assert hit_test(state, 420, 300).id == "c"

    def test_miss(self, state):
        assert hit_test(state, 421, 300) is None
        assert hit_test(state, 700, 500) is None

    def test_outside_canvas_never_hits(self):
        edge_state = LayoutState(nodes=(GraphNode("edge", 2, 2, degree=3),), canvas=Canvas(800, 600))
        assert hit_test(edge_state, 1, 1).id == "edge"
        assert hit_test(edge_state, -1, -1) is None

    def test_empty_state(self):
        assert hit_test(LayoutState(), 10, 10) is None


class TestClick:
    def test_click_selects_and_notifies(self, state):
        selected = []
        controller = InteractionController(on_select=selected.append)

        state = controller.pointer_down(state, 400, 300)
        assert controller.dragging == "c"
        state, result = controller.pointer_up(state, 400, 300)

        assert result == "c"
        assert selected == ["c"]
        assert state.pinned is None
        assert controller.dragging is None

    def test_pointer_down_does_not_move_node(self, state):
        controller = InteractionController()
        after = controller.pointer_down(state, 405, 305)
        assert after.position("c") == (400, 300)
        assert after.pinned == "c"

    def test_click_on_empty_space_selects_nothing(self, state):
        controller = InteractionController()
        after = controller.pointer_down(state, 700, 500)
        assert after is state
        _, result = controller.pointer_up(after, 700, 500)
        assert result is None

    def test_release_over_other_node_selects_nothing(self, state):
        controller = InteractionController()
        state = controller.pointer_down(state, 400, 300)
        _, result = controller.pointer_up(state, 115, 100)
        assert result is None


class TestDrag:
    def test_drag_moves_node_and_never_selects(self, state):
        selected = []
        controller = InteractionController(on_select=selected.append)

        state = controller.pointer_down(state, 400, 300)
        state = controller.pointer_move(state, 300, 250)
        assert state.position("c") == (300, 250)

        state, result = controller.pointer_up(state, 300, 250)

        assert result is None
        assert selected == []
        assert state.position("c") == (300, 250)

    def test_dragged_node_ignores_physics(self, state):
        controller = InteractionController()
        springs = Springs.from_edges(state, [])

        state = controller.pointer_down(state, 400, 300)
        state = controller.pointer_move(state, 350, 280)
        for _ in range(5):
            state = step(state, springs)

        node = state.node("c")
        assert (node.x, node.y) == (350, 280)
        assert node.vx == 0 and node.vy == 0

    def test_drag_is_clamped_to_canvas(self, state):
        controller = InteractionController()
        state = controller.pointer_down(state, 400, 300)
        state = controller.pointer_move(state, 5000, -20)
        assert state.position("c") == (750, 50)

    def test_release_leaves_node_at_rest(self, state):
        controller = InteractionController()
        springs = Springs.from_edges(state, [])

        state = controller.pointer_down(state, 400, 300)
        state = controller.pointer_move(state, 500, 400)
        state = step(state, springs)
        state, _ = controller.pointer_up(state, 500, 400)

        node = state.node("c")
        assert (node.x, node.y) == (500, 400)
        assert node.vx == 0 and node.vy == 0
        assert state.pinned is None

    def test_cancel_releases_without_selecting(self, state):
        selected = []
        controller = InteractionController(on_select=selected.append)

        state = controller.pointer_down(state, 400, 300)
        state = controller.cancel(state)

        assert state.pinned is None
        assert controller.dragging is None
        _, result = controller.pointer_up(state, 400, 300)
        assert result is None
        assert selected == []


class TestHover:
    def test_move_without_press_updates_hover(self, state):
        controller = InteractionController()

        after = controller.pointer_move(state, 400, 300)
        assert controller.hovered == "c"
        assert after is state

        controller.pointer_move(state, 700, 500)
        assert controller.hovered is None
