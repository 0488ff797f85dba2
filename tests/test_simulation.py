"""Tests for the frame loop and the interactive graph view session."""

from __future__ import annotations

import asyncio

import pytest

from secondbrain.graph import BrainGraph
from secondbrain.layout import Canvas, seed_layout
from secondbrain.models import Edge
from secondbrain.parser import parse_text
from secondbrain.simulation import GraphView, Simulation


@pytest.fixture
def graph() -> BrainGraph:
    return BrainGraph.build(
        [
            parse_text("concepts/second-brain.md", "---\ntitle: Second Brain\n---\nBack to [[welcome]]."),
            parse_text("orphan.md", "Nobody links here."),
            parse_text("welcome.md", "---\ntitle: Welcome\n---\nStart at [[Second Brain]]."),
        ]
    )


class TestSimulation:
    def test_tick_advances_and_notifies(self):
        sim = Simulation(seed_layout(["a", "b"]), [Edge(source="a", target="b")])
        frames = []
        unsubscribe = sim.subscribe(frames.append)

        sim.tick()
        sim.tick()
        unsubscribe()
        sim.tick()

        assert [f.frame for f in frames] == [1, 2]
        assert sim.state.frame == 3

    def test_failing_listener_does_not_stop_others(self):
        sim = Simulation(seed_layout(["a"]))
        seen = []

        def broken(_state):
            raise RuntimeError("boom")

        sim.subscribe(broken)
        sim.subscribe(seen.append)
        sim.tick()

        assert len(seen) == 1

    def test_set_state_with_new_nodes_rebuilds_springs(self):
        sim = Simulation(seed_layout(["a"]), [Edge(source="a", target="b")])
        sim.set_state(seed_layout(["a", "b"]))
        state = sim.tick()
        assert len(state) == 2
        assert state.frame == 1

    async def test_run_with_frame_limit(self):
        sim = Simulation(seed_layout(["a", "b"]))
        await sim.run(frame_interval=0, max_frames=5)
        assert sim.state.frame == 5

    async def test_no_frames_after_stop(self):
        sim = Simulation(seed_layout(["a", "b"]))

        sim.start(frame_interval=0.001)
        assert sim.running
        await asyncio.sleep(0.05)
        sim.stop()
        stopped_at = sim.state.frame

        await asyncio.sleep(0.05)

        assert stopped_at > 0
        assert sim.state.frame == stopped_at
        assert not sim.running

    async def test_start_twice_returns_same_task(self):
        sim = Simulation(seed_layout(["a"]))
        first = sim.start(frame_interval=0.001)
        assert sim.start(frame_interval=0.001) is first
        sim.stop()
        sim.stop()
        with pytest.raises(asyncio.CancelledError):
            await first


class TestGraphView:
    def test_seeds_every_note(self, graph):
        view = GraphView(graph)
        assert [n.id for n in view.state.nodes] == graph.ids()
        assert view.state.node("welcome").degree == graph.degree("welcome")

    def test_click_selects_node(self, graph):
        selected = []
        view = GraphView(graph, on_select=selected.append)
        x, y = view.state.position("welcome")

        view.pointer_down(x, y)
        result = view.pointer_up(x, y)

        assert result == "welcome"
        assert selected == ["welcome"]
        assert view.selected == "welcome"

    def test_drag_does_not_select(self, graph):
        selected = []
        view = GraphView(graph, on_select=selected.append)
        x, y = view.state.position("orphan")

        view.pointer_down(x, y)
        view.pointer_move(x + 30, y + 30)
        view.tick()
        result = view.pointer_up(x + 30, y + 30)

        assert result is None
        assert selected == []
        assert view.state.position("orphan") == (x + 30, y + 30)

    def test_close_notifies_once_and_drops_drag(self, graph):
        closed = []
        view = GraphView(graph, on_close=lambda: closed.append(True))
        x, y = view.state.position("welcome")
        view.pointer_down(x, y)

        view.close()
        view.close()

        assert closed == [True]
        assert view.closed
        assert view.state.pinned is None

    def test_resize_reseeds(self, graph):
        view = GraphView(graph)
        view.tick()
        view.resize(400, 300)

        assert view.state.canvas.width == 400
        assert view.state.frame == 0
        assert view.state == seed_layout(graph.ids(), Canvas(400, 300), graph.degrees())

    def test_resize_keeps_held_node_pinned(self, graph):
        view = GraphView(graph)
        x, y = view.state.position("welcome")
        view.pointer_down(x, y)

        view.resize(800, 600)
        held = view.state.position("welcome")
        view.tick()
        view.tick()

        assert view.state.pinned == "welcome"
        assert view.state.position("welcome") == held
        assert view.state.node("welcome").vx == 0.0

        view.pointer_move(120, 140)
        assert view.state.position("welcome") == (120, 140)
        assert view.pointer_up(120, 140) is None
        assert view.state.pinned is None

    def test_scene_marks_selected_and_hovered(self, graph):
        view = GraphView(graph, selected="welcome")
        x, y = view.state.position("orphan")
        view.pointer_move(x, y)

        scene = view.scene()
        styles = {c.id: c.style for c in scene.circles}

        assert styles == {"concepts--second-brain": "default", "orphan": "hovered", "welcome": "selected"}
        assert {label.text for label in scene.labels} == {"Welcome", "orphan"}
        assert len(scene.lines) == len(graph.edges)

    async def test_context_manager_runs_and_stops(self, graph):
        closed = []
        async with GraphView(graph, on_close=lambda: closed.append(True)) as view:
            assert view.simulation.running
            await asyncio.sleep(0.05)

        frame = view.state.frame
        await asyncio.sleep(0.05)

        assert frame > 0
        assert view.state.frame == frame
        assert not view.simulation.running
        assert closed == [True]

    async def test_start_after_close_is_ignored(self, graph):
        view = GraphView(graph)
        view.close()
        assert view.start() is None
        assert not view.simulation.running
