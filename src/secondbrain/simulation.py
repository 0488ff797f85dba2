"""Frame loop driving the layout, and the interactive graph view session.

The loop runs one ``layout.step`` per frame on the asyncio event loop. Each
frame replaces the layout state wholesale, so renderers and pointer handlers
always see a complete frame. Stopping cancels the task; nothing is scheduled
afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from .config import FRAME_INTERVAL
from .graph import BrainGraph
from .interaction import InteractionController
from .layout import Canvas, ForceSettings, LayoutState, Springs, seed_layout, step
from .models import Edge
from .render import Scene, build_scene

log = logging.getLogger(__name__)

FrameListener = Callable[[LayoutState], None]


class Simulation:
    """Owns the current LayoutState and advances it once per frame."""

    def __init__(
        self,
        state: LayoutState,
        edges: Iterable[Edge] = (),
        forces: ForceSettings | None = None,
    ) -> None:
        self.forces = forces or ForceSettings()
        self._edges = tuple(edges)
        self._state = state
        self._springs = Springs.from_edges(state, self._edges)
        self._node_ids = tuple(node.id for node in state.nodes)
        self._listeners: list[FrameListener] = []
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> LayoutState:
        return self._state

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_state(self, state: LayoutState) -> None:
        """Replace the current frame (used by pointer handling and resizes)."""
        node_ids = tuple(node.id for node in state.nodes)
        if node_ids != self._node_ids:
            self._springs = Springs.from_edges(state, self._edges)
            self._node_ids = node_ids
        self._state = state

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """Call listener with every new frame. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def tick(self) -> LayoutState:
        """Advance one frame and notify listeners."""
        self._state = step(self._state, self._springs, self.forces)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                log.exception("Frame listener %r failed", listener)
        return self._state

    async def run(self, frame_interval: float = FRAME_INTERVAL, max_frames: int | None = None) -> None:
        """Tick every frame_interval seconds until cancelled (or max_frames ticks)."""
        frames = 0
        while max_frames is None or frames < max_frames:
            self.tick()
            frames += 1
            await asyncio.sleep(frame_interval)

    def start(self, frame_interval: float = FRAME_INTERVAL) -> asyncio.Task:
        """Schedule the frame loop on the running event loop."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self.run(frame_interval))
        log.debug("Simulation started (%d nodes)", len(self._state))
        return self._task

    def stop(self) -> None:
        """Cancel the frame loop. Safe to call repeatedly."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            log.debug("Simulation stopped at frame %d", self._state.frame)
        self._task = None


class GraphView:
    """An interactive graph visualization over a built BrainGraph.

    The host feeds pointer events and reads ``scene()`` to draw. It is told
    about selections through ``on_select(note_id)`` and about teardown
    through ``on_close()``.
    """

    def __init__(
        self,
        graph: BrainGraph,
        canvas: Canvas | None = None,
        forces: ForceSettings | None = None,
        on_select: Callable[[str], None] | None = None,
        on_close: Callable[[], None] | None = None,
        selected: str | None = None,
    ) -> None:
        self.graph = graph
        self.selected = selected
        self._on_select = on_select
        self._on_close = on_close
        self._closed = False
        self.interaction = InteractionController(on_select=self._handle_select)
        self.simulation = Simulation(self._seed(canvas or Canvas()), graph.edges, forces)

    def _seed(self, canvas: Canvas) -> LayoutState:
        return seed_layout(self.graph.ids(), canvas, self.graph.degrees())

    def _handle_select(self, note_id: str) -> None:
        self.selected = note_id
        if self._on_select is not None:
            self._on_select(note_id)

    @property
    def state(self) -> LayoutState:
        return self.simulation.state

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, frame_interval: float = FRAME_INTERVAL) -> asyncio.Task | None:
        if self._closed:
            log.debug("Ignoring start on a closed graph view")
            return None
        return self.simulation.start(frame_interval)

    def close(self) -> None:
        """Tear down: stop the loop, drop any drag, notify the host once."""
        if self._closed:
            return
        self._closed = True
        self.simulation.stop()
        self.simulation.set_state(self.interaction.cancel(self.simulation.state))
        if self._on_close is not None:
            self._on_close()

    async def __aenter__(self) -> GraphView:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def resize(self, width: float, height: float) -> None:
        """Adopt a new canvas size; nodes are re-seeded for it.

        A node held by the pointer stays pinned at its new seed position.
        """
        canvas = self.state.canvas
        state = self._seed(Canvas(width=width, height=height, margin=canvas.margin))
        if self.interaction.dragging is not None:
            state = state.pin(self.interaction.dragging)
        self.simulation.set_state(state)

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        self.simulation.set_state(self.interaction.pointer_down(self.state, x, y))

    def pointer_move(self, x: float, y: float) -> None:
        self.simulation.set_state(self.interaction.pointer_move(self.state, x, y))

    def pointer_up(self, x: float, y: float) -> str | None:
        state, selected = self.interaction.pointer_up(self.state, x, y)
        self.simulation.set_state(state)
        return selected

    def tick(self) -> LayoutState:
        return self.simulation.tick()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def scene(self) -> Scene:
        titles = {note.id: note.title for note in self.graph}
        return build_scene(
            self.state,
            self.simulation.edges,
            titles=titles,
            selected=self.selected,
            hovered=self.interaction.hovered,
        )
