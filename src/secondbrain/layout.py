"""Force-directed layout for the note graph.

The layout is a pure function of its inputs: ``step(state, springs, forces)``
returns a new ``LayoutState`` computed entirely from the previous one, so a
reader never observes a half-updated frame. Per frame, every node that is not
pinned feels:

- repulsion from every other node, ``repulsion / d^2`` along the line between them
- a zero-rest-length spring ``attraction * (other - self)`` per edge touching it
- a pull toward the canvas center, ``center * (center - self)``

and is integrated as ``v = (v + F) * damping; p += v`` then clamped into the
canvas minus its margin. Pairwise repulsion makes each step O(n^2).

Initial placement is deterministic (a ring seeded by index), so identical
input always produces identical layouts.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, fields, replace

from .config import (
    ATTRACTION_STRENGTH,
    CENTER_FORCE,
    DAMPING,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    LAYOUT_MARGIN,
    MIN_DISTANCE,
    REPULSION_STRENGTH,
    SEED_RING_FRACTION,
)
from .models import Edge

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Canvas:
    """Drawing area. Nodes stay within ``margin`` of every edge."""

    width: float = DEFAULT_CANVAS_WIDTH
    height: float = DEFAULT_CANVAS_HEIGHT
    margin: float = LAYOUT_MARGIN

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, max_x, min_y, max_y) of the area nodes may occupy."""
        cx, cy = self.center
        min_x, max_x = self.margin, self.width - self.margin
        min_y, max_y = self.margin, self.height - self.margin
        # Canvas narrower than two margins collapses to its center line
        if min_x > max_x:
            min_x = max_x = cx
        if min_y > max_y:
            min_y = max_y = cy
        return min_x, max_x, min_y, max_y

    def clamp(self, x: float, y: float) -> tuple[float, float]:
        min_x, max_x, min_y, max_y = self.bounds()
        return max(min_x, min(max_x, x)), max(min_y, min(max_y, y))

    def contains(self, x: float, y: float) -> bool:
        """True if (x, y) lies on the canvas (margins included)."""
        return 0 <= x <= self.width and 0 <= y <= self.height


@dataclass(frozen=True)
class ForceSettings:
    """Physics constants for one layout."""

    repulsion: float = REPULSION_STRENGTH
    attraction: float = ATTRACTION_STRENGTH
    center: float = CENTER_FORCE
    damping: float = DAMPING
    min_distance: float = MIN_DISTANCE

    def __post_init__(self) -> None:
        for f in fields(self):
            if not math.isfinite(getattr(self, f.name)):
                raise ValueError(f"Force setting {f.name} must be finite")
        if self.min_distance <= 0:
            raise ValueError("min_distance must be positive")

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, float]) -> ForceSettings:
        """Build settings from a mapping such as the ``forces`` block of .brainconfig."""
        known = {f.name for f in fields(cls)}
        values: dict[str, float] = {}
        for key, value in overrides.items():
            if key in known:
                values[key] = float(value)
            else:
                log.warning("Unknown force setting %r ignored", key)
        return cls(**values)


@dataclass(frozen=True)
class GraphNode:
    """A node's physical state for one frame."""

    id: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    degree: int = 0


@dataclass(frozen=True)
class LayoutState:
    """All node states for one frame, plus the drag pin.

    ``pinned`` names the node under drag; ``pin_position`` is where the
    pointer holds it. Both are None when nothing is dragged.
    """

    nodes: tuple[GraphNode, ...] = ()
    canvas: Canvas = field(default_factory=Canvas)
    pinned: str | None = None
    pin_position: tuple[float, float] | None = None
    frame: int = 0
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {node.id: i for i, node in enumerate(self.nodes)})

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def index_of(self, node_id: str) -> int | None:
        return self._index.get(node_id)

    def node(self, node_id: str) -> GraphNode | None:
        index = self._index.get(node_id)
        return None if index is None else self.nodes[index]

    def position(self, node_id: str) -> tuple[float, float] | None:
        node = self.node(node_id)
        return None if node is None else (node.x, node.y)

    def positions(self) -> dict[str, tuple[float, float]]:
        return {node.id: (node.x, node.y) for node in self.nodes}

    def kinetic_energy(self) -> float:
        return sum(0.5 * (node.vx * node.vx + node.vy * node.vy) for node in self.nodes)

    def pin(self, node_id: str, x: float | None = None, y: float | None = None) -> LayoutState:
        """Hold node_id under the pointer.

        Without coordinates the node is held where it is. With coordinates it
        moves there (clamped to the canvas) with zero velocity.
        """
        index = self._index.get(node_id)
        if index is None:
            return self

        node = self.nodes[index]
        if x is None or y is None:
            px, py = node.x, node.y
        else:
            px, py = self.canvas.clamp(x, y)

        nodes = list(self.nodes)
        nodes[index] = replace(node, x=px, y=py, vx=0.0, vy=0.0)
        return replace(self, nodes=tuple(nodes), pinned=node_id, pin_position=(px, py))

    def release(self) -> LayoutState:
        """Hand the pinned node back to physics from where it is, at rest."""
        if self.pinned is None:
            return self
        index = self._index.get(self.pinned)
        nodes = list(self.nodes)
        if index is not None:
            nodes[index] = replace(nodes[index], vx=0.0, vy=0.0)
        return replace(self, nodes=tuple(nodes), pinned=None, pin_position=None)


@dataclass(frozen=True)
class Springs:
    """Edge adjacency by node index.

    ``neighbors[i]`` holds one entry per edge touching node i, so a pair
    linked in both directions is pulled twice. Self-loops are dropped since
    they exert no force.
    """

    neighbors: tuple[tuple[int, ...], ...] = ()

    @classmethod
    def from_edges(cls, state: LayoutState, edges: Iterable[Edge]) -> Springs:
        adjacency: list[list[int]] = [[] for _ in state.nodes]
        for edge in edges:
            source = state.index_of(edge.source)
            target = state.index_of(edge.target)
            if source is None or target is None or source == target:
                continue
            adjacency[source].append(target)
            adjacency[target].append(source)
        return cls(tuple(tuple(n) for n in adjacency))


def seed_layout(
    node_ids: Sequence[str],
    canvas: Canvas | None = None,
    degrees: Mapping[str, int] | None = None,
) -> LayoutState:
    """Place nodes on a deterministic ring around the canvas center.

    Node i of n sits at angle 2*pi*i/n. The ring radius is a fraction of the
    smaller canvas side, stretched per index so consecutive nodes do not
    share an orbit.

    Args:
        node_ids: Node ids in display order.
        canvas: Drawing area; defaults to the standard canvas.
        degrees: Connection count per id, kept on each node for sizing.

    Returns:
        Initial LayoutState (all velocities zero).
    """
    canvas = canvas or Canvas()
    degrees = degrees or {}
    count = len(node_ids)
    cx, cy = canvas.center
    radius = min(canvas.width, canvas.height) * SEED_RING_FRACTION

    nodes = []
    for index, node_id in enumerate(node_ids):
        angle = 2 * math.pi * index / count
        x = cx + math.cos(angle) * radius * (0.5 + (index % 3) * 0.25)
        y = cy + math.sin(angle) * radius * (0.5 + (index % 5) * 0.15)
        nodes.append(GraphNode(id=node_id, x=x, y=y, degree=degrees.get(node_id, 0)))

    return LayoutState(nodes=tuple(nodes), canvas=canvas)


def step(state: LayoutState, springs: Springs, forces: ForceSettings | None = None) -> LayoutState:
    """Advance the layout by one frame.

    Pure: the result depends only on the arguments and ``state`` is left
    untouched. An empty state is returned as-is.

    Args:
        state: Current frame.
        springs: Edge adjacency built for this state's node order.
        forces: Physics constants.

    Returns:
        The next frame.
    """
    if state.is_empty:
        return state

    forces = forces or ForceSettings()
    nodes = state.nodes
    count = len(nodes)
    xs = [node.x for node in nodes]
    ys = [node.y for node in nodes]
    cx, cy = state.canvas.center

    updated: list[GraphNode] = []
    for i, node in enumerate(nodes):
        if node.id == state.pinned:
            px, py = state.pin_position or (node.x, node.y)
            updated.append(replace(node, x=px, y=py, vx=0.0, vy=0.0))
            continue

        fx = fy = 0.0

        for j in range(count):
            if j == i:
                continue
            dx = node.x - xs[j]
            dy = node.y - ys[j]
            dist = math.hypot(dx, dy)
            if dist < forces.min_distance:
                dist = forces.min_distance
            force = forces.repulsion / (dist * dist)
            fx += dx / dist * force
            fy += dy / dist * force

        if i < len(springs.neighbors):
            for j in springs.neighbors[i]:
                fx += (xs[j] - node.x) * forces.attraction
                fy += (ys[j] - node.y) * forces.attraction

        fx += (cx - node.x) * forces.center
        fy += (cy - node.y) * forces.center

        vx = (node.vx + fx) * forces.damping
        vy = (node.vy + fy) * forces.damping
        if not math.isfinite(vx):
            vx = 0.0
        if not math.isfinite(vy):
            vy = 0.0

        x, y = state.canvas.clamp(node.x + vx, node.y + vy)
        updated.append(GraphNode(id=node.id, x=x, y=y, vx=vx, vy=vy, degree=node.degree))

    return replace(state, nodes=tuple(updated), frame=state.frame + 1)


def run_layout(
    state: LayoutState,
    springs: Springs,
    steps: int,
    forces: ForceSettings | None = None,
) -> LayoutState:
    """Run ``steps`` frames headlessly and return the last one."""
    for _ in range(max(0, steps)):
        state = step(state, springs, forces)
    return state
