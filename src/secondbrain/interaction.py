"""Pointer interaction with the graph layout: hover, click-to-select, drag.

Drag protocol:

- pointer down on a node pins it where it is
- pointer move while pinned puts the node under the pointer (clamped to the
  canvas) with zero velocity, bypassing physics
- pointer up releases it at rest

A click is a down and up on the same node with no move in between. Only a
click selects; releasing a drag never does.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .config import NODE_RADIUS_BASE, NODE_RADIUS_MAX, NODE_RADIUS_PER_LINK
from .layout import GraphNode, LayoutState

log = logging.getLogger(__name__)


def node_radius(
    degree: int,
    base: float = NODE_RADIUS_BASE,
    per_link: float = NODE_RADIUS_PER_LINK,
    maximum: float = NODE_RADIUS_MAX,
) -> float:
    """Drawn and clickable radius of a node with the given connection count."""
    return min(maximum, base + per_link * degree)


def hit_test(state: LayoutState, x: float, y: float) -> GraphNode | None:
    """Return the first node (in layout order) whose disc contains (x, y).

    Pointers outside the canvas never hit anything.
    """
    if not state.canvas.contains(x, y):
        return None

    for node in state.nodes:
        radius = node_radius(node.degree)
        dx = x - node.x
        dy = y - node.y
        if dx * dx + dy * dy <= radius * radius:
            return node
    return None


class InteractionController:
    """Tracks pointer state and turns pointer events into layout changes.

    Methods take the current LayoutState and return the next one, leaving
    ownership of the state with the caller.
    """

    def __init__(self, on_select: Callable[[str], None] | None = None) -> None:
        self.on_select = on_select
        self.hovered: str | None = None
        self._pressed: str | None = None
        self._moved = False

    @property
    def dragging(self) -> str | None:
        """Id of the node held by the pointer, if any."""
        return self._pressed

    def pointer_down(self, state: LayoutState, x: float, y: float) -> LayoutState:
        node = hit_test(state, x, y)
        if node is None:
            return state

        self._pressed = node.id
        self._moved = False
        log.debug("Pinned %s", node.id)
        return state.pin(node.id)

    def pointer_move(self, state: LayoutState, x: float, y: float) -> LayoutState:
        if self._pressed is None:
            node = hit_test(state, x, y)
            self.hovered = node.id if node else None
            return state

        self._moved = True
        return state.pin(self._pressed, x, y)

    def pointer_up(self, state: LayoutState, x: float, y: float) -> tuple[LayoutState, str | None]:
        """Finish a click or drag.

        Returns:
            The next state and the id of the selected node, or None when the
            gesture was a drag or started off any node.
        """
        pressed, moved = self._pressed, self._moved
        self._pressed = None
        self._moved = False

        if pressed is None:
            return state, None

        state = state.release()

        if moved:
            log.debug("Released %s after drag", pressed)
            return state, None

        node = hit_test(state, x, y)
        if node is None or node.id != pressed:
            return state, None

        if self.on_select is not None:
            self.on_select(pressed)
        return state, pressed

    def cancel(self, state: LayoutState) -> LayoutState:
        """Abort any gesture in progress without selecting."""
        self._pressed = None
        self._moved = False
        self.hovered = None
        return state.release()
