"""Drawing adapter for the graph view.

``build_scene`` turns a layout frame into plain shapes (edge lines, node
circles sized by connection count, labels for the selected and hovered
nodes). Hosts draw the scene however they like; ``render_svg`` is the
built-in headless renderer, using Jinja2 with inline templates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from jinja2 import BaseLoader, Environment, select_autoescape

from .interaction import node_radius
from .layout import LayoutState
from .models import Edge

NodeStyle = Literal["selected", "hovered", "default"]

# Label baseline sits this far above the node's circle
LABEL_OFFSET = 8.0

DEFAULT_THEME: dict[str, str] = {
    "background": "#1e1e2e",
    "edge": "#45475a",
    "node": "#89b4fa",
    "selected": "#f5c2e7",
    "hovered": "#cba6f7",
    "text": "#cdd6f4",
}


@dataclass(frozen=True)
class Line:
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Circle:
    id: str
    x: float
    y: float
    radius: float
    style: NodeStyle = "default"


@dataclass(frozen=True)
class Label:
    id: str
    text: str
    x: float
    y: float


@dataclass(frozen=True)
class Scene:
    width: float
    height: float
    lines: tuple[Line, ...] = ()
    circles: tuple[Circle, ...] = ()
    labels: tuple[Label, ...] = ()


def build_scene(
    state: LayoutState,
    edges: Iterable[Edge],
    titles: Mapping[str, str] | None = None,
    selected: str | None = None,
    hovered: str | None = None,
) -> Scene:
    """Describe one frame as shapes.

    Edges whose endpoints are not in the layout are skipped. Selected takes
    precedence over hovered when both name the same node.
    """
    titles = titles or {}

    lines = []
    for edge in edges:
        source = state.node(edge.source)
        target = state.node(edge.target)
        if source is None or target is None:
            continue
        lines.append(Line(edge.source, edge.target, source.x, source.y, target.x, target.y))

    circles = []
    labels = []
    for node in state.nodes:
        radius = node_radius(node.degree)
        if node.id == selected:
            style: NodeStyle = "selected"
        elif node.id == hovered:
            style = "hovered"
        else:
            style = "default"
        circles.append(Circle(node.id, node.x, node.y, radius, style))

        if style != "default":
            labels.append(Label(node.id, titles.get(node.id, node.id), node.x, node.y - radius - LABEL_OFFSET))

    return Scene(
        width=state.canvas.width,
        height=state.canvas.height,
        lines=tuple(lines),
        circles=tuple(circles),
        labels=tuple(labels),
    )


SVG_TEMPLATE = """\
<svg xmlns="http://www.w3.org/2000/svg" width="{{ scene.width }}" height="{{ scene.height }}" \
viewBox="0 0 {{ scene.width }} {{ scene.height }}">
  <rect width="100%" height="100%" fill="{{ theme.background }}"/>
  <g class="edges" stroke="{{ theme.edge }}" stroke-width="1">
  {%- for line in scene.lines %}
    <line x1="{{ '%.2f'|format(line.x1) }}" y1="{{ '%.2f'|format(line.y1) }}" x2="{{ '%.2f'|format(line.x2) }}" \
y2="{{ '%.2f'|format(line.y2) }}" data-source="{{ line.source }}" data-target="{{ line.target }}"/>
  {%- endfor %}
  </g>
  <g class="nodes">
  {%- for circle in scene.circles %}
    <circle cx="{{ '%.2f'|format(circle.x) }}" cy="{{ '%.2f'|format(circle.y) }}" r="{{ circle.radius }}" \
fill="{{ theme[circle.style] if circle.style != 'default' else theme.node }}" data-id="{{ circle.id }}"/>
  {%- endfor %}
  </g>
  <g class="labels" fill="{{ theme.text }}" font-size="12" font-family="sans-serif" text-anchor="middle">
  {%- for label in scene.labels %}
    <text x="{{ '%.2f'|format(label.x) }}" y="{{ '%.2f'|format(label.y) }}">{{ label.text }}</text>
  {%- endfor %}
  </g>
</svg>
"""


def _get_env() -> Environment:
    """Create Jinja2 environment with autoescape enabled."""
    return Environment(
        loader=BaseLoader(),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )


def render_svg(scene: Scene, theme: Mapping[str, str] | None = None) -> str:
    """Render a scene as a standalone SVG document."""
    colors = {**DEFAULT_THEME, **(theme or {})}
    return _get_env().from_string(SVG_TEMPLATE).render(scene=scene, theme=colors)
