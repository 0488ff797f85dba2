"""secondbrain: browse a folder of markdown notes as a linked knowledge graph."""

__version__ = "0.1.0"

from .brain import Brain
from .graph import BrainGraph
from .layout import Canvas, ForceSettings, LayoutState, seed_layout, step
from .simulation import GraphView, Simulation

__all__ = [
    "Brain",
    "BrainGraph",
    "Canvas",
    "ForceSettings",
    "GraphView",
    "LayoutState",
    "Simulation",
    "__version__",
    "seed_layout",
    "step",
]
