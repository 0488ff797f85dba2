"""Configuration management for secondbrain.

This module contains all configurable constants for the note viewer.
Magic numbers are documented here rather than scattered throughout the codebase.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing."""

    pass


# Name of the optional YAML file holding per-brain settings.
CONFIG_FILENAME = ".brainconfig"


def get_brain_root() -> Path:
    """Get the brain (note folder) root directory.

    Discovery order:
    1. SECONDBRAIN_ROOT environment variable (explicit override)
    2. Walk up from cwd looking for .brainconfig with a brain_path field
    3. Error with helpful message

    Raises:
        ConfigurationError: If no brain folder can be found.
    """
    root = os.environ.get("SECONDBRAIN_ROOT")
    if root:
        return Path(root)

    discovered = _discover_brain_config()
    if discovered:
        _, brain_path = discovered
        return brain_path

    raise ConfigurationError(
        "No brain folder found. Options:\n"
        "  1. Pass --brain PATH on the command line\n"
        "  2. Set SECONDBRAIN_ROOT to your notes directory\n"
        f"  3. Add a {CONFIG_FILENAME} file with 'brain_path: <dir>' to a parent directory"
    )


def _discover_brain_config(start_dir: Path | None = None, max_depth: int = 10) -> tuple[Path, Path] | None:
    """Walk up from start_dir looking for .brainconfig with brain_path.

    Args:
        start_dir: Directory to start from (defaults to cwd)
        max_depth: Maximum directories to traverse up

    Returns:
        Tuple of (config_path, brain_path) if found, None otherwise.
    """
    import yaml

    current = Path(start_dir or os.getcwd()).resolve()

    for _ in range(max_depth):
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            try:
                data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict) and "brain_path" in data:
                    brain_path = (current / data["brain_path"]).resolve()
                    if brain_path.is_dir():
                        return (config_file, brain_path)
            except (OSError, yaml.YAMLError) as e:
                log.debug("Ignoring unreadable %s: %s", config_file, e)

        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    return None


# =============================================================================
# Note Discovery
# =============================================================================

# Directories never scanned for notes. Hidden directories (leading dot) are
# always skipped in addition to these.
DEFAULT_EXCLUDED_DIRS = frozenset({"node_modules", "__pycache__", "Templates", "_site"})

# Name of the root folder in the file tree
TREE_ROOT_NAME = "brain"

# Default output file for `brain build`
EXPORT_FILENAME = "brain.json"


@dataclass(frozen=True)
class BrainSettings:
    """Per-brain overrides read from <brain_root>/.brainconfig."""

    excluded_dirs: frozenset[str] = DEFAULT_EXCLUDED_DIRS
    forces: dict[str, float] = field(default_factory=dict)


def load_brain_settings(brain_root: Path) -> BrainSettings:
    """Load optional settings from the brain's own .brainconfig.

    Recognised keys: ``excluded_dirs`` (list, added to the defaults) and
    ``forces`` (mapping of layout constant name to number). Unknown keys are
    ignored; an unreadable file falls back to defaults.
    """
    import yaml

    config_file = brain_root / CONFIG_FILENAME
    if not config_file.is_file():
        return BrainSettings()

    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        log.warning("Could not load %s: %s", config_file, e)
        return BrainSettings()

    if not isinstance(data, dict):
        return BrainSettings()

    excluded = set(DEFAULT_EXCLUDED_DIRS)
    extra_dirs = data.get("excluded_dirs") or []
    if isinstance(extra_dirs, list):
        excluded.update(str(d) for d in extra_dirs)

    forces: dict[str, float] = {}
    raw_forces = data.get("forces") or {}
    if isinstance(raw_forces, dict):
        for key, value in raw_forces.items():
            try:
                forces[str(key)] = float(value)
            except (TypeError, ValueError):
                log.warning("Ignoring non-numeric force setting %s=%r", key, value)

    return BrainSettings(excluded_dirs=frozenset(excluded), forces=forces)


# =============================================================================
# Layout Physics
# =============================================================================

# Pairwise repulsion constant: force = REPULSION_STRENGTH / distance^2.
REPULSION_STRENGTH = 5000.0

# Zero-rest-length spring constant applied along each edge.
ATTRACTION_STRENGTH = 0.01

# Pull toward the canvas center, proportional to the offset.
CENTER_FORCE = 0.01

# Velocity multiplier per frame. Must stay below 1 so the system settles.
DAMPING = 0.9

# Distances below this are treated as this value in the repulsion term,
# so coincident nodes never divide by zero.
MIN_DISTANCE = 1.0

# Nodes are kept this many pixels away from the canvas edges.
LAYOUT_MARGIN = 50.0

# Fraction of min(width, height) used as the base radius of the seed ring.
SEED_RING_FRACTION = 0.3

# Canvas size used when the host has not reported one yet.
DEFAULT_CANVAS_WIDTH = 800.0
DEFAULT_CANVAS_HEIGHT = 600.0


# =============================================================================
# Node Radius / Hit Testing
# =============================================================================

# radius = min(NODE_RADIUS_MAX, NODE_RADIUS_BASE + NODE_RADIUS_PER_LINK * degree)
NODE_RADIUS_BASE = 6.0
NODE_RADIUS_PER_LINK = 2.0
NODE_RADIUS_MAX = 20.0


# =============================================================================
# Simulation Loop
# =============================================================================

# Seconds between frames when the loop runs on its own clock (~60 fps).
FRAME_INTERVAL = 1 / 60

# Steps run by `brain graph` and GET /api/layout when not specified.
DEFAULT_LAYOUT_STEPS = 300

# Upper bound on headless steps per request.
MAX_LAYOUT_STEPS = 5000


# =============================================================================
# Search Limits
# =============================================================================

# Default number of results returned by search
DEFAULT_SEARCH_LIMIT = 10

# Maximum number of results allowed (prevents expensive queries)
MAX_SEARCH_LIMIT = 50

# Characters of note content shown in a search snippet
SNIPPET_LENGTH = 200
