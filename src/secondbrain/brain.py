"""Loading a folder of markdown notes into a BrainGraph.

``Brain`` is the explicit context the rest of the application passes around:
it reads the files (the only I/O on the build path), hands them to the pure
graph builder, and keeps the result until the next ``rebuild()``. There is
no incremental update; every rebuild re-reads the whole folder.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from .config import BrainSettings, load_brain_settings
from .graph import BrainGraph
from .layout import ForceSettings
from .models import BrainExport, SourceNote, TreeNode
from .parser import ParseError, parse_note
from .tree import build_tree

log = logging.getLogger(__name__)


def iter_markdown_files(brain_root: Path, excluded_dirs: frozenset[str] | set[str] = frozenset()) -> list[Path]:
    """List markdown files under brain_root, sorted by relative path.

    Hidden files and directories (leading dot) and directories named in
    excluded_dirs are skipped.
    """
    if not brain_root.exists() or not brain_root.is_dir():
        return []

    files = []
    for md_file in brain_root.rglob("*.md"):
        rel_parts = md_file.relative_to(brain_root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if any(part in excluded_dirs for part in rel_parts[:-1]):
            continue
        if md_file.is_file():
            files.append(md_file)

    return sorted(files, key=lambda p: p.relative_to(brain_root).as_posix())


class Brain:
    """A note folder and the graph last built from it."""

    def __init__(self, root: Path, settings: BrainSettings | None = None) -> None:
        self.root = Path(root)
        self.settings = settings or load_brain_settings(self.root)
        self._graph: BrainGraph | None = None
        self._tree: TreeNode | None = None
        self.skipped: list[ParseError] = []
        self.loaded_at: datetime | None = None

    def __repr__(self) -> str:
        return f"Brain({str(self.root)!r})"

    def read_sources(self) -> list[SourceNote]:
        """Parse every note file. Unparseable files are logged and skipped."""
        sources: list[SourceNote] = []
        skipped: list[ParseError] = []

        for md_file in iter_markdown_files(self.root, self.settings.excluded_dirs):
            try:
                sources.append(parse_note(md_file, self.root))
            except ParseError as e:
                log.warning("Skipping %s", e)
                skipped.append(e)

        self.skipped = skipped
        return sources

    def rebuild(self) -> BrainGraph:
        """Re-read the folder and replace the graph and tree as a whole."""
        if not self.root.is_dir():
            log.warning("Brain folder %s does not exist; loading an empty graph", self.root)

        graph = BrainGraph.build(self.read_sources())
        tree = build_tree(graph)

        self._graph, self._tree = graph, tree
        self.loaded_at = datetime.now(UTC)
        log.info(
            "Loaded %d notes (%d links, %d broken) from %s",
            len(graph),
            len(graph.edges),
            len(graph.broken_links),
            self.root,
        )
        return graph

    load = rebuild

    @property
    def graph(self) -> BrainGraph:
        if self._graph is None:
            self.rebuild()
        return self._graph

    @property
    def tree(self) -> TreeNode:
        if self._tree is None:
            self.rebuild()
        return self._tree

    @property
    def forces(self) -> ForceSettings:
        return ForceSettings.from_overrides(self.settings.forces)

    def export(self) -> BrainExport:
        """The whole brain as one document (the brain.json format)."""
        graph = self.graph
        return BrainExport(
            generated_at=self.loaded_at or datetime.now(UTC),
            source_path=str(self.root),
            file_count=len(graph),
            files=dict(graph.notes),
            tree=self.tree,
            link_index=dict(graph.alias_index),
        )

    def write_export(self, output: Path) -> Path:
        """Write export() as JSON to output, creating parent directories."""
        output.parent.mkdir(parents=True, exist_ok=True)
        payload = self.export().model_dump(mode="json")
        output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return output
