#!/usr/bin/env python3
"""
brain: CLI for a markdown second brain

Usage:
    brain build                    # Write brain.json (notes, links, tree)
    brain stats                    # Notes, links, broken links, hubs
    brain tree                     # Browse folder structure
    brain links "Note Title"       # Outbound links, broken links, backlinks
    brain graph --svg graph.svg    # Run the force layout headlessly
    brain search "query"           # Keyword search
    brain serve                    # Start the HTTP API
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

from . import __version__ as BRAIN_VERSION
from ._logging import configure_logging
from .brain import Brain
from .config import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_LAYOUT_STEPS,
    DEFAULT_SEARCH_LIMIT,
    EXPORT_FILENAME,
    MAX_LAYOUT_STEPS,
    ConfigurationError,
    get_brain_root,
)
from .models import TreeNode

log = logging.getLogger(__name__)


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}
    widths = {col: len(col) for col in columns}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col, ""))
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    header = "  ".join(col.upper().ljust(widths[col]) for col in columns)
    separator = "  ".join("-" * widths[col] for col in columns)

    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns))

    return "\n".join(lines)


def output(data: Any, as_json: bool = False) -> None:
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def format_tree(node: TreeNode, titles: dict[str, str] | None = None, prefix: str = "") -> str:
    """Format a TreeNode's children as an ASCII tree."""
    titles = titles or {}
    lines = []
    children = node.children or []
    for i, child in enumerate(children):
        is_last = i == len(children) - 1
        connector = "└── " if is_last else "├── "

        if child.type == "folder":
            lines.append(f"{prefix}{connector}{child.name}/")
            extension = "    " if is_last else "│   "
            lines.append(format_tree(child, titles, prefix + extension))
        else:
            title = titles.get(child.id or "", "")
            if title and title != Path(child.name).stem:
                lines.append(f"{prefix}{connector}{child.name} ({title})")
            else:
                lines.append(f"{prefix}{connector}{child.name}")

    return "\n".join(line for line in lines if line)


def _get_brain(ctx: click.Context) -> Brain:
    """Load the brain once per invocation."""
    obj = ctx.ensure_object(dict)
    if "brain" not in obj:
        root = obj.get("brain_root")
        if root is None:
            try:
                root = get_brain_root()
            except ConfigurationError as e:
                raise click.ClickException(str(e)) from e
        brain = Brain(Path(root))
        brain.rebuild()
        obj["brain"] = brain
    return obj["brain"]


def _find_note_id(brain: Brain, name: str) -> str:
    graph = brain.graph
    if name in graph:
        return name
    note_id = graph.resolve(name)
    if note_id is None:
        raise click.ClickException(f"No note with id, title or filename '{name}'")
    return note_id


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=BRAIN_VERSION, prog_name="brain")
@click.option(
    "--brain",
    "brain_root",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="SECONDBRAIN_ROOT",
    help="Notes directory (default: $SECONDBRAIN_ROOT or .brainconfig discovery)",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
@click.pass_context
def cli(ctx: click.Context, brain_root: Path | None, log_level: str | None):
    """brain: browse a folder of markdown notes as a linked graph.

    \b
    Quick start:
      brain --brain ~/notes stats
      brain links "Second Brain"
      brain graph --svg graph.svg
    """
    configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["brain_root"] = brain_root


@cli.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=EXPORT_FILENAME,
    show_default=True,
    help="Where to write the JSON export",
)
@click.option("--json", "as_json", is_flag=True, help="Output summary as JSON")
@click.pass_context
def build(ctx: click.Context, output: Path, as_json: bool):
    """Build brain.json: every note with links, tags, backlinks and the tree."""
    brain = _get_brain(ctx)
    path = brain.write_export(output)
    graph = brain.graph

    summary = {
        "files": len(graph),
        "aliases": len(graph.alias_index),
        "edges": len(graph.edges),
        "broken_links": len(graph.broken_links),
        "output": str(path),
    }
    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo(f"Built brain from {brain.root}")
    click.echo(f"  Files: {summary['files']}")
    click.echo(f"  Aliases indexed: {summary['aliases']}")
    click.echo(f"  Links: {summary['edges']} ({summary['broken_links']} broken)")
    click.echo(f"  Output: {summary['output']}")


@cli.command()
@click.option("--limit", "-n", default=10, help="Number of most connected notes to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx: click.Context, limit: int, as_json: bool):
    """Show note, link and tag counts, and the most connected notes."""
    graph = _get_brain(ctx).graph
    degrees = graph.degrees()
    hubs = sorted(degrees.items(), key=lambda item: (-item[1], item[0]))[:limit]
    orphans = [note_id for note_id, degree in degrees.items() if degree == 0]

    data = {
        "notes": len(graph),
        "edges": len(graph.edges),
        "broken_links": len(graph.broken_links),
        "tags": len(graph.tags_index()),
        "orphans": len(orphans),
        "hubs": [{"id": note_id, "title": graph.get(note_id).title, "connections": d} for note_id, d in hubs],
    }

    if as_json:
        output(data, as_json=True)
        return

    click.echo(
        f"{data['notes']} notes, {data['edges']} links, {data['broken_links']} broken, "
        f"{data['tags']} tags, {data['orphans']} orphans"
    )
    if data["hubs"]:
        click.echo("")
        click.echo(format_table(data["hubs"], ["title", "id", "connections"]))


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tree(ctx: click.Context, as_json: bool):
    """Display the folder structure of the brain."""
    brain = _get_brain(ctx)

    if as_json:
        output(brain.tree.model_dump(exclude_none=True), as_json=True)
        return

    titles = {note.id: note.title for note in brain.graph}
    click.echo(f"{brain.tree.name}/")
    formatted = format_tree(brain.tree, titles)
    if formatted:
        click.echo(formatted)


@cli.command()
@click.argument("note")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def links(ctx: click.Context, note: str, as_json: bool):
    """Show a note's outbound links, broken links and backlinks.

    NOTE may be a note id, title or filename (case-insensitive).
    """
    brain = _get_brain(ctx)
    graph = brain.graph
    note_id = _find_note_id(brain, note)
    record = graph.get(note_id)

    data = {
        "id": record.id,
        "title": record.title,
        "outbound": graph.outbound(note_id),
        "broken": graph.broken_links_for(note_id),
        "backlinks": list(record.backlinks),
        "tags": list(record.tags),
        "connections": graph.degree(note_id),
    }

    if as_json:
        output(data, as_json=True)
        return

    click.echo(f"{record.title} ({record.id})")
    click.echo(f"  Links to:    {', '.join(data['outbound']) or '-'}")
    click.echo(f"  Broken:      {', '.join(data['broken']) or '-'}")
    click.echo(f"  Linked from: {', '.join(data['backlinks']) or '-'}")
    if data["tags"]:
        click.echo(f"  Tags:        {', '.join('#' + t for t in data['tags'])}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def broken(ctx: click.Context, as_json: bool):
    """List wiki-links that match no note."""
    graph = _get_brain(ctx).graph
    rows = [{"source": b.source, "target": b.target} for b in graph.broken_links]

    if as_json:
        output(rows, as_json=True)
    elif rows:
        click.echo(format_table(rows, ["source", "target"]))
    else:
        click.echo("No broken links.")


@cli.command()
@click.option(
    "--steps",
    default=DEFAULT_LAYOUT_STEPS,
    show_default=True,
    type=click.IntRange(0, MAX_LAYOUT_STEPS),
    help="Frames to simulate",
)
@click.option("--width", default=DEFAULT_CANVAS_WIDTH, show_default=True, type=click.FloatRange(min=1))
@click.option("--height", default=DEFAULT_CANVAS_HEIGHT, show_default=True, type=click.FloatRange(min=1))
@click.option("--select", "selected", help="Highlight this note (id, title or filename)")
@click.option("--svg", "svg_path", type=click.Path(dir_okay=False, path_type=Path), help="Write an SVG drawing")
@click.option("--json", "as_json", is_flag=True, help="Output positions as JSON")
@click.pass_context
def graph(
    ctx: click.Context,
    steps: int,
    width: float,
    height: float,
    selected: str | None,
    svg_path: Path | None,
    as_json: bool,
):
    """Run the force-directed layout headlessly.

    \b
    Examples:
      brain graph --steps 500 --json
      brain graph --svg graph.svg --select "Welcome"
    """
    from .layout import Canvas
    from .render import render_svg
    from .simulation import GraphView

    brain = _get_brain(ctx)
    selected_id = _find_note_id(brain, selected) if selected else None

    view = GraphView(brain.graph, Canvas(width=width, height=height), brain.forces, selected=selected_id)
    for _ in range(steps):
        view.tick()
    view.close()

    if svg_path is not None:
        svg_path.write_text(render_svg(view.scene()), encoding="utf-8")
        if not as_json:
            click.echo(f"Wrote {svg_path}")

    nodes = [
        {"id": n.id, "x": round(n.x, 2), "y": round(n.y, 2), "connections": n.degree}
        for n in view.state.nodes
    ]
    if as_json:
        output(
            {
                "steps": steps,
                "width": width,
                "height": height,
                "kinetic_energy": view.state.kinetic_energy(),
                "nodes": nodes,
            },
            as_json=True,
        )
    elif svg_path is None:
        click.echo(format_table(nodes, ["id", "x", "y", "connections"]) or "Empty graph.")


@cli.command()
@click.argument("query")
@click.option("--limit", "-n", default=DEFAULT_SEARCH_LIMIT, show_default=True, help="Max results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def search(ctx: click.Context, query: str, limit: int, as_json: bool):
    """Search note titles, content and tags."""
    from .search import NoteSearcher

    searcher = NoteSearcher.from_graph(_get_brain(ctx).graph)
    hits = searcher.search(query, limit=limit)

    if as_json:
        output([hit.model_dump() for hit in hits], as_json=True)
        return

    if not hits:
        click.echo("No results.")
        return

    rows = [{"id": h.id, "title": h.title, "score": f"{h.score:.2f}"} for h in hits]
    click.echo(format_table(rows, ["title", "id", "score"]))


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=3001, show_default=True, type=int)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Serve the HTTP API."""
    import uvicorn

    from .webapp import create_app

    app = create_app(brain=_get_brain(ctx))
    uvicorn.run(app, host=host, port=port)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
