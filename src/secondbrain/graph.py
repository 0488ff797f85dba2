"""Note graph built from wiki-links and hashtags.

The graph is built as one batch from parsed notes in two passes:

1. Extract wiki-link texts and hashtags from every note and register each
   note's filename, title and aliases in the alias index.
2. Resolve every link text against the alias index. Hits become edges and
   backlinks; misses are kept as broken links.

A built graph is never mutated. Content changes require a new build.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from .models import BrokenLink, Edge, Note, SourceNote
from .parser.links import extract_tags, extract_wiki_links
from .parser.title_index import AliasIndex, build_alias_index

log = logging.getLogger(__name__)


class BrainGraph:
    """Resolved note graph: note store, alias index, edges and broken links."""

    def __init__(
        self,
        notes: Mapping[str, Note],
        alias_index: AliasIndex,
        edges: Iterable[Edge] = (),
        broken_links: Iterable[BrokenLink] = (),
    ) -> None:
        self._notes = MappingProxyType(dict(notes))
        self._alias_index = alias_index
        self._edges = tuple(edges)
        self._broken_links = tuple(broken_links)

    @classmethod
    def empty(cls) -> BrainGraph:
        return cls({}, AliasIndex())

    @classmethod
    def build(cls, sources: Iterable[SourceNote]) -> BrainGraph:
        """Build the graph from parsed notes.

        Notes keep the order they are given in. That order decides alias
        collisions (last wins) and the node order used for hit testing, so
        callers wanting reproducible output must pass a stable order.

        Args:
            sources: Parsed notes.

        Returns:
            A new BrainGraph.
        """
        unique: list[SourceNote] = []
        seen_ids: set[str] = set()
        for source in sources:
            if source.id in seen_ids:
                log.warning("Duplicate note id %s (%s); keeping the first", source.id, source.relative_path)
                continue
            seen_ids.add(source.id)
            unique.append(source)

        # Pass 1: tokens and aliases
        links_by_id: dict[str, list[str]] = {}
        tags_by_id: dict[str, list[str]] = {}
        for source in unique:
            links_by_id[source.id] = extract_wiki_links(source.content)
            tags = extract_tags(source.content)
            for tag in source.frontmatter.tags:
                tag = tag.lower()
                if tag not in tags:
                    tags.append(tag)
            tags_by_id[source.id] = tags

        alias_index = build_alias_index(unique)

        # Pass 2: resolution
        backlinks: dict[str, list[str]] = {source.id: [] for source in unique}
        edges: list[Edge] = []
        edge_keys: set[tuple[str, str]] = set()
        broken: list[BrokenLink] = []

        for source in unique:
            for link in links_by_id[source.id]:
                target = alias_index.resolve(link)
                if target is None:
                    broken.append(BrokenLink(source=source.id, target=link))
                    continue

                if source.id not in backlinks[target]:
                    backlinks[target].append(source.id)

                key = (source.id, target)
                if key not in edge_keys:
                    edge_keys.add(key)
                    edges.append(Edge(source=source.id, target=target))

        notes = {
            source.id: Note(
                id=source.id,
                relative_path=source.relative_path,
                file_name=source.file_name,
                title=source.title,
                aliases=source.frontmatter.aliases,
                content=source.content,
                frontmatter=source.frontmatter,
                wiki_links=links_by_id[source.id],
                tags=tags_by_id[source.id],
                backlinks=backlinks[source.id],
            )
            for source in unique
        }

        log.debug(
            "Built graph: %d notes, %d edges, %d broken links",
            len(notes),
            len(edges),
            len(broken),
        )
        return cls(notes, alias_index, edges, broken)

    # ------------------------------------------------------------------
    # Note store
    # ------------------------------------------------------------------

    @property
    def notes(self) -> Mapping[str, Note]:
        """Read-only mapping of note id -> Note, in build order."""
        return self._notes

    @property
    def alias_index(self) -> AliasIndex:
        return self._alias_index

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def broken_links(self) -> tuple[BrokenLink, ...]:
        return self._broken_links

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._notes

    def __iter__(self) -> Iterator[Note]:
        return iter(self._notes.values())

    def ids(self) -> list[str]:
        return list(self._notes)

    def get(self, note_id: str) -> Note | None:
        return self._notes.get(note_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve(self, link_text: str) -> str | None:
        """Resolve a wiki-link text to a note id (None when broken)."""
        return self._alias_index.resolve(link_text)

    def is_broken(self, link_text: str) -> bool:
        return self.resolve(link_text) is None

    def outbound(self, note_id: str) -> list[str]:
        """Ids of notes that note_id links to, deduplicated, in link order."""
        note = self._notes.get(note_id)
        if note is None:
            return []
        targets: list[str] = []
        for link in note.wiki_links:
            target = self.resolve(link)
            if target is not None and target not in targets:
                targets.append(target)
        return targets

    def broken_links_for(self, note_id: str) -> list[str]:
        """Raw link texts in note_id that resolve to nothing."""
        return [b.target for b in self._broken_links if b.source == note_id]

    def degree(self, note_id: str) -> int:
        """Connection count: raw outbound links plus backlinks.

        Reciprocal links are counted from both sides.
        """
        note = self._notes.get(note_id)
        if note is None:
            return 0
        return len(note.wiki_links) + len(note.backlinks)

    def degrees(self) -> dict[str, int]:
        return {note_id: self.degree(note_id) for note_id in self._notes}

    def tags_index(self) -> dict[str, list[str]]:
        """Map tag -> ids of notes carrying it, tags sorted."""
        index: dict[str, list[str]] = {}
        for note in self._notes.values():
            for tag in note.tags:
                index.setdefault(tag, []).append(note.id)
        return dict(sorted(index.items()))
