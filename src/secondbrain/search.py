"""Keyword search over notes using an in-memory Whoosh index."""

from __future__ import annotations

import logging

from whoosh.fields import ID, KEYWORD, TEXT, Schema
from whoosh.filedb.filestore import RamStorage
from whoosh.index import Index
from whoosh.qparser import FuzzyTermPlugin, MultifieldParser, OrGroup
from whoosh.query import Term

from .config import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT, SNIPPET_LENGTH
from .graph import BrainGraph
from .models import SearchHit

log = logging.getLogger(__name__)


class NoteSearcher:
    """Search titles, content and tags of a built graph.

    The index lives in memory and is rebuilt with the graph; it is never
    patched incrementally.
    """

    def __init__(self) -> None:
        self._schema = Schema(
            id=ID(stored=True, unique=True),
            title=TEXT(stored=True, field_boost=2.0),
            content=TEXT(stored=True),
            tags=KEYWORD(stored=True, commas=True, lowercase=True),
        )
        self._index: Index = RamStorage().create_index(self._schema)

    @classmethod
    def from_graph(cls, graph: BrainGraph) -> NoteSearcher:
        searcher = cls()
        searcher.index_graph(graph)
        return searcher

    def index_graph(self, graph: BrainGraph) -> None:
        """Index every note of the graph in a single transaction."""
        writer = self._index.writer()
        for note in graph:
            writer.update_document(
                id=note.id,
                title=note.title,
                content=note.content,
                tags=",".join(note.tags),
            )
        writer.commit()
        log.debug("Indexed %d notes for search", len(graph))

    def doc_count(self) -> int:
        return self._index.doc_count()

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[SearchHit]:
        """Search the index.

        Args:
            query: Search query string. ``term~`` enables fuzzy matching.
            limit: Maximum number of results (capped at MAX_SEARCH_LIMIT).

        Returns:
            Hits with scores normalized to the 0-1 range, best first.
        """
        if not query or not query.strip():
            return []

        limit = max(1, min(limit, MAX_SEARCH_LIMIT))

        with self._index.searcher() as searcher:
            parser = MultifieldParser(["title", "content", "tags"], schema=self._schema, group=OrGroup)
            parser.add_plugin(FuzzyTermPlugin())

            try:
                parsed_query = parser.parse(query)
            except Exception as e:
                # If parsing fails, fall back to a simple term query
                log.debug("Query %r did not parse (%s); using a term query", query, e)
                parsed_query = Term("content", query.lower())

            results = searcher.search(parsed_query, limit=limit)
            if not results:
                return []

            max_score = max(r.score for r in results)
            max_score = max_score if max_score > 0 else 1.0

            hits = []
            for hit in results:
                content = hit.get("content", "")
                snippet = content[:SNIPPET_LENGTH] + "..." if len(content) > SNIPPET_LENGTH else content
                tags = [t.strip() for t in hit.get("tags", "").split(",") if t.strip()]
                hits.append(
                    SearchHit(
                        id=hit["id"],
                        title=hit.get("title", ""),
                        snippet=snippet,
                        score=hit.score / max_score,
                        tags=tags,
                    )
                )
            return hits
