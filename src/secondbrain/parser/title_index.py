"""Alias index for resolving wiki-style links.

Maps every lower-cased filename, title and frontmatter alias to a note id,
so [[Title]], [[file-name]] and [[Alias]] all resolve to the same note.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from ..models import SourceNote

log = logging.getLogger(__name__)


def alias_key(text: str) -> str:
    """Normalize a title, filename or link text for lookup.

    Only case is folded. Surrounding whitespace is significant, so
    [[ Welcome ]] does not match a note titled Welcome.
    """
    return text.lower()


class AliasIndex(Mapping[str, str]):
    """Read-only, case-insensitive mapping of alias -> note id."""

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AliasIndex({len(self._entries)} aliases)"

    def resolve(self, link_text: str) -> str | None:
        """Resolve a link text to a note id.

        Exact match after case folding. No trimming, no fuzzy matching,
        no path heuristics.

        Args:
            link_text: The raw text from [[link_text]].

        Returns:
            The note id, or None for a broken link.
        """
        return self._entries.get(alias_key(link_text))

    def as_dict(self) -> Mapping[str, str]:
        return MappingProxyType(self._entries)


def build_alias_index(notes: Iterable[SourceNote]) -> AliasIndex:
    """Build the alias index for a batch of notes.

    Keys are registered per note in the order filename, title, aliases.
    When two notes claim the same key the later one wins, so callers must
    pass notes in a deterministic order (the loader sorts by path).

    Args:
        notes: Parsed notes.

    Returns:
        AliasIndex mapping lower-cased alias to note id.
    """
    entries: dict[str, str] = {}

    for note in notes:
        keys = [note.file_name, note.title, *note.frontmatter.aliases]
        for raw in keys:
            key = alias_key(raw)
            if not key:
                continue
            previous = entries.get(key)
            if previous is not None and previous != note.id:
                log.debug("Alias %r moves from %s to %s", key, previous, note.id)
            entries[key] = note.id

    return AliasIndex(entries)
