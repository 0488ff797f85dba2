"""Markdown parsing: frontmatter, wiki-links, hashtags and rendering."""

from .links import extract_tags, extract_wiki_links
from .markdown import ParseError, note_id_for, parse_note, parse_text
from .renderer import MarkdownResult, render_markdown
from .title_index import AliasIndex, alias_key, build_alias_index

__all__ = [
    "AliasIndex",
    "MarkdownResult",
    "ParseError",
    "alias_key",
    "build_alias_index",
    "extract_tags",
    "extract_wiki_links",
    "note_id_for",
    "parse_note",
    "parse_text",
    "render_markdown",
]
