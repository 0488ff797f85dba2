"""Markdown rendering with wiki-link resolution.

Wiki-links are tokenized by an inline rule and rendered as anchors to the
target note. Links that resolve to no note keep their text and get the
``broken`` class so viewers can style them distinctly.
Hashtags get their own inline rule and render as ``<span class="tag">``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

from .links import TAG_PATTERN
from .title_index import AliasIndex

NOTE_HREF_PREFIX = "#/note/"


@dataclass
class MarkdownResult:
    """Rendered HTML plus the wiki-links seen while rendering."""

    html: str
    links: list[str] = field(default_factory=list)
    broken_links: list[str] = field(default_factory=list)


def _wikilink_rule(state: StateInline, silent: bool) -> bool:
    start = state.pos
    src = state.src

    if not src.startswith("[[", start):
        return False

    end = src.find("]]", start + 2)
    if end == -1:
        return False

    target = src[start + 2 : end]
    if not target or "]" in target:
        return False

    if not silent:
        token = state.push("wikilink", "", 0)
        token.content = target

    state.pos = end + 2
    return True


def _hashtag_rule(state: StateInline, silent: bool) -> bool:
    # TAG_PATTERN looks behind pos, so in-word hashes like foo#bar never match
    match = TAG_PATTERN.match(state.src, state.pos)
    if match is None:
        return False

    if not silent:
        token = state.push("hashtag", "", 0)
        token.content = match.group(1)

    state.pos = match.end()
    return True


def _render_wikilink(self, tokens, idx, options, env) -> str:
    target = tokens[idx].content
    aliases: AliasIndex | None = env.get("alias_index")
    resolved = aliases.resolve(target) if aliases is not None else None

    env.setdefault("links", []).append(target)
    if resolved is None:
        env.setdefault("broken_links", []).append(target)
        return f'<span class="wikilink broken" title="No note named {escape(target)}">{escape(target)}</span>'

    return (
        f'<a class="wikilink" href="{NOTE_HREF_PREFIX}{escape(resolved)}" '
        f'data-note-id="{escape(resolved)}">{escape(target)}</a>'
    )


def _render_hashtag(self, tokens, idx, options, env) -> str:
    return f'<span class="tag">#{escape(tokens[idx].content)}</span>'


def create_markdown() -> MarkdownIt:
    """Create a markdown-it parser with the wiki-link and hashtag rules installed."""
    md = MarkdownIt("commonmark", {"html": False})
    md.enable("table")
    md.enable("strikethrough")
    md.inline.ruler.before("link", "wikilink", _wikilink_rule)
    md.inline.ruler.before("link", "hashtag", _hashtag_rule)
    md.add_render_rule("wikilink", _render_wikilink)
    md.add_render_rule("hashtag", _render_hashtag)
    return md


_md: MarkdownIt | None = None


def _get_markdown() -> MarkdownIt:
    global _md
    if _md is None:
        _md = create_markdown()
    return _md


def render_markdown(content: str, alias_index: AliasIndex | None = None) -> MarkdownResult:
    """Render note content to HTML.

    Args:
        content: Markdown body (frontmatter already removed).
        alias_index: Index used to resolve wiki-links. Without one every
            wiki-link renders as broken.

    Returns:
        MarkdownResult with HTML and the link texts encountered.
    """
    env: dict = {"alias_index": alias_index}
    html = _get_markdown().render(content, env)

    links = list(dict.fromkeys(env.get("links", [])))
    broken = list(dict.fromkeys(env.get("broken_links", [])))

    return MarkdownResult(html=html, links=links, broken_links=broken)
