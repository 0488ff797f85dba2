"""Pydantic models for the note graph."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        return [str(value)]
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []


class Frontmatter(BaseModel):
    """YAML frontmatter of a note.

    Known keys are typed. Any other key is kept as-is and round-trips through
    ``extra_fields()`` and serialization untouched.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    title: str | None = None
    aliases: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("aliases", "tags", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> tuple[str, ...]:
        return tuple(_as_str_list(value))

    def extra_fields(self) -> dict[str, Any]:
        """Keys not modelled above, in file order."""
        return dict(self.model_extra or {})

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping suitable for writing back with python-frontmatter."""
        data: dict[str, Any] = {}
        if self.title is not None:
            data["title"] = self.title
        if self.aliases:
            data["aliases"] = list(self.aliases)
        if self.tags:
            data["tags"] = list(self.tags)
        data.update(self.extra_fields())
        return data


class SourceNote(BaseModel):
    """A markdown file as read from disk, before link resolution."""

    model_config = ConfigDict(frozen=True)

    id: str
    relative_path: str  # e.g. "projects/alpha.md"
    file_name: str  # stem, e.g. "alpha"
    title: str
    content: str  # body without frontmatter, tokens not stripped
    frontmatter: Frontmatter = Field(default_factory=Frontmatter)


class Note(BaseModel):
    """A note in the built graph. Immutable once the graph is built."""

    model_config = ConfigDict(frozen=True)

    id: str
    relative_path: str
    file_name: str
    title: str
    aliases: tuple[str, ...] = ()
    content: str
    frontmatter: Frontmatter = Field(default_factory=Frontmatter)
    wiki_links: tuple[str, ...] = ()  # raw link texts, deduplicated, first-seen order
    tags: tuple[str, ...] = ()  # case-folded hashtags
    backlinks: tuple[str, ...] = ()  # ids of notes linking here


class Edge(BaseModel):
    """A resolved wiki-link between two notes."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class BrokenLink(BaseModel):
    """A wiki-link whose text matches no title or filename."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str  # the raw link text


class TreeNode(BaseModel):
    """A folder or file in the brain's file tree."""

    name: str
    type: Literal["folder", "file"]
    id: str | None = None  # set for files
    children: list[TreeNode] | None = None  # set for folders


class BrainExport(BaseModel):
    """The full brain as a single JSON document (brain.json)."""

    generated_at: datetime
    source_path: str
    file_count: int
    files: dict[str, Note] = Field(default_factory=dict)
    tree: TreeNode
    link_index: dict[str, str] = Field(default_factory=dict)


class FileInfo(BaseModel):
    """A markdown file as listed by the file store."""

    path: str
    name: str
    folder: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    modified: datetime
    size: int


class FileContent(BaseModel):
    """A markdown file's content split into body and frontmatter."""

    path: str
    content: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    raw_content: str


class SearchHit(BaseModel):
    """A search result."""

    id: str
    title: str
    snippet: str
    score: float
    tags: list[str] = Field(default_factory=list)
