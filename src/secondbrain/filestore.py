"""Read, write and delete markdown files inside the brain folder.

A thin filesystem wrapper. It does not touch the graph; callers rebuild the
Brain after a write.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any

import frontmatter

from .brain import iter_markdown_files
from .models import FileContent, FileInfo

log = logging.getLogger(__name__)


class FileStoreError(Exception):
    """Base class for file store failures."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class InvalidPathError(FileStoreError):
    """Raised for absolute paths, parent traversal, or non-markdown targets."""


class NoteNotFoundError(FileStoreError):
    """Raised when the requested file does not exist."""


class NoteExistsError(FileStoreError):
    """Raised when creating a file that already exists."""


class InvalidNoteError(FileStoreError):
    """Raised when a file is not UTF-8 or its frontmatter is not valid YAML."""


def _compose(content: str, meta: dict[str, Any] | None) -> str:
    if meta:
        return frontmatter.dumps(frontmatter.Post(content, **meta)) + "\n"
    return content


class FileStore:
    """CRUD over the markdown files of one brain folder."""

    def __init__(self, root: Path, excluded_dirs: frozenset[str] | set[str] = frozenset()) -> None:
        self.root = Path(root)
        self.excluded_dirs = excluded_dirs

    def resolve(self, relative_path: str) -> Path:
        """Map a relative path to a file inside the brain.

        Raises:
            InvalidPathError: For empty, absolute or escaping paths, and for
                anything other than a .md file.
        """
        cleaned = (relative_path or "").replace("\\", "/").strip()
        if not cleaned:
            raise InvalidPathError(relative_path, "Path is required")

        posix = PurePosixPath(cleaned)
        if posix.is_absolute() or ".." in posix.parts or cleaned.startswith("~"):
            raise InvalidPathError(relative_path, "Invalid path")
        if posix.suffix != ".md":
            raise InvalidPathError(relative_path, "Only .md files can be accessed")

        full_path = (self.root / posix).resolve()
        root = self.root.resolve()
        if root != full_path and root not in full_path.parents:
            raise InvalidPathError(relative_path, "Invalid path")
        return full_path

    def list_files(self) -> list[FileInfo]:
        files = []
        for md_file in iter_markdown_files(self.root, self.excluded_dirs):
            rel = md_file.relative_to(self.root).as_posix()
            try:
                post = frontmatter.load(str(md_file))
                meta = dict(post.metadata)
            except Exception as e:
                log.debug("Listing %s without frontmatter: %s", rel, e)
                meta = {}
            stat = md_file.stat()
            files.append(
                FileInfo(
                    path=rel,
                    name=md_file.stem,
                    folder=PurePosixPath(rel).parent.as_posix() if "/" in rel else "",
                    frontmatter=meta,
                    modified=datetime.fromtimestamp(stat.st_mtime, UTC),
                    size=stat.st_size,
                )
            )
        return files

    def read_file(self, relative_path: str) -> FileContent:
        """Read a file and split off its frontmatter.

        Raises:
            NoteNotFoundError: If the file does not exist.
            InvalidNoteError: If the file cannot be decoded or parsed.
        """
        full_path = self.resolve(relative_path)
        if not full_path.is_file():
            raise NoteNotFoundError(relative_path, "File not found")

        try:
            raw = full_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidNoteError(relative_path, f"File is not valid UTF-8: {e}") from e
        try:
            post = frontmatter.loads(raw)
        except Exception as e:
            raise InvalidNoteError(relative_path, f"Failed to parse frontmatter: {e}") from e
        return FileContent(
            path=relative_path,
            content=post.content,
            frontmatter=dict(post.metadata),
            raw_content=raw,
        )

    def save_file(self, relative_path: str, content: str, meta: dict[str, Any] | None = None) -> Path:
        """Create or overwrite a file, creating parent folders as needed."""
        full_path = self.resolve(relative_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(_compose(content, meta), encoding="utf-8")
        log.info("Saved %s", relative_path)
        return full_path

    def create_file(self, relative_path: str, content: str = "", meta: dict[str, Any] | None = None) -> Path:
        """Create a new file.

        Raises:
            NoteExistsError: If the file already exists.
        """
        full_path = self.resolve(relative_path)
        if full_path.exists():
            raise NoteExistsError(relative_path, "File already exists")
        return self.save_file(relative_path, content, meta)

    def delete_file(self, relative_path: str) -> None:
        full_path = self.resolve(relative_path)
        if not full_path.is_file():
            raise NoteNotFoundError(relative_path, "File not found")
        full_path.unlink()
        log.info("Deleted %s", relative_path)
