"""Markdown note parsing with optional YAML frontmatter."""

from pathlib import Path, PurePosixPath

import frontmatter
from pydantic import ValidationError

from ..models import Frontmatter, SourceNote


class ParseError(Exception):
    """Raised when a markdown file cannot be read or its frontmatter is invalid."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def note_id_for(relative_path: str) -> str:
    """Derive a note id from its path relative to the brain root.

    "projects/alpha.md" -> "projects--alpha"
    """
    posix = relative_path.replace("\\", "/")
    if posix.endswith(".md"):
        posix = posix[:-3]
    return posix.replace("/", "--")


def parse_text(relative_path: str, text: str) -> SourceNote:
    """Parse markdown text that lives at relative_path inside the brain.

    Args:
        relative_path: Path relative to the brain root, with forward slashes.
        text: Full file content including any frontmatter block.

    Returns:
        SourceNote with the body (frontmatter removed) and typed frontmatter.

    Raises:
        ParseError: If the frontmatter block is not valid YAML mapping.
    """
    try:
        post = frontmatter.loads(text)
    except Exception as e:
        raise ParseError(relative_path, f"Failed to parse frontmatter: {e}") from e

    try:
        meta = Frontmatter.model_validate(post.metadata or {})
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ParseError(relative_path, "Invalid frontmatter:\n" + "\n".join(errors)) from e

    file_name = PurePosixPath(relative_path.replace("\\", "/")).stem

    return SourceNote(
        id=note_id_for(relative_path),
        relative_path=relative_path.replace("\\", "/"),
        file_name=file_name,
        title=meta.title or file_name,
        content=post.content,
        frontmatter=meta,
    )


def parse_note(path: Path, brain_root: Path) -> SourceNote:
    """Read and parse a markdown file.

    Args:
        path: Path to the markdown file.
        brain_root: Root of the note folder; ids are relative to it.

    Returns:
        Parsed SourceNote.

    Raises:
        ParseError: If the file does not exist, cannot be decoded, or has
            invalid frontmatter.
    """
    if not path.exists():
        raise ParseError(path, "File does not exist")

    if not path.is_file():
        raise ParseError(path, "Path is not a file")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(path, f"Failed to read file: {e}") from e

    relative_path = path.relative_to(brain_root).as_posix()
    return parse_text(relative_path, text)
