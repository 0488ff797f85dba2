"""Shared test fixtures for the secondbrain test suite.

Design:
- tmp_brain: isolated, empty note folder; SECONDBRAIN_ROOT points at it
- sample_brain: tmp_brain seeded with a small linked set of notes
- runner / cli_invoke: CliRunner with proper isolation
- Async tests run under pytest-asyncio (asyncio_mode = auto)
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from secondbrain.cli import cli


# ─────────────────────────────────────────────────────────────────────────────
# Markers
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


def create_note(
    brain_root: Path,
    path: str,
    content: str,
    title: str | None = None,
    aliases: list[str] | None = None,
    tags: list[str] | None = None,
) -> Path:
    """Write a note, with a frontmatter block only when metadata is given.

    Usage in tests:
        from conftest import create_note
        create_note(tmp_brain, "ideas/zettel.md", "See [[Welcome]]", title="Zettel")
    """
    note_path = brain_root / path
    note_path.parent.mkdir(parents=True, exist_ok=True)

    meta = []
    if title is not None:
        meta.append(f"title: {title}")
    if aliases:
        meta.append(f"aliases: [{', '.join(aliases)}]")
    if tags:
        meta.append(f"tags: [{', '.join(tags)}]")

    text = f"---\n{chr(10).join(meta)}\n---\n\n{content}\n" if meta else f"{content}\n"
    note_path.write_text(text, encoding="utf-8")
    return note_path


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def tmp_brain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an empty brain folder and point SECONDBRAIN_ROOT at it.

    Usage:
        def test_something(tmp_brain):
            (tmp_brain / "note.md").write_text("# Note")
    """
    brain_root = tmp_path / "brain"
    brain_root.mkdir()
    monkeypatch.setenv("SECONDBRAIN_ROOT", str(brain_root))
    return brain_root


@pytest.fixture
def sample_brain(tmp_brain: Path) -> Path:
    """Brain with three notes.

    Creates:
    - welcome.md: links to Second Brain and to a missing page, #intro
    - concepts/second-brain.md: alias PKM, links back to welcome, #notes
    - orphan.md: no frontmatter, no links
    """
    create_note(
        tmp_brain,
        "welcome.md",
        "# Welcome\n\nStart at [[Second Brain]]. #intro\n\nAlso see [[Missing Page]].",
        title="Welcome",
    )
    create_note(
        tmp_brain,
        "concepts/second-brain.md",
        "Back to [[welcome]]. Uses #notes for everything.",
        title="Second Brain",
        aliases=["PKM"],
        tags=["concept"],
    )
    create_note(tmp_brain, "orphan.md", "# Orphan\n\nNobody links here.")
    return tmp_brain


@pytest.fixture
def cli_invoke(runner: CliRunner, tmp_brain: Path):
    """Helper for invoking the CLI against tmp_brain.

    Usage:
        def test_stats(cli_invoke):
            result = cli_invoke(["stats"])
            assert result.exit_code == 0
    """
    def _invoke(args: list[str], input: str | None = None, catch_exceptions: bool = False):
        return runner.invoke(
            cli,
            args,
            input=input,
            catch_exceptions=catch_exceptions,
            env={"SECONDBRAIN_ROOT": str(tmp_brain)},
        )
    return _invoke
