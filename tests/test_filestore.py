"""Tests for filestore.py: path safety and markdown CRUD."""

from __future__ import annotations

from pathlib import Path

import pytest

from secondbrain.filestore import FileStore, InvalidNoteError, InvalidPathError, NoteExistsError, NoteNotFoundError


@pytest.fixture
def store(sample_brain: Path) -> FileStore:
    return FileStore(sample_brain)


class TestResolve:
    @pytest.mark.parametrize(
        "path",
        ["", "   ", "../outside.md", "notes/../../outside.md", "/etc/passwd.md", "~/notes.md", "notes.txt", "dir/"],
    )
    def test_rejects_unsafe_or_non_markdown(self, store, path):
        with pytest.raises(InvalidPathError):
            store.resolve(path)

    def test_resolves_inside_root(self, store, sample_brain):
        assert store.resolve("concepts/second-brain.md") == (sample_brain / "concepts" / "second-brain.md").resolve()

    def test_backslashes_are_normalized(self, store, sample_brain):
        assert store.resolve("concepts\\second-brain.md") == (sample_brain / "concepts" / "second-brain.md").resolve()


class TestListAndRead:
    def test_list_files(self, store, sample_brain):
        (sample_brain / ".hidden").mkdir()
        (sample_brain / ".hidden" / "secret.md").write_text("x")

        files = {f.path: f for f in store.list_files()}

        assert set(files) == {"concepts/second-brain.md", "orphan.md", "welcome.md"}
        second = files["concepts/second-brain.md"]
        assert second.name == "second-brain"
        assert second.folder == "concepts"
        assert second.frontmatter["title"] == "Second Brain"
        assert files["orphan.md"].folder == ""
        assert files["orphan.md"].frontmatter == {}
        assert second.size > 0

    def test_read_file_splits_frontmatter(self, store):
        content = store.read_file("welcome.md")
        assert content.frontmatter == {"title": "Welcome"}
        assert "[[Second Brain]]" in content.content
        assert content.raw_content.startswith("---")

    def test_read_missing(self, store):
        with pytest.raises(NoteNotFoundError):
            store.read_file("missing.md")

    def test_read_invalid_frontmatter(self, store, sample_brain):
        (sample_brain / "bad.md").write_text("---\ntitle: [unclosed\n---\nBody")

        with pytest.raises(InvalidNoteError, match="frontmatter"):
            store.read_file("bad.md")
        assert "bad.md" in {f.path for f in store.list_files()}

    def test_read_undecodable(self, store, sample_brain):
        (sample_brain / "latin.md").write_bytes(b"caf\xe9 \xff")

        with pytest.raises(InvalidNoteError, match="UTF-8"):
            store.read_file("latin.md")


class TestWrite:
    def test_save_creates_folders_and_frontmatter(self, store, sample_brain):
        store.save_file("new/deep/idea.md", "Body [[Welcome]]", {"title": "Idea", "tags": ["x"]})

        content = store.read_file("new/deep/idea.md")
        assert content.frontmatter == {"title": "Idea", "tags": ["x"]}
        assert content.content.strip() == "Body [[Welcome]]"
        assert (sample_brain / "new" / "deep" / "idea.md").is_file()

    def test_save_without_frontmatter_writes_plain_body(self, store, sample_brain):
        store.save_file("plain.md", "Just text")
        assert (sample_brain / "plain.md").read_text() == "Just text"

    def test_save_overwrites(self, store):
        store.save_file("orphan.md", "Replaced")
        assert store.read_file("orphan.md").content.strip() == "Replaced"

    def test_create_refuses_existing(self, store):
        with pytest.raises(NoteExistsError):
            store.create_file("welcome.md", "again")

    def test_create_new(self, store):
        store.create_file("fresh.md", "Hello")
        assert store.read_file("fresh.md").content.strip() == "Hello"

    def test_delete(self, store, sample_brain):
        store.delete_file("orphan.md")
        assert not (sample_brain / "orphan.md").exists()

    def test_delete_missing(self, store):
        with pytest.raises(NoteNotFoundError):
            store.delete_file("missing.md")
