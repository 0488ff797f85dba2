"""Folder tree of the brain for the file browser."""

from __future__ import annotations

from collections.abc import Iterable

from .config import TREE_ROOT_NAME
from .models import Note, TreeNode


def _sort_key(node: TreeNode) -> tuple[int, str, str]:
    # Folders first, then case-insensitive name
    return (0 if node.type == "folder" else 1, node.name.lower(), node.name)


def build_tree(notes: Iterable[Note], root_name: str = TREE_ROOT_NAME) -> TreeNode:
    """Build a folder tree from the notes' relative paths.

    Args:
        notes: Notes to place; each becomes a file leaf carrying its id.
        root_name: Name of the root folder.

    Returns:
        Root TreeNode with folders before files at every level.
    """
    root = TreeNode(name=root_name, type="folder", children=[])
    folders: dict[tuple[str, ...], TreeNode] = {(): root}

    for note in notes:
        parts = note.relative_path.split("/")
        parent_key: tuple[str, ...] = ()
        parent = root

        for part in parts[:-1]:
            key = parent_key + (part,)
            folder = folders.get(key)
            if folder is None:
                folder = TreeNode(name=part, type="folder", children=[])
                folders[key] = folder
                parent.children.append(folder)
            parent_key, parent = key, folder

        parent.children.append(TreeNode(name=parts[-1], type="file", id=note.id))

    for folder in folders.values():
        folder.children.sort(key=_sort_key)

    return root


def count_files(node: TreeNode) -> int:
    if node.type == "file":
        return 1
    return sum(count_files(child) for child in node.children or [])
