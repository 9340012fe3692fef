"""Rebuild a directory tree from a flat, sorted list of documents."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from mem.document import Document

TEE = "├── "
LAST = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass
class TreeNode:
    """A directory: subdirectories first, then the documents directly inside it."""

    name: str
    path: str
    dirs: list[TreeNode] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)

    @property
    def entries(self) -> list[TreeNode | Document]:
        return [*self.dirs, *self.documents]


def build_tree(documents: Iterable[Document], root_name: str = "") -> TreeNode:
    """Group documents under every strict prefix of their paths.

    Directory nodes are sorted alphabetically; documents keep the order
    they were given in.
    """
    dirs: set[str] = set()
    grouped: dict[str, list[Document]] = defaultdict(list)
    for doc in documents:
        parts = doc.path.split("/")
        for i in range(1, len(parts)):
            dirs.add("/".join(parts[:i]))
        grouped[doc.parent].append(doc)

    children: dict[str, list[str]] = defaultdict(list)
    for d in sorted(dirs):
        children[d.rpartition("/")[0]].append(d)

    def _node(path: str, name: str) -> TreeNode:
        return TreeNode(
            name=name,
            path=path,
            dirs=[_node(d, d.rsplit("/", 1)[-1]) for d in children.get(path, [])],
            documents=list(grouped.get(path, [])),
        )

    return _node("", root_name)


def render_tree(documents: Iterable[Document], root_name: str) -> list[str]:
    """Render documents as connector lines, e.g. ``├── adr-001 - Use Postgres``."""
    tree = build_tree(documents, root_name)
    lines = [f"{root_name}/"]
    _render(tree, "", lines)
    return lines


def _render(node: TreeNode, prefix: str, lines: list[str]) -> None:
    entries = node.entries
    for index, entry in enumerate(entries):
        is_last = index == len(entries) - 1
        connector = LAST if is_last else TEE
        if isinstance(entry, TreeNode):
            lines.append(f"{prefix}{connector}{entry.name}/")
            _render(entry, prefix + (SPACE if is_last else PIPE), lines)
        else:
            lines.append(f"{prefix}{connector}{entry.name} - {entry.title}")
