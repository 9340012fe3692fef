"""Structural checks over stored documents: broken intra-store links and empty fields."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mem.store import SUFFIX

if TYPE_CHECKING:
    from mem.document import Document
    from mem.store import Store

EMPTY_TITLE = "empty-title"
EMPTY_CONTENT = "empty-content"
BROKEN_LINK = "broken-link"


@dataclass
class Finding:
    """One lint issue attributed to a document path."""

    path: str
    kind: str
    target: str = ""

    @property
    def message(self) -> str:
        if self.kind == BROKEN_LINK:
            return f"{self.path}: broken link to {self.target}"
        if self.kind == EMPTY_TITLE:
            return f"{self.path}: empty title"
        return f"{self.path}: empty content"


@dataclass
class LintReport:
    checked: int = 0
    findings: list[Finding] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings


def scan_links(text: str) -> Iterator[str]:
    """Yield the target of every ``[label](target)`` link in text.

    Labels may nest brackets; the target must open immediately after the
    label's closing bracket and ends at the first ``)``. Links never span lines.
    """
    for line in text.split("\n"):
        yield from _scan_line(line.removesuffix("\r"))


def _scan_line(line: str) -> Iterator[str]:
    pos = 0
    end = len(line)
    while pos < end:
        if line[pos] != "[":
            pos += 1
            continue
        depth = 1
        pos += 1
        while pos < end:
            ch = line[pos]
            pos += 1
            if ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    break
        if pos < end and line[pos] == "(":
            close = line.find(")", pos + 1)
            if close == -1:
                return
            yield line[pos + 1 : close]
            pos = close + 1


def is_structural(target: str) -> bool:
    """True for relative document links like ``../adr-001.md``."""
    return target.endswith(SUFFIX) and not target.startswith("http")


def resolve_link(source: str, target: str) -> str:
    """Logical path a link points at, relative to the source document's directory."""
    parent = source.rpartition("/")[0]
    return posixpath.join(parent, target[: -len(SUFFIX)])


def check_document(store: Store, doc: Document) -> list[Finding]:
    findings: list[Finding] = []
    if not doc.title.strip():
        findings.append(Finding(doc.path, EMPTY_TITLE))
    if not doc.content.strip():
        findings.append(Finding(doc.path, EMPTY_CONTENT))
    for target in scan_links(doc.content):
        if is_structural(target) and not store.exists(resolve_link(doc.path, target)):
            findings.append(Finding(doc.path, BROKEN_LINK, target))
    return findings


def lint(store: Store, documents: Iterable[Document] | None = None) -> LintReport:
    """Check every live document (or the given ones). Never mutates the store."""
    report = LintReport()
    for doc in store.list() if documents is None else documents:
        report.checked += 1
        report.findings.extend(check_document(store, doc))
    return report
