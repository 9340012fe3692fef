"""Fan read-side queries out across one or more stores.

Each result is paired with the label of the store it came from: the
directory as given on the command line, or ``""`` for the single store
found from the working directory.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

from mem.document import Document
from mem.errors import NotFound
from mem.lint import Finding, lint
from mem.store import ROOT_DIRNAME, Store, find_root

logger = logging.getLogger(__name__)

Labelled = tuple[str, Store]


def open_stores(
    dirs: Sequence[Path | str],
    cwd: Path | str,
    dirname: str = ROOT_DIRNAME,
) -> list[Labelled]:
    """Explicit store roots, or the implicit one found from cwd."""
    if not dirs:
        return [("", Store(find_root(cwd, dirname)))]

    stores: list[Labelled] = []
    for d in dirs:
        path = Path(d)
        if not path.exists():
            raise NotFound(str(d), f"directory not found: {d}")
        stores.append((str(d), Store(path)))
    logger.debug("Querying %d stores", len(stores))
    return stores


def list_all(stores: Sequence[Labelled], prefix: str | None = None) -> list[tuple[str, Document]]:
    return [(label, doc) for label, store in stores for doc in store.list(prefix)]


def search(stores: Sequence[Labelled], query: str) -> list[tuple[str, Document]]:
    """Case-insensitive substring match over title and body."""
    q = query.lower()
    return [
        (label, doc)
        for label, doc in list_all(stores)
        if q in doc.title.lower() or q in doc.content.lower()
    ]


def stale(
    stores: Sequence[Labelled],
    days: int,
    now: datetime | None = None,
) -> list[tuple[str, Document]]:
    """Documents not updated within the last ``days`` days."""
    now = now or datetime.now(timezone.utc)
    threshold = timedelta(days=days)
    return [(label, doc) for label, doc in list_all(stores) if now - doc.updated_at > threshold]


def lint_all(stores: Sequence[Labelled]) -> tuple[int, list[tuple[str, Finding]]]:
    """Lint every store. Returns (documents checked, labelled findings)."""
    checked = 0
    findings: list[tuple[str, Finding]] = []
    for label, store in stores:
        report = lint(store)
        checked += report.checked
        findings.extend((label, f) for f in report.findings)
    return checked, findings
