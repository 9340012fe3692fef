"""File-backed mem store.

Markdown files are the source of truth. Each document lives at
``<root>/<path>.md``; intermediate directories exist only while some
document sits beneath them. Removed-but-retained documents move to
``<root>/archive/`` under the same relative path.
"""

from __future__ import annotations

import errno
import logging
import os
import tempfile
from pathlib import Path

from mem.document import Document, decode, encode
from mem.errors import AlreadyExists, Corrupt, IOFailure, NotFound, ParseError

logger = logging.getLogger(__name__)

ROOT_DIRNAME = ".mems"
ARCHIVE_DIRNAME = "archive"
SUFFIX = ".md"
TEMP_SUFFIX = ".tmp"


# ── Root discovery ────────────────────────────────────────────


def find_root(cwd: Path | str, dirname: str = ROOT_DIRNAME) -> Path:
    """Walk up from cwd, return the first ``dirname`` directory found."""
    current = Path(cwd).resolve()
    while True:
        candidate = current / dirname
        if candidate.is_dir():
            return candidate
        if current == current.parent:
            raise NotFound(
                dirname,
                f"no {dirname}/ directory found (run `mem init` to create one)",
            )
        current = current.parent


def create_root(cwd: Path | str, dirname: str = ROOT_DIRNAME) -> Store:
    """Create ``<cwd>/<dirname>/`` with an empty archive."""
    root = Path(cwd) / dirname
    if root.exists():
        raise AlreadyExists(f"{dirname}/", f"{dirname}/ already exists")
    try:
        root.mkdir(parents=True)
        (root / ARCHIVE_DIRNAME).mkdir()
    except OSError as exc:
        raise IOFailure("create", root, exc) from exc
    logger.info("Initialized store at %s", root)
    return Store(root)


class Store:
    """Read/write access to one store root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"Store({str(self.root)!r})"

    # ── Paths ─────────────────────────────────────────────────

    @property
    def archive_root(self) -> Path:
        return self.root / ARCHIVE_DIRNAME

    def resolve(self, path: str) -> Path:
        """Map a logical path to its file. No ``.``/``..`` normalization."""
        return self.root / f"{path}{SUFFIX}"

    def resolve_archived(self, path: str) -> Path:
        return self.archive_root / f"{path}{SUFFIX}"

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    # ── Write ─────────────────────────────────────────────────

    def write(self, doc: Document) -> None:
        """Persist a document, replacing any previous version atomically."""
        target = self.resolve(doc.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure("create", target.parent, exc) from exc
        self._write_atomic(target, encode(doc))
        logger.info("Wrote %s", doc.path)

    def _write_atomic(self, target: Path, content: str) -> None:
        """Write to a unique sibling temp file, fsync, then rename over target."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=TEMP_SUFFIX
            )
        except OSError as exc:
            raise IOFailure("create", target.parent, exc) from exc

        tmp_path = Path(tmp_name)
        step = "write"
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                step = "sync"
                os.fsync(f.fileno())
            # mkstemp creates 0600; documents are ordinary project files
            os.chmod(tmp_path, 0o644)
            step = "rename"
            os.replace(tmp_path, target)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise IOFailure(step, target, exc) from exc
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    # ── Read ──────────────────────────────────────────────────

    def read(self, path: str) -> Document:
        file_path = self.resolve(path)
        if not file_path.is_file():
            raise NotFound(path)
        return self._load(path, file_path)

    def read_archived(self, path: str) -> Document:
        file_path = self.resolve_archived(path)
        if not file_path.is_file():
            raise NotFound(f"{ARCHIVE_DIRNAME}/{path}")
        return self._load(path, file_path)

    def _load(self, path: str, file_path: Path) -> Document:
        try:
            # newline="" keeps \r bytes in the body as written
            with open(file_path, encoding="utf-8", newline="") as f:
                text = f.read()
        except OSError as exc:
            raise IOFailure("read", file_path, exc) from exc
        try:
            return decode(path, text)
        except ParseError as exc:
            raise Corrupt(path, exc) from exc

    # ── Delete / archive ──────────────────────────────────────

    def delete(self, path: str) -> None:
        file_path = self.resolve(path)
        if not file_path.is_file():
            raise NotFound(path)
        try:
            file_path.unlink()
        except OSError as exc:
            raise IOFailure("remove", file_path, exc) from exc
        self._prune(file_path.parent)
        logger.info("Deleted %s", path)

    def archive(self, path: str) -> None:
        """Move a document under archive/ without touching its metadata."""
        src = self.resolve(path)
        if not src.is_file():
            raise NotFound(path)
        dest = self.resolve_archived(path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure("create", dest.parent, exc) from exc
        if dest.exists():
            logger.warning("Replacing previously archived %s", path)
        try:
            os.replace(src, dest)
        except OSError as exc:
            raise IOFailure("rename", src, exc) from exc
        self._prune(src.parent)
        logger.info("Archived %s", path)

    def _prune(self, directory: Path) -> None:
        """Remove now-empty directories upward, stopping at the root."""
        root = self.root.resolve()
        current = directory
        while current.resolve() != root and root in current.resolve().parents:
            try:
                current.rmdir()
            except OSError as exc:
                if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    logger.debug("Stopped pruning at %s: not empty", current)
                else:
                    logger.warning("Could not prune %s: %s", current, exc)
                break
            current = current.parent

    # ── Enumeration ───────────────────────────────────────────

    def list(self, prefix: str | None = None) -> list[Document]:
        """All live documents (or those under prefix), sorted by path."""
        if prefix:
            prefix = prefix.strip("/")
        if prefix:
            docs = self._walk(self.root / prefix, prefix)
        else:
            docs = self._walk(self.root, "")
        docs.sort(key=lambda d: d.path.split("/"))
        return docs

    def _walk(self, directory: Path, prefix: str) -> list[Document]:
        docs: list[Document] = []
        if not directory.is_dir():
            return docs
        try:
            entries = list(os.scandir(directory))
        except OSError as exc:
            raise IOFailure("read", directory, exc) from exc

        for entry in entries:
            name = entry.name
            if not prefix and name == ARCHIVE_DIRNAME:
                continue
            if name.startswith(".") or name.endswith(TEMP_SUFFIX):
                continue

            if entry.is_dir():
                sub_prefix = f"{prefix}/{name}" if prefix else name
                docs.extend(self._walk(Path(entry.path), sub_prefix))
            elif name.endswith(SUFFIX):
                stem = name[: -len(SUFFIX)]
                path = f"{prefix}/{stem}" if prefix else stem
                try:
                    docs.append(self._load(path, Path(entry.path)))
                except Corrupt as exc:
                    logger.warning("Skipping invalid mem %s: %s", path, exc.cause.message)
        return docs
