"""Document model — one mem and its on-disk text encoding.

A mem file is YAML frontmatter followed by the markdown body:

    ---
    title: Document Title
    created-at: 2025-01-19T12:00:00Z
    updated-at: 2025-01-19T12:00:00Z
    tags:
    - tag1
    ---

    Markdown content here

``tags`` is omitted when empty. Timestamps are whole-second UTC instants.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import frontmatter
import yaml

from mem.errors import InvalidMetadata, MalformedHeader, UnterminatedHeader

DELIMITER = "---"

_CLOSING = re.compile(r"^---[ \t]*\r?$", re.MULTILINE)
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """Current UTC instant truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


class _HeaderDumper(yaml.SafeDumper):
    """SafeDumper that writes datetimes as plain ``YYYY-MM-DDTHH:MM:SSZ`` scalars."""


def _represent_timestamp(dumper: yaml.SafeDumper, value: datetime) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:timestamp", format_timestamp(value))


_HeaderDumper.add_representer(datetime, _represent_timestamp)

_handler = frontmatter.YAMLHandler()


@dataclass
class Document:
    """A titled, timestamped, tagged markdown document addressed by path."""

    path: str
    title: str
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    content: str = ""

    @classmethod
    def new(
        cls,
        path: str,
        title: str,
        content: str,
        tags: list[str] | None = None,
    ) -> Document:
        now = utc_now()
        return cls(
            path=path,
            title=title,
            created_at=now,
            updated_at=now,
            tags=list(tags or []),
            content=content,
        )

    def touch(self) -> None:
        """Refresh updated_at. created_at never changes."""
        self.updated_at = datetime.now(timezone.utc)

    def edit(
        self,
        content: str | None = None,
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> None:
        """Overwrite the given fields and refresh updated_at."""
        if content is not None:
            self.content = content
        if title is not None:
            self.title = title
        if tags is not None:
            self.tags = list(tags)
        self.touch()

    @property
    def name(self) -> str:
        """Final path segment."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        """Directory part of the path, ``""`` for top-level documents."""
        return self.path.rpartition("/")[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "created_at": self.created_at.astimezone(timezone.utc).isoformat(),
            "updated_at": self.updated_at.astimezone(timezone.utc).isoformat(),
            "tags": list(self.tags),
            "content": self.content,
        }


# ── Encoding ──────────────────────────────────────────────────


def encode(doc: Document) -> str:
    """Serialize a document to frontmatter + body text."""
    metadata: dict[str, Any] = {
        "title": doc.title,
        "created-at": doc.created_at,
        "updated-at": doc.updated_at,
    }
    if doc.tags:
        metadata["tags"] = list(doc.tags)
    header = _handler.export(metadata, Dumper=_HeaderDumper, sort_keys=False)
    if _CLOSING.search(header):
        # A multi-line title can leave a bare --- at column 0
        header = _handler.export(
            metadata, Dumper=_HeaderDumper, sort_keys=False, default_style='"'
        )
    return f"{DELIMITER}\n{header}\n{DELIMITER}\n\n{doc.content}"


def decode(path: str, text: str) -> Document:
    """Parse file text into a Document.

    Raises MalformedHeader when the text does not open with ``---``,
    UnterminatedHeader when no closing ``---`` line follows, and
    InvalidMetadata when the header is not the expected key set.
    """
    first_line, newline, _ = text.partition("\n")
    if first_line.rstrip() != DELIMITER:
        raise MalformedHeader()
    if not newline:
        raise UnterminatedHeader()

    start = len(first_line) + 1
    closing = _CLOSING.search(text, start)
    if closing is None:
        raise UnterminatedHeader()

    header = text[start : closing.start()]
    body = text[closing.end() :]
    if body.startswith("\n"):
        body = body[1:]
    # One blank separator line belongs to the format, not the body
    if body.startswith("\n"):
        body = body[1:]

    try:
        metadata = _handler.load(header)
    except yaml.YAMLError as exc:
        raise InvalidMetadata(str(exc)) from exc
    if not isinstance(metadata, dict):
        raise InvalidMetadata("header is not a mapping")

    return Document(
        path=path,
        title=_title(metadata),
        created_at=_timestamp(metadata, "created-at"),
        updated_at=_timestamp(metadata, "updated-at"),
        tags=_tags(metadata),
        content=body,
    )


def _title(metadata: dict) -> str:
    if "title" not in metadata:
        raise InvalidMetadata("missing field `title`")
    title = metadata["title"]
    if title is None:
        return ""
    if not isinstance(title, str):
        raise InvalidMetadata("`title` must be a string")
    return title


def _timestamp(metadata: dict, key: str) -> datetime:
    if key not in metadata:
        raise InvalidMetadata(f"missing field `{key}`")
    value = metadata[key]
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidMetadata(f"`{key}` is not an ISO-8601 timestamp") from exc
    elif not isinstance(value, datetime):
        if isinstance(value, date):
            raise InvalidMetadata(f"`{key}` has no time component")
        raise InvalidMetadata(f"`{key}` is not a timestamp")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _tags(metadata: dict) -> list[str]:
    tags = metadata.get("tags")
    if tags is None:
        return []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise InvalidMetadata("`tags` must be a list of strings")
    return list(tags)


# ── CLI helpers ───────────────────────────────────────────────


def default_title(path: str) -> str:
    """Derive a title from the last path segment: ``adr-001`` → ``adr 001``."""
    return path.rsplit("/", 1)[-1].replace("-", " ").replace("_", " ")


def parse_tags(text: str) -> list[str]:
    """Split a comma-separated tag list, trimming each entry."""
    return [t.strip() for t in text.split(",")]
