"""Exception hierarchy for the mem store."""

from __future__ import annotations


class MemError(Exception):
    """Base error for all store and document failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(MemError):
    """No backing file exists for the requested path."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"mem not found: {path}")
        self.path = path


class AlreadyExists(MemError):
    """A document or store root is already present at the target."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"already exists: {path}")
        self.path = path


# ── Parse errors ──────────────────────────────────────────────


class ParseError(MemError):
    """Raw text could not be decoded into a Document."""


class MalformedHeader(ParseError):
    def __init__(self) -> None:
        super().__init__("missing frontmatter: file must start with ---")


class UnterminatedHeader(ParseError):
    def __init__(self) -> None:
        super().__init__("missing frontmatter: no closing --- found")


class InvalidMetadata(ParseError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid frontmatter: {detail}")
        self.detail = detail


# ── Storage errors ────────────────────────────────────────────


class Corrupt(MemError):
    """A stored file exists but does not decode."""

    def __init__(self, path: str, cause: ParseError) -> None:
        super().__init__(f"corrupt mem {path}: {cause.message}")
        self.path = path
        self.cause = cause


class IOFailure(MemError):
    """An OSError raised during a named storage step."""

    def __init__(self, step: str, path: object, cause: OSError) -> None:
        super().__init__(f"failed to {step} {path}: {cause.strerror or cause}")
        self.step = step
        self.path = str(path)
        self.cause = cause
