"""mem CLI — markdown knowledge tracking for projects.

Commands:
    mem init                   create .mems/ in the current directory
    mem add PATH               add a mem (content from -c or stdin)
    mem show PATH              print a mem
    mem edit PATH              change content, title or tags
    mem rm PATH                delete a mem
    mem ls [PREFIX]            list mems
    mem find QUERY             substring search over title and body
    mem tree [PREFIX]          show the hierarchy
    mem stale [--days N]       mems not updated recently
    mem lint                   check for broken links and empty mems
    mem archive PATH           move a mem to .mems/archive/
    mem dump [PREFIX]          concatenated markdown of all mems

Read commands accept ``--dir`` (repeatable, before or after the command name)
to query explicit store roots.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

import click

from mem.config import MemConfig, load_config
from mem.document import Document, default_title, parse_tags
from mem.errors import AlreadyExists, MemError
from mem.hierarchy import render_tree
from mem.multi import Labelled, lint_all, list_all, open_stores, search, stale
from mem.store import Store, create_root, find_root

_DIVIDER = "<!-- " + "═" * 67 + " -->"


class _MemGroup(click.Group):
    """Report store errors as ``Error: ...`` with exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except MemError as exc:
            raise click.ClickException(exc.message) from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cfg(ctx: click.Context) -> MemConfig:
    return ctx.obj["config"]


def _local_store(ctx: click.Context) -> Store:
    """The single store write commands operate on."""
    return Store(find_root(Path.cwd(), _cfg(ctx).store_dirname))


def _stores(ctx: click.Context) -> list[Labelled]:
    return open_stores(ctx.obj["dirs"], Path.cwd(), _cfg(ctx).store_dirname)


def _merge_dirs(ctx: click.Context, param: click.Parameter, value: tuple[Path, ...]) -> None:
    if value:
        ctx.obj["dirs"].extend(value)


def _dir_option(f):
    """Accept ``--dir`` after a read command as well as before it."""
    return click.option(
        "--dir",
        multiple=True,
        type=click.Path(path_type=Path),
        expose_value=False,
        callback=_merge_dirs,
        help="Store directory to query (repeatable)",
    )(f)


def _label(label: str, multi: bool) -> str:
    return f"[{label}] " if multi else ""


def _echo_json(docs: Sequence[Document]) -> None:
    click.echo(json.dumps([d.to_dict() for d in docs], indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group(cls=_MemGroup)
@click.version_option(package_name="mem")
@click.option(
    "--dir",
    "dirs",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Store directory to query (repeatable)",
)
@click.pass_context
def cli(ctx: click.Context, dirs: tuple[Path, ...]) -> None:
    """A markdown-based knowledge tracking CLI for projects."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = load_config()
    ctx.obj["dirs"] = list(dirs)


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Initialize a new store in the current directory."""
    dirname = _cfg(ctx).store_dirname
    create_root(Path.cwd(), dirname)
    click.echo(f"Initialized {dirname}/ directory")


@cli.command()
@click.argument("path")
@click.option("-c", "--content", default=None, help="Content of the mem")
@click.option("-t", "--title", default=None, help="Title (defaults to last path segment)")
@click.option("--tags", default=None, help="Tags (comma-separated)")
@click.option("-f", "--force", is_flag=True, help="Overwrite if exists")
@click.pass_context
def add(
    ctx: click.Context,
    path: str,
    content: str | None,
    title: str | None,
    tags: str | None,
    force: bool,
) -> None:
    """Add a new mem."""
    store = _local_store(ctx)
    if store.exists(path) and not force:
        raise AlreadyExists(path, f"mem already exists: {path} (use --force to overwrite)")

    if content is None:
        content = click.get_text_stream("stdin").read()
        if not content:
            raise click.ClickException("no content provided (use -c or pipe via stdin)")

    doc = Document.new(
        path,
        title if title is not None else default_title(path),
        content,
        tags=parse_tags(tags) if tags is not None else None,
    )
    store.write(doc)
    click.echo(f"Created: {path}")


@cli.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show(ctx: click.Context, path: str, as_json: bool) -> None:
    """Show a mem's content."""
    doc = _local_store(ctx).read(path)
    if as_json:
        click.echo(json.dumps(doc.to_dict(), indent=2, ensure_ascii=False))
        return
    click.echo(f"# {doc.title}\n")
    if doc.tags:
        click.echo(f"Tags: {', '.join(doc.tags)}\n")
    click.echo(doc.content)


@cli.command()
@click.argument("path")
@click.option("-c", "--content", default=None, help="New content")
@click.option("-t", "--title", default=None, help="New title")
@click.option("--tags", default=None, help="New tags (comma-separated)")
@click.pass_context
def edit(
    ctx: click.Context,
    path: str,
    content: str | None,
    title: str | None,
    tags: str | None,
) -> None:
    """Edit an existing mem."""
    store = _local_store(ctx)
    doc = store.read(path)
    doc.edit(
        content=content,
        title=title,
        tags=parse_tags(tags) if tags is not None else None,
    )
    store.write(doc)
    click.echo(f"Updated: {path}")


@cli.command()
@click.argument("path")
@click.pass_context
def rm(ctx: click.Context, path: str) -> None:
    """Remove a mem."""
    _local_store(ctx).delete(path)
    click.echo(f"Deleted: {path}")


@cli.command()
@click.argument("path")
@click.pass_context
def archive(ctx: click.Context, path: str) -> None:
    """Move a mem to the archive."""
    _local_store(ctx).archive(path)
    click.echo(f"Archived: {path}")


@cli.command()
@_dir_option
@click.argument("path", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def ls(ctx: click.Context, path: str | None, as_json: bool) -> None:
    """List mems."""
    stores = _stores(ctx)
    found = list_all(stores, path)
    if as_json:
        _echo_json([doc for _, doc in found])
        return
    if not found:
        click.echo("No mems found")
        return
    multi = len(stores) > 1
    for label, doc in found:
        tags = f" [{', '.join(doc.tags)}]" if doc.tags else ""
        click.echo(f"{_label(label, multi)}{doc.path}: {doc.title}{tags}")


@cli.command()
@_dir_option
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def find(ctx: click.Context, query: str, as_json: bool) -> None:
    """Search mems by title and content."""
    stores = _stores(ctx)
    matches = search(stores, query)
    if as_json:
        _echo_json([doc for _, doc in matches])
        return
    if not matches:
        click.echo(f"No matches found for: {query}")
        return
    multi = len(stores) > 1
    for label, doc in matches:
        click.echo(f"{_label(label, multi)}{doc.path}: {doc.title}")


@cli.command()
@_dir_option
@click.argument("path", required=False)
@click.pass_context
def tree(ctx: click.Context, path: str | None) -> None:
    """Show the hierarchy as a tree."""
    stores = _stores(ctx)
    multi = len(stores) > 1
    any_found = False
    for index, (label, store) in enumerate(stores):
        docs = store.list(path)
        if not docs:
            continue
        any_found = True
        if multi and index > 0:
            click.echo()
        root_name = label if multi else (path or _cfg(ctx).store_dirname)
        click.echo("\n".join(render_tree(docs, root_name)))
    if not any_found:
        click.echo("No mems found")


@cli.command("stale")
@_dir_option
@click.option("--days", type=int, default=None, help="Days threshold (default: 90)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stale_cmd(ctx: click.Context, days: int | None, as_json: bool) -> None:
    """List mems not updated recently."""
    if days is None:
        days = _cfg(ctx).stale_days
    stores = _stores(ctx)
    now = datetime.now(timezone.utc)
    old = stale(stores, days, now=now)
    if as_json:
        _echo_json([doc for _, doc in old])
        return
    if not old:
        click.echo(f"No stale mems (threshold: {days} days)")
        return
    multi = len(stores) > 1
    click.echo(f"Stale mems (not updated in {days}+ days):")
    for label, doc in old:
        age = (now - doc.updated_at).days
        click.echo(f"  {_label(label, multi)}{doc.path}: {doc.title} ({age} days)")


@cli.command("lint")
@_dir_option
@click.pass_context
def lint_cmd(ctx: click.Context) -> None:
    """Validate all mems."""
    stores = _stores(ctx)
    multi = len(stores) > 1
    checked, findings = lint_all(stores)
    if not findings:
        click.echo(f"No issues found ({checked} mems checked)")
        return
    click.echo(f"Found {len(findings)} issues:")
    for label, finding in findings:
        click.echo(f"  {_label(label, multi)}{finding.message}")
    raise click.ClickException(f"lint failed with {len(findings)} issues")


@cli.command()
@_dir_option
@click.argument("path", required=False)
@click.pass_context
def dump(ctx: click.Context, path: str | None) -> None:
    """Dump mems as concatenated markdown."""
    stores = _stores(ctx)
    multi = len(stores) > 1
    first = True
    for label, store in stores:
        docs = store.list(path)
        if not docs:
            continue
        if multi:
            if not first:
                click.echo()
            click.echo(f"<!-- ═══ {label} ═══ -->\n")
        first = False
        for doc in docs:
            click.echo(_DIVIDER)
            click.echo(f"<!-- {doc.path} -->")
            click.echo(_DIVIDER)
            click.echo()
            click.echo(f"# {doc.title}\n")
            if doc.tags:
                click.echo(f"Tags: {', '.join(doc.tags)}\n")
            click.echo(doc.content)
            click.echo()
