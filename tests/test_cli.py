"""End-to-end tests for the mem CLI."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from click.testing import CliRunner

from mem.cli import cli
from mem.config import MemConfig
from mem.document import Document
from mem.store import Store, create_root


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def run(workdir: Path):
    runner = CliRunner()

    def _run(*args: str, input: str | None = None):
        return runner.invoke(cli, list(args), input=input, obj={"config": MemConfig()})

    return _run


@pytest.fixture
def store(workdir: Path, run) -> Store:
    assert run("init").exit_code == 0
    return Store(workdir / ".mems")


class TestInit:
    def test_init_creates_directory(self, workdir: Path, run):
        result = run("init")
        assert result.exit_code == 0
        assert "Initialized" in result.output
        assert (workdir / ".mems" / "archive").is_dir()

    def test_init_fails_if_exists(self, store: Store, run):
        result = run("init")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_commands_fail_without_store(self, workdir: Path, run):
        result = run("ls")
        assert result.exit_code == 1
        assert "mem init" in result.output


class TestAddShow:
    def test_add_and_show(self, store: Store, run):
        result = run("add", "test/doc", "-c", "Hello world", "-t", "Test Title")
        assert result.exit_code == 0
        assert "Created: test/doc" in result.output

        result = run("show", "test/doc")
        assert result.exit_code == 0
        assert "# Test Title" in result.output
        assert "Hello world" in result.output

    def test_add_with_stdin(self, store: Store, run):
        result = run("add", "stdin-test", input="Content from stdin")
        assert result.exit_code == 0
        assert store.read("stdin-test").content == "Content from stdin"

    def test_add_without_content(self, store: Store, run):
        result = run("add", "empty", input="")
        assert result.exit_code == 1
        assert "no content provided" in result.output

    def test_default_title_and_tags(self, store: Store, run):
        run("add", "arch/adr-001_intro", "-c", "x", "--tags", "rust, cli")
        doc = store.read("arch/adr-001_intro")
        assert doc.title == "adr 001 intro"
        assert doc.tags == ["rust", "cli"]

    def test_add_duplicate_fails(self, store: Store, run):
        run("add", "dup", "-c", "First")
        result = run("add", "dup", "-c", "Second")
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert store.read("dup").content == "First"

    def test_add_with_force_overwrites(self, store: Store, run):
        run("add", "force-test", "-c", "First")
        result = run("add", "force-test", "-c", "Second", "--force")
        assert result.exit_code == 0
        out = run("show", "force-test").output
        assert "Second" in out
        assert "First" not in out

    def test_show_json(self, store: Store, run):
        run("add", "j", "-c", "body", "-t", "J", "--tags", "a")
        data = json.loads(run("show", "j", "--json").output)
        assert data["path"] == "j"
        assert data["title"] == "J"
        assert data["tags"] == ["a"]
        assert data["content"] == "body"

    def test_show_missing(self, store: Store, run):
        result = run("show", "nope")
        assert result.exit_code == 1
        assert "mem not found: nope" in result.output

    def test_show_corrupt(self, store: Store, run):
        store.resolve("bad").write_text("no header", encoding="utf-8")
        result = run("show", "bad")
        assert result.exit_code == 1
        assert "corrupt mem bad" in result.output


class TestEditRemoveArchive:
    def test_edit(self, store: Store, run):
        run("add", "edit-test", "-c", "Original", "-t", "Original Title")
        created = store.read("edit-test").created_at

        result = run("edit", "edit-test", "-c", "Updated content")
        assert result.exit_code == 0
        doc = store.read("edit-test")
        assert doc.content == "Updated content"
        assert doc.title == "Original Title"
        assert doc.created_at == created
        assert doc.updated_at >= created

    def test_edit_missing(self, store: Store, run):
        assert run("edit", "ghost", "-c", "x").exit_code == 1

    def test_rm(self, store: Store, run):
        run("add", "dir/to-delete", "-c", "Delete me")
        result = run("rm", "dir/to-delete")
        assert result.exit_code == 0
        assert run("show", "dir/to-delete").exit_code == 1
        assert not (store.root / "dir").exists()

    def test_archive(self, store: Store, run):
        run("add", "old/idea", "-c", "Retired")
        result = run("archive", "old/idea")
        assert result.exit_code == 0
        assert "Archived: old/idea" in result.output
        assert (store.root / "archive" / "old" / "idea.md").exists()
        assert "No mems found" in run("ls").output


class TestReadCommands:
    def test_ls(self, store: Store, run):
        run("add", "b/second", "-c", "x", "-t", "Second")
        run("add", "a/first", "-c", "x", "-t", "First", "--tags", "tag1")
        lines = run("ls").output.splitlines()
        assert lines == ["a/first: First [tag1]", "b/second: Second"]

    def test_ls_prefix_and_json(self, store: Store, run):
        run("add", "a/first", "-c", "x")
        run("add", "b/second", "-c", "x")
        data = json.loads(run("ls", "a", "--json").output)
        assert [d["path"] for d in data] == ["a/first"]

    def test_find(self, store: Store, run):
        run("add", "notes", "-c", "Uses PaddleOCR", "-t", "Notes")
        run("add", "other", "-c", "nothing", "-t", "Other")
        assert run("find", "paddleocr").output.splitlines() == ["notes: Notes"]
        assert "No matches found for: zzz" in run("find", "zzz").output

    def test_tree(self, store: Store, run):
        run("add", "arch/adr-001", "-c", "x", "-t", "Use Postgres")
        run("add", "readme", "-c", "x", "-t", "Readme")
        assert run("tree").output.splitlines() == [
            ".mems/",
            "├── arch/",
            "│   └── adr-001 - Use Postgres",
            "└── readme - Readme",
        ]

    def test_stale(self, store: Store, run):
        old = Document.new("ancient", "Ancient", "body")
        old.created_at = old.updated_at = datetime.now(timezone.utc) - timedelta(days=200)
        store.write(old)
        run("add", "fresh", "-c", "x")

        out = run("stale").output
        assert "Stale mems (not updated in 90+ days):" in out
        assert "ancient: Ancient" in out
        assert "fresh" not in out
        assert "No stale mems (threshold: 365 days)" in run("stale", "--days", "365").output

    def test_lint_clean(self, store: Store, run):
        run("add", "a", "-c", "[b](b.md)")
        run("add", "b", "-c", "body")
        result = run("lint")
        assert result.exit_code == 0
        assert "No issues found (2 mems checked)" in result.output

    def test_lint_failure(self, store: Store, run):
        run("add", "a", "-c", "[text](missing.md)")
        result = run("lint")
        assert result.exit_code == 1
        assert "Found 1 issues:" in result.output
        assert "a: broken link to missing.md" in result.output

    def test_dump(self, store: Store, run):
        run("add", "one", "-c", "First body", "-t", "One", "--tags", "x")
        out = run("dump").output
        assert "<!-- one -->" in out
        assert "# One" in out
        assert "Tags: x" in out
        assert "First body" in out


class TestMultiDir:
    def test_ls_multiple_dirs(self, workdir: Path, run):
        first = create_root(workdir / "p1")
        second = create_root(workdir / "p2")
        first.write(Document.new("alpha", "Alpha", "x"))
        second.write(Document.new("beta", "Beta", "x"))

        result = run("--dir", str(first.root), "--dir", str(second.root), "ls")
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            f"[{first.root}] alpha: Alpha",
            f"[{second.root}] beta: Beta",
        ]

    def test_tree_uses_labels(self, workdir: Path, run):
        first = create_root(workdir / "p1")
        second = create_root(workdir / "p2")
        first.write(Document.new("alpha", "Alpha", "x"))
        second.write(Document.new("beta", "Beta", "x"))

        out = run("--dir", str(first.root), "--dir", str(second.root), "tree").output
        assert f"{first.root}/" in out
        assert f"{second.root}/" in out

    def test_missing_dir(self, workdir: Path, run):
        result = run("--dir", str(workdir / "absent"), "ls")
        assert result.exit_code == 1
        assert "directory not found" in result.output

    def test_dir_after_command(self, workdir: Path, run):
        first = create_root(workdir / "p1")
        second = create_root(workdir / "p2")
        first.write(Document.new("alpha", "Alpha", "x"))
        second.write(Document.new("beta", "Beta", "see [gone](gone.md)"))

        result = run("ls", "--dir", str(first.root))
        assert result.exit_code == 0
        assert result.output.splitlines() == ["alpha: Alpha"]

        result = run("--dir", str(first.root), "find", "beta", "--dir", str(second.root))
        assert result.exit_code == 0
        assert result.output.splitlines() == [f"[{second.root}] beta: Beta"]

        result = run("lint", "--dir", str(second.root))
        assert result.exit_code == 1
        assert "beta: broken link to gone.md" in result.output
