"""Tests for the watch filter and watcher-thread liveness."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from watchfiles import Change

from difflog.core.ignore import IgnoreRules
from difflog.core.scanner import scan_directory
from difflog.engine.coalescer import EventCoalescer
from difflog.engine.source import RootFilter, WatchSource


@pytest.fixture
def editor_files(watched: Path) -> Path:
    """Files that watchfiles' DefaultFilter would reject by name."""
    (watched / "notes.txt~").write_text("backup\n")
    (watched / "src" / "flycheck_app.py").write_text("print('lint')\n")
    (watched / "src" / "app.pyc").write_bytes(b"compiled")
    return watched


@pytest.mark.parametrize(
    "rel",
    [
        "notes.txt~",
        "src/flycheck_app.py",
        "src/app.py",
        "notes.txt",
        "README.md",
        ".git/HEAD",
        "node_modules/dep/index.js",
    ],
)
def test_watch_filter_agrees_with_scanner(editor_files: Path, rules: IgnoreRules, rel: str):
    scanned = set(scan_directory(editor_files, rules))
    watch_filter = RootFilter(editor_files, rules)
    passes = watch_filter(Change.modified, str(editor_files / rel))
    assert passes == (rel in scanned)


def test_watch_filter_rejects_paths_outside_root(watched: Path, rules: IgnoreRules, tmp_path: Path):
    watch_filter = RootFilter(watched, rules)
    assert not watch_filter(Change.modified, str(tmp_path / "elsewhere.txt"))


def test_watch_filter_applies_configured_globs(watched: Path):
    rules = IgnoreRules([".git"], globs=["**/*~"])
    watch_filter = RootFilter(watched, rules)
    assert not watch_filter(Change.modified, str(watched / "notes.txt~"))
    assert watch_filter(Change.modified, str(watched / "notes.txt"))


class TestLiveness:
    def test_alive_while_watching(self, watched: Path, rules: IgnoreRules):
        source = WatchSource(watched, EventCoalescer(rules), rules, step_ms=20)
        source.start()
        try:
            assert source.alive
            assert source.error is None
        finally:
            source.stop()
        assert not source.alive

    def test_not_alive_after_thread_dies(self, watched: Path, rules: IgnoreRules, monkeypatch):
        crashed = threading.Event()

        def crash(self) -> None:
            self._error = RuntimeError("notifier gone")
            crashed.set()

        source = WatchSource(watched, EventCoalescer(rules), rules, startup_grace_s=0.0)
        monkeypatch.setattr(WatchSource, "_run", crash)
        source.start()
        assert crashed.wait(2.0)
        source._thread.join(2.0)
        assert not source.alive
        assert isinstance(source.error, RuntimeError)
