"""Shared test fixtures."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from difflog.core.config import DifflogConfig
from difflog.core.ignore import IgnoreRules
from difflog.core.snapshot import SnapshotStore
from difflog.engine.actions.changelog import ChangelogWriter
from difflog.engine.coalescer import EventCoalescer
from difflog.engine.controller import DiffController
from difflog.exceptions import SummarizerError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSummarizer:
    """Records every diff it is given and returns a canned summary."""

    def __init__(self, summary: str = "* Updated things", error: Exception | None = None) -> None:
        self.summary = summary
        self.error = error
        self.calls: list[str] = []

    def summarize(self, diff_text: str) -> str:
        self.calls.append(diff_text)
        if self.error is not None:
            raise self.error
        return self.summary


class BlockingSummarizer(FakeSummarizer):
    """Blocks inside summarize() until released, to hold a cycle in flight."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def summarize(self, diff_text: str) -> str:
        self.calls.append(diff_text)
        self.entered.set()
        self.release.wait(5.0)
        return self.summary


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def watched(tmp_path: Path) -> Path:
    """A small tree with tracked, ignored and nested files."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / ".git").mkdir()
    (root / "node_modules" / "dep").mkdir(parents=True)
    (root / "src" / "app.py").write_text("import os\nprint('hi')\n")
    (root / "notes.txt").write_text("alpha\nbeta\n")
    (root / "README.md").write_text("# Project\n")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (root / "node_modules" / "dep" / "index.js").write_text("module.exports = 1\n")
    return root


@pytest.fixture
def config(watched: Path) -> DifflogConfig:
    return DifflogConfig(root=watched, debounce_seconds=2.0, poll_interval=0.1)


@pytest.fixture
def rules(config: DifflogConfig) -> IgnoreRules:
    return IgnoreRules.from_config(config)


@pytest.fixture
def store(config: DifflogConfig) -> SnapshotStore:
    return SnapshotStore(config.cache_path)


@pytest.fixture
def coalescer(rules: IgnoreRules, clock: FakeClock) -> EventCoalescer:
    return EventCoalescer(rules, clock=clock)


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def changelog(config: DifflogConfig) -> ChangelogWriter:
    return ChangelogWriter(config.changelog_path)


@pytest.fixture
def timeout_error() -> SummarizerError:
    return SummarizerError("Summarizer timed out after 30.0s")


@pytest.fixture
def blocking_summarizer() -> BlockingSummarizer:
    return BlockingSummarizer()


@pytest.fixture
def make_controller(
    config: DifflogConfig,
    store: SnapshotStore,
    coalescer: EventCoalescer,
    rules: IgnoreRules,
    changelog: ChangelogWriter,
):
    """Factory for controllers sharing the standard store/coalescer but a custom summarizer."""

    def _make(summarizer, **kwargs) -> DiffController:
        kwargs.setdefault("debounce_seconds", config.debounce_seconds)
        kwargs.setdefault("poll_interval", config.poll_interval)
        kwargs.setdefault("max_bytes", config.max_bytes)
        return DiffController(config.root_path, store, coalescer, rules, summarizer, changelog, **kwargs)

    return _make


@pytest.fixture
def controller(make_controller, summarizer: FakeSummarizer) -> DiffController:
    return make_controller(summarizer)
