"""Debounce & diff controller: the single control loop of difflog."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from difflog.core.diffing import compute_line_diff, format_block, join_blocks
from difflog.core.ignore import IgnoreRules
from difflog.core.logging import DifflogLogger
from difflog.core.snapshot import SnapshotStore, read_text_file
from difflog.engine.actions.changelog import ChangelogWriter
from difflog.engine.actions.summarizer import Summarizer
from difflog.engine.coalescer import EventCoalescer
from difflog.exceptions import ChangelogError, SummarizerError, UnreadableFileError

logger = logging.getLogger("difflog.controller")


class ControllerState(enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"


@dataclass
class CycleResult:
    """What one trigger did. ``skipped`` means the guard was already held."""

    skipped: bool = False
    paths: frozenset[str] = field(default_factory=frozenset)
    changed: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    diff_text: str = ""
    summary: Optional[str] = None
    persisted: bool = False
    error: Optional[Exception] = None

    @property
    def summarized(self) -> bool:
        return self.summary is not None


class DiffController:
    """Turns a quiescent pending set into one diff/summarize cycle.

    Cycles are serialized by a lock taken with ``blocking=False``: a trigger
    that finds it held returns immediately and leaves the pending set alone.
    The snapshot store is only touched from inside a cycle.
    """

    def __init__(
        self,
        root: Path,
        store: SnapshotStore,
        coalescer: EventCoalescer,
        rules: IgnoreRules,
        summarizer: Summarizer,
        changelog: ChangelogWriter,
        *,
        debounce_seconds: float = 2.0,
        poll_interval: float = 0.1,
        max_bytes: Optional[int] = None,
        prune_deleted: bool = False,
        structured: Optional[DifflogLogger] = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._root = Path(root)
        self._store = store
        self._coalescer = coalescer
        self._rules = rules
        self._summarizer = summarizer
        self._changelog = changelog
        self._debounce_seconds = debounce_seconds
        self._poll_interval = poll_interval
        self._max_bytes = max_bytes
        self._prune_deleted = prune_deleted
        self._structured = structured
        self._now = now
        self._guard = threading.Lock()
        self._state = ControllerState.IDLE

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def store(self) -> SnapshotStore:
        return self._store

    # ------------------------------ Loop ------------------------------
    def run_forever(
        self,
        stop_event: threading.Event,
        source_alive: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Poll until *stop_event* is set or *source_alive* reports the event source gone.

        No cycle error escapes this loop. Returns False when it stopped because
        the source died, True on a requested stop.
        """
        logger.info(
            "Control loop started (debounce=%.2fs, poll=%.2fs)",
            self._debounce_seconds,
            self._poll_interval,
        )
        while not stop_event.is_set():
            if source_alive is not None and not source_alive():
                logger.error("Event source is no longer running; stopping control loop")
                return False
            self.poll()
            stop_event.wait(self._poll_interval)
        logger.info("Control loop stopped")
        return True

    def poll(self, now: Optional[float] = None) -> Optional[CycleResult]:
        """Run a cycle if the pending set has been quiet for the debounce window."""
        if not self._coalescer.is_quiescent(self._debounce_seconds, now):
            return None
        logger.info("Debounce finished; analyzing changes")
        return self.trigger()

    # ------------------------------ Cycle ------------------------------
    def trigger(self) -> CycleResult:
        if not self._guard.acquire(blocking=False):
            logger.debug("Cycle already in flight; dropping trigger")
            self._log_skipped("cycle in flight")
            return CycleResult(skipped=True)

        self._state = ControllerState.PROCESSING
        try:
            return self._run_cycle()
        except Exception as exc:
            logger.exception("Unexpected error during cycle")
            return CycleResult(error=exc)
        finally:
            self._state = ControllerState.IDLE
            self._guard.release()

    def _run_cycle(self) -> CycleResult:
        batch = self._coalescer.drain()
        result = CycleResult(paths=batch.paths)

        if self._prune_deleted:
            result.pruned = self._prune(batch.deleted - batch.paths)

        blocks: list[str] = []
        for rel in sorted(batch.paths):
            block = self._diff_path(rel)
            if block is not None:
                blocks.append(block)
                result.changed.append(rel)

        if not blocks:
            logger.info("No content changes found in %d pending path(s)", len(batch.paths))
            if result.pruned:
                result.persisted = self._store.persist()
            if self._structured:
                self._structured.log_cycle_completed(sorted(batch.paths), 0, False)
            return result

        result.diff_text = join_blocks(blocks)
        try:
            result.summary = self._summarizer.summarize(result.diff_text)
        except SummarizerError as exc:
            logger.error("Summarizer failed; dropping this change window: %s", exc)
            result.error = exc
            if self._structured:
                self._structured.log_summarizer_failed(exc, len(result.diff_text.encode("utf-8")))
        else:
            result.persisted = self._store.persist()
            try:
                self._changelog.append(result.summary, self._now())
            except ChangelogError as exc:
                logger.error("Changelog update failed: %s", exc)
                result.error = exc

        if self._structured:
            self._structured.log_cycle_completed(sorted(batch.paths), len(result.changed), result.summarized)
        return result

    def _diff_path(self, rel: str) -> Optional[str]:
        """Diff one path against its snapshot, updating the snapshot when it changed."""
        if self._rules.is_ignored(rel):
            return None
        try:
            content, mtime = read_text_file(self._root / rel, self._max_bytes)
        except UnreadableFileError as exc:
            logger.warning("Skipping %s for this cycle: %s", rel, exc.reason)
            return None

        previous = self._store.get(rel)
        diff = compute_line_diff(previous.content if previous else None, content)
        if diff.is_empty:
            logger.debug("No line changes in %s", rel)
            return None

        self._store.update(rel, content, mtime)
        logger.info("Changed: %s (-%d +%d)", rel, len(diff.removed), len(diff.added))
        return format_block(rel, diff)

    def _prune(self, deleted: frozenset[str]) -> list[str]:
        pruned: list[str] = []
        for rel in sorted(deleted):
            if (self._root / rel).exists():
                continue
            if self._store.remove(rel):
                pruned.append(rel)
                logger.info("Pruned snapshot for deleted file: %s", rel)
        return pruned

    def _log_skipped(self, reason: str) -> None:
        if self._structured:
            self._structured.log_cycle_skipped(reason)
