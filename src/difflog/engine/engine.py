"""Engine: wires store, coalescer, watcher and controller into one process."""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Callable, Optional

from difflog.core.config import DifflogConfig
from difflog.core.ignore import IgnoreRules
from difflog.core.logging import DifflogLogger
from difflog.core.scanner import scan_directory
from difflog.core.snapshot import SnapshotStore
from difflog.engine.actions.changelog import ChangelogWriter
from difflog.engine.actions.summarizer import OllamaSummarizer, Summarizer
from difflog.engine.coalescer import EventCoalescer
from difflog.engine.controller import DiffController
from difflog.engine.source import WatchSource
from difflog.exceptions import WatchSetupError

logger = logging.getLogger("difflog.engine")


def prepare_store(config: DifflogConfig, rules: IgnoreRules) -> SnapshotStore:
    """Load the persisted artifact, then rebuild the baseline according to policy."""
    store = SnapshotStore.load(config.cache_path)
    if config.rebuild_baseline_on_start or len(store) == 0:
        if len(store):
            logger.info("Discarding %d loaded snapshots in favour of a fresh baseline", len(store))
        store.clear()
        paths = scan_directory(config.root_path, rules)
        store.initialize_baseline(config.root_path, paths, config.max_bytes)
        store.persist()
        return store

    excluded = store.discard_where(rules.is_ignored)
    if excluded:
        logger.info("Dropped %d loaded snapshot(s) now excluded by ignore rules", len(excluded))
        store.persist()
    return store


class Engine:
    """Main difflog engine.

    Owns the watcher thread and runs the control loop on the calling thread
    until ``stop()`` is called or the process is interrupted.
    """

    def __init__(
        self,
        config: DifflogConfig,
        summarizer: Optional[Summarizer] = None,
        changelog: Optional[ChangelogWriter] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._rules = IgnoreRules.from_config(config)
        self._coalescer = EventCoalescer(self._rules, clock=clock, track_deletions=config.prune_deleted)
        self._summarizer = summarizer if summarizer is not None else OllamaSummarizer(config.summarizer)
        self._changelog = changelog if changelog is not None else ChangelogWriter(config.changelog_path)
        self._structured = DifflogLogger(config=config.logging) if config.logging.enable_structured else None
        self._source = WatchSource(
            config.root_path, self._coalescer, self._rules, step_ms=config.watch_step_ms
        )
        self._stop_event = threading.Event()
        self._controller: Optional[DiffController] = None

    @property
    def config(self) -> DifflogConfig:
        return self._config

    @property
    def coalescer(self) -> EventCoalescer:
        return self._coalescer

    @property
    def controller(self) -> Optional[DiffController]:
        return self._controller

    def start(self) -> DiffController:
        """Build the baseline and start watching. Raises WatchSetupError on failure."""
        if not self._config.root_path.is_dir():
            raise WatchSetupError(f"Watch root is not a directory: {self._config.root_path}")
        store = prepare_store(self._config, self._rules)
        self._controller = DiffController(
            self._config.root_path,
            store,
            self._coalescer,
            self._rules,
            self._summarizer,
            self._changelog,
            debounce_seconds=self._config.debounce_seconds,
            poll_interval=self._config.poll_interval,
            max_bytes=self._config.max_bytes,
            prune_deleted=self._config.prune_deleted,
            structured=self._structured,
        )
        self._source.start()
        return self._controller

    def run_forever(self) -> None:
        """Run until stopped. SIGTERM stops the loop when called from the main thread.

        Raises WatchSetupError if the watcher cannot start or dies while running.
        """
        controller = self.start()

        original_sigterm = None
        is_main = threading.current_thread() is threading.main_thread()
        if is_main:
            original_sigterm = signal.getsignal(signal.SIGTERM)
            signal.signal(signal.SIGTERM, self._handle_sigterm)

        try:
            if not controller.run_forever(self._stop_event, source_alive=lambda: self._source.alive):
                raise WatchSetupError(f"Watcher for {self._config.root_path} stopped: {self._source.error}")
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            if is_main and original_sigterm is not None:
                signal.signal(signal.SIGTERM, original_sigterm)
            self._shutdown()

    def stop(self) -> None:
        """Signal the engine to stop."""
        self._stop_event.set()

    def _handle_sigterm(self, signum: int, frame: object) -> None:
        logger.info("Received SIGTERM, shutting down")
        self._stop_event.set()

    def _shutdown(self) -> None:
        self._stop_event.set()
        self._source.stop()
        close = getattr(self._summarizer, "close", None)
        if callable(close):
            close()
