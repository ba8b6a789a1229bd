"""Background watchfiles loop feeding the event coalescer."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

from watchfiles import Change, DefaultFilter, watch

from difflog.core.ignore import IgnoreRules
from difflog.core.scanner import to_relative
from difflog.engine.coalescer import EventCoalescer
from difflog.engine.events import normalize_changes
from difflog.exceptions import WatchSetupError

logger = logging.getLogger("difflog.source")


class RootFilter(DefaultFilter):
    """Watch filter that defers entirely to difflog's relative ignore rules.

    DefaultFilter's built-in dir names and file-name patterns are cleared, so
    the watcher accepts exactly the paths ``scan_directory`` enumerates.
    Directory tokens are checked relative to the watched root only, so a root
    that itself lives under e.g. ``build/`` still works.
    """

    ignore_dirs: Sequence[str] = ()
    ignore_entity_patterns: Sequence[str] = ()

    def __init__(self, root: Path, rules: IgnoreRules) -> None:
        super().__init__()
        self._root = root
        self._rules = rules

    def __call__(self, change: Change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        rel = to_relative(Path(path), self._root)
        return rel is not None and not self._rules.is_ignored(rel)


class WatchSource:
    """Runs ``watchfiles.watch`` on its own thread until stopped.

    Events keep flowing into the coalescer while the control loop is busy
    with a slow summarizer call.
    """

    def __init__(
        self,
        root: Path,
        coalescer: EventCoalescer,
        rules: IgnoreRules,
        step_ms: int = 50,
        startup_grace_s: float = 0.25,
    ) -> None:
        self._root = Path(root).resolve()
        self._coalescer = coalescer
        self._rules = rules
        self._step_ms = step_ms
        self._startup_grace_s = startup_grace_s
        self._stop_event = threading.Event()
        self._failed = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def alive(self) -> bool:
        """True while the watcher thread is delivering events without error."""
        return self.running and self._error is None

    def start(self) -> None:
        """Start the watcher thread. Raises WatchSetupError if the watch cannot be set up."""
        if self._thread is not None:
            logger.debug("Watch source already running; ignoring start request")
            return
        if not self._root.is_dir():
            raise WatchSetupError(f"Watch root is not a directory: {self._root}")

        self._stop_event.clear()
        self._failed.clear()
        self._error = None
        thread = threading.Thread(target=self._run, name="difflog-watch", daemon=True)
        self._thread = thread
        thread.start()

        # watchfiles builds its notifier inside the thread; give it a moment to fail loudly.
        if self._failed.wait(self._startup_grace_s):
            self._thread = None
            raise WatchSetupError(f"Failed to watch {self._root}: {self._error}")
        logger.info("Watching %s (step=%dms)", self._root, self._step_ms)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
        self._thread = None
        logger.info("Watch source stopped")

    def _run(self) -> None:
        try:
            for raw_changes in watch(
                self._root,
                watch_filter=RootFilter(self._root, self._rules),
                debounce=self._step_ms * 2,
                step=self._step_ms,
                stop_event=self._stop_event,
                rust_timeout=0,
                raise_interrupt=False,
            ):
                events = normalize_changes(raw_changes, self._root)
                accepted = self._coalescer.record_events(events)
                if accepted:
                    logger.debug("Accepted %d of %d raw changes", accepted, len(raw_changes))
        except Exception as exc:
            if not self._stop_event.is_set():
                logger.exception("Watch loop for %s crashed", self._root)
                self._error = exc
                self._failed.set()
            return
        if not self._stop_event.is_set():
            self._error = WatchSetupError(f"Watch loop for {self._root} ended unexpectedly")
            logger.error("%s", self._error)
            self._failed.set()
