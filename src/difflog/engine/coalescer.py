"""Accumulates filtered change events into one pending set."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from difflog.core.ignore import IgnoreRules
from difflog.engine.events import FileEvent

logger = logging.getLogger("difflog.coalescer")


@dataclass(frozen=True)
class PendingBatch:
    """An atomically drained copy of the pending state."""

    paths: frozenset[str] = field(default_factory=frozenset)
    deleted: frozenset[str] = field(default_factory=frozenset)
    last_event_at: Optional[float] = None

    def __bool__(self) -> bool:
        return bool(self.paths or self.deleted)


class EventCoalescer:
    """Thread-safe pending change set with one shared "time of last event".

    The watcher thread inserts, the control loop checks and drains. Every
    read-modify-write happens under the same lock, so a path recorded while a
    drain is in progress lands either in the drained batch or in the fresh
    set, never both and never neither. No timers live here.
    """

    def __init__(
        self,
        rules: IgnoreRules,
        clock: Callable[[], float] = time.monotonic,
        track_deletions: bool = False,
    ) -> None:
        self._rules = rules
        self._clock = clock
        self._track_deletions = track_deletions
        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._deleted: set[str] = set()
        self._last_event_at: Optional[float] = None

    # ------------------------------ Insertion ------------------------------
    def record(self, rel_path: str) -> bool:
        """Mark *rel_path* as changed now. Returns False if it is ignored."""
        if self._rules.is_ignored(rel_path):
            logger.debug("Ignoring excluded path: %s", rel_path)
            return False
        now = self._clock()
        with self._lock:
            self._pending.add(rel_path)
            self._deleted.discard(rel_path)
            self._last_event_at = now
        logger.debug("Pending: %s", rel_path)
        return True

    def record_deletion(self, rel_path: str) -> bool:
        """Remember a deletion for snapshot pruning. Does not reset the quiet timer."""
        if not self._track_deletions or self._rules.is_ignored(rel_path):
            return False
        with self._lock:
            self._deleted.add(rel_path)
        return True

    def record_events(self, events: Iterable[FileEvent]) -> int:
        """Feed normalized events; returns how many paths became pending."""
        accepted = 0
        for event in events:
            if event.change == "deleted":
                self.record_deletion(event.path_rel)
                continue
            if not event.triggers or not event.is_file:
                continue
            if self.record(event.path_rel):
                accepted += 1
        return accepted

    # ------------------------------ Inspection ------------------------------
    @property
    def last_event_at(self) -> Optional[float]:
        with self._lock:
            return self._last_event_at

    def pending_paths(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._pending)

    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def is_quiescent(self, window: float, now: Optional[float] = None) -> bool:
        """True when paths are pending and nothing arrived for *window* seconds."""
        current = self._clock() if now is None else now
        with self._lock:
            if not self._pending or self._last_event_at is None:
                return False
            return current - self._last_event_at >= window

    # ------------------------------ Draining ------------------------------
    def drain(self) -> PendingBatch:
        """Copy and clear the pending state in one step."""
        with self._lock:
            batch = PendingBatch(
                paths=frozenset(self._pending),
                deleted=frozenset(self._deleted),
                last_event_at=self._last_event_at,
            )
            self._pending = set()
            self._deleted = set()
        return batch
