"""Normalized file event model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal

from watchfiles import Change

EventType = Literal["added", "modified", "deleted"]

# Map watchfiles Change enum to our string event types.
CHANGE_MAP: dict[Change, EventType] = {
    Change.added: "added",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

# Only these kinds mark a path as pending.
TRIGGERING_CHANGES: frozenset[EventType] = frozenset({"added", "modified"})


@dataclass(frozen=True, slots=True)
class FileEvent:
    """A single normalized filesystem change event."""

    change: EventType
    path_abs: Path
    path_rel: str
    is_file: bool

    @property
    def triggers(self) -> bool:
        return self.change in TRIGGERING_CHANGES


def normalize_changes(
    raw_changes: Iterable[tuple[Change, str]],
    root: Path,
) -> list[FileEvent]:
    """Convert raw watchfiles changes into FileEvent objects.

    Paths outside *root* and unknown change kinds are dropped. Results are
    sorted by relative path so a batch is processed deterministically.
    """
    events: list[FileEvent] = []
    for change, path_str in raw_changes:
        event_type = CHANGE_MAP.get(change)
        if event_type is None:
            continue

        abs_path = Path(path_str)
        try:
            rel_path = abs_path.relative_to(root).as_posix()
        except ValueError:
            continue

        # A deleted path no longer exists, so is_file is best-effort.
        try:
            is_file = abs_path.is_file() and not abs_path.is_symlink()
        except OSError:
            is_file = False

        events.append(
            FileEvent(
                change=event_type,
                path_abs=abs_path,
                path_rel=rel_path,
                is_file=is_file,
            )
        )
    events.sort(key=lambda e: (e.path_rel, e.change))
    return events
