# src/difflog/core/snapshot.py
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import PersistenceError, UnreadableFileError

logger = logging.getLogger("difflog.snapshot")

SNAPSHOT_FORMAT_VERSION = 1


class FileSnapshot(BaseModel):
    """Last recorded content and mtime of one tracked file.

    ``modified_at`` is advisory; content is the source of truth.
    """

    path: str
    content: str
    modified_at: float

    model_config = ConfigDict(frozen=True)


class SnapshotDocument(BaseModel):
    """On-disk shape of the persisted artifact."""

    version: int = SNAPSHOT_FORMAT_VERSION
    snapshots: Dict[str, FileSnapshot] = Field(default_factory=dict)


def read_text_file(file_path: Path, max_bytes: Optional[int] = None) -> Tuple[str, float]:
    """Read *file_path* as UTF-8 text and return ``(content, mtime)``.

    Files that are missing, unreadable, larger than *max_bytes*, contain NUL
    bytes, or do not decode as UTF-8 raise ``UnreadableFileError``. Binary
    files are therefore never snapshotted.
    """
    try:
        stat = file_path.stat()
    except FileNotFoundError as exc:
        raise UnreadableFileError(file_path, "file not found") from exc
    except OSError as exc:
        raise UnreadableFileError(file_path, f"stat failed: {exc}") from exc

    if max_bytes is not None and stat.st_size > max_bytes:
        raise UnreadableFileError(file_path, f"exceeds size limit ({stat.st_size} > {max_bytes} bytes)")

    try:
        raw = file_path.read_bytes()
    except OSError as exc:
        raise UnreadableFileError(file_path, f"read failed: {exc}") from exc

    if b"\x00" in raw:
        raise UnreadableFileError(file_path, "binary content")
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UnreadableFileError(file_path, "not valid UTF-8") from exc

    return content, stat.st_mtime


class SnapshotStore:
    """Durable mapping of relative path -> FileSnapshot.

    The controller is the only writer. Mutations stay in memory until
    ``persist()`` writes the whole mapping to ``artifact_path`` atomically.
    """

    def __init__(self, artifact_path: Path, snapshots: Optional[Dict[str, FileSnapshot]] = None) -> None:
        self.artifact_path = Path(artifact_path)
        self._snapshots: Dict[str, FileSnapshot] = dict(snapshots or {})

    # ------------------------------ Loading ------------------------------
    @classmethod
    def load(cls, artifact_path: Path) -> SnapshotStore:
        """Return a store populated from *artifact_path*, or an empty one.

        A missing, unreadable, or corrupt artifact never raises; the caller
        rebuilds the baseline from disk instead.
        """
        artifact_path = Path(artifact_path)
        if not artifact_path.exists():
            logger.info("No snapshot artifact at %s; starting empty", artifact_path)
            return cls(artifact_path)

        try:
            raw = artifact_path.read_text(encoding="utf-8")
            document = SnapshotDocument.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Could not load snapshot artifact %s (%s); starting empty", artifact_path, exc)
            return cls(artifact_path)

        if document.version != SNAPSHOT_FORMAT_VERSION:
            logger.warning(
                "Snapshot artifact %s has version %s (expected %s); starting empty",
                artifact_path,
                document.version,
                SNAPSHOT_FORMAT_VERSION,
            )
            return cls(artifact_path)

        snapshots = {key: snap for key, snap in document.snapshots.items() if key == snap.path}
        if len(snapshots) != len(document.snapshots):
            logger.warning(
                "Dropped %d snapshot(s) whose key does not match their path",
                len(document.snapshots) - len(snapshots),
            )
        logger.info("Loaded %d snapshots from %s", len(snapshots), artifact_path)
        return cls(artifact_path, snapshots)

    def initialize_baseline(self, root: Path, paths: Iterable[str], max_bytes: Optional[int] = None) -> int:
        """Snapshot every path in *paths* (relative to *root*). Returns the count stored.

        Unreadable and binary files are skipped.
        """
        root = Path(root)
        stored = 0
        for rel in paths:
            try:
                content, mtime = read_text_file(root / rel, max_bytes)
            except UnreadableFileError as exc:
                logger.debug("Baseline skip: %s", exc)
                continue
            self.update(rel, content, mtime)
            stored += 1
        logger.info("Baseline initialized with %d snapshots", stored)
        return stored

    # ------------------------------ Mapping API ------------------------------
    def get(self, path: str) -> Optional[FileSnapshot]:
        return self._snapshots.get(path)

    def update(self, path: str, content: str, modified_at: float) -> FileSnapshot:
        snapshot = FileSnapshot(path=path, content=content, modified_at=modified_at)
        self._snapshots[path] = snapshot
        return snapshot

    def remove(self, path: str) -> bool:
        return self._snapshots.pop(path, None) is not None

    def discard_where(self, predicate: Callable[[str], bool]) -> list[str]:
        """Remove every snapshot whose path matches *predicate*. Returns the removed paths."""
        removed = sorted(path for path in self._snapshots if predicate(path))
        for path in removed:
            del self._snapshots[path]
        return removed

    def clear(self) -> None:
        self._snapshots.clear()

    def paths(self) -> list[str]:
        return sorted(self._snapshots)

    def __contains__(self, path: object) -> bool:
        return path in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[FileSnapshot]:
        return iter(list(self._snapshots.values()))

    # ------------------------------ Persistence ------------------------------
    def persist(self) -> bool:
        """Write the full mapping to disk. Logs and returns False on failure."""
        try:
            self._write()
        except PersistenceError as exc:
            logger.error("Snapshot persistence failed: %s", exc)
            return False
        logger.debug("Persisted %d snapshots to %s", len(self._snapshots), self.artifact_path)
        return True

    def _write(self) -> None:
        document = SnapshotDocument(snapshots=self._snapshots)
        content = document.model_dump_json()
        self._atomic_write(self.artifact_path, content)

    @staticmethod
    def _atomic_write(target_path: Path, content: str) -> None:
        """Write via a temporary sibling file and rename over the target."""
        temp_fd = None
        temp_path = None

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path_str = tempfile.mkstemp(
                dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".tmp"
            )
            temp_path = Path(temp_path_str)

            with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_file:
                temp_fd = None
                temp_file.write(content)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            temp_path.replace(target_path)
            temp_path = None

        except OSError as exc:
            raise PersistenceError(f"Failed to write {target_path}: {exc}") from exc

        finally:
            if temp_fd is not None:
                try:
                    os.close(temp_fd)
                except OSError:
                    pass
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logger.warning("Failed to clean up temporary file: %s", temp_path)
