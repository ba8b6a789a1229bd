"""One-shot enumeration of the files eligible for tracking."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from difflog.core.ignore import IgnoreRules

logger = logging.getLogger("difflog.scanner")


def to_relative(path: Path, root: Path) -> str | None:
    """Return *path* relative to *root* as POSIX, or None if it lies outside."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return None


def scan_directory(root: Path, rules: IgnoreRules) -> list[str]:
    """List every regular, non-ignored file under *root*.

    Symlinks are never followed or returned, and unreadable directories are
    skipped without aborting the walk. Paths come back sorted and relative to
    *root* in POSIX form.
    """
    root = Path(root).resolve()
    found: list[str] = []

    def _on_error(exc: OSError) -> None:
        logger.debug("Skipping unreadable entry during scan: %s", exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=False):
        current = Path(dirpath)
        # Prune in place so os.walk never descends into ignored or linked dirs
        dirnames[:] = [
            d for d in dirnames
            if not rules.is_ignored_dir(d) and not (current / d).is_symlink()
        ]

        for name in filenames:
            full = current / name
            rel = to_relative(full, root)
            if rel is None or rules.is_ignored(rel):
                continue
            try:
                if full.is_symlink() or not full.is_file():
                    continue
            except OSError:
                continue
            found.append(rel)

    found.sort()
    logger.info("Scanned %s: %d eligible files", root, len(found))
    return found
