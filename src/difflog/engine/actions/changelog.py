"""Appends generated summaries to the changelog document."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from difflog.exceptions import ChangelogError

logger = logging.getLogger("difflog.actions.changelog")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_entry(summary: str, timestamp: datetime) -> str:
    return f"\n\n### Update: {timestamp.strftime(TIMESTAMP_FORMAT)}\n{summary}\n"


class ChangelogWriter:
    """Append-only writer for one changelog file, created on first use."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, summary: str, timestamp: Optional[datetime] = None) -> str:
        """Append one dated entry and return the text written."""
        if not summary or not summary.strip():
            raise ChangelogError("Refusing to append an empty summary")

        entry = format_entry(summary.strip(), timestamp or datetime.now())
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(entry)
        except OSError as exc:
            raise ChangelogError(f"Failed to write to {self.path}: {exc}") from exc

        logger.info("Entry appended to %s", self.path)
        return entry
