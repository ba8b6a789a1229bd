# src/difflog/exceptions.py
from __future__ import annotations

"""
difflog exception hierarchy.

Only ``WatchSetupError`` (and ``ConfigurationError`` at bootstrap) is meant to
stop the process. Everything else is raised at a narrow boundary and caught by
the controller, which logs it and keeps the loop alive.
"""

from typing import Any

__all__ = [
    "DifflogError",
    "ConfigurationError",
    "WatchSetupError",
    "UnreadableFileError",
    "PersistenceError",
    "SummarizerError",
    "ChangelogError",
]


class DifflogError(Exception):
    """
    Base exception for all difflog-specific errors.

    Library consumers can catch this single type for anything difflog raises
    on its own behalf. Pydantic validation errors are not wrapped inside the
    models themselves.
    """

    def __init__(self, message: str | None = None, *args: Any) -> None:
        super().__init__(message, *args)


class ConfigurationError(DifflogError):
    """
    Raised when difflog configuration is invalid.

    Examples:
    - Missing or malformed ``difflog.toml``.
    - A poll interval that is not shorter than the debounce window.
    """


class WatchSetupError(DifflogError):
    """Raised when the filesystem watch cannot be established at all."""


class UnreadableFileError(DifflogError):
    """A single file could not be read as text (missing, too large, binary, or denied)."""

    def __init__(self, path: Any, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class PersistenceError(DifflogError):
    """Raised when the snapshot artifact cannot be written."""


class SummarizerError(DifflogError):
    """The summarizer backend was unreachable, timed out, or returned garbage."""


class ChangelogError(DifflogError):
    """Raised when a summary cannot be appended to the changelog document."""
