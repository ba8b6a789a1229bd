"""Exclusion rules shared by the scanner, the coalescer, and the controller."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Iterable

from difflog.core.config import DifflogConfig


def _glob_match(path: str, pattern: str) -> bool:
    """Match a POSIX relative path against a glob pattern.

    * only matches within a single segment; ** matches zero or more
    directory segments.
    """
    return _match_segments(path.split("/"), pattern.split("/"))


def _match_segments(path_parts: list[str], pat_parts: list[str]) -> bool:
    pi = 0
    pp = 0

    while pp < len(pat_parts):
        if pat_parts[pp] == "**":
            remaining_pattern = pat_parts[pp + 1:]
            if not remaining_pattern:
                return True
            for start in range(pi, len(path_parts) + 1):
                if _match_segments(path_parts[start:], remaining_pattern):
                    return True
            return False
        if pi >= len(path_parts):
            return False
        if not fnmatch(path_parts[pi], pat_parts[pp]):
            return False
        pi += 1
        pp += 1

    return pi == len(path_parts)


class IgnoreRules:
    """Decides whether a root-relative path is excluded from tracking.

    A path is ignored when any of its components equals one of the tokens
    (which covers both directory names like ``.git`` and exact file names like
    ``README.md``), or when it matches one of the glob patterns.
    """

    def __init__(self, tokens: Iterable[str], globs: Iterable[str] = ()) -> None:
        self._tokens = frozenset(t for t in tokens if t)
        self._globs = tuple(globs)

    @classmethod
    def from_config(cls, config: DifflogConfig) -> IgnoreRules:
        # Temp files left behind by the atomic snapshot write are never tracked
        globs = list(config.ignore_globs) + [f"**/.{config.cache_file}.*.tmp"]
        return cls(config.ignore_tokens, globs)

    @property
    def tokens(self) -> frozenset[str]:
        return self._tokens

    def is_ignored(self, rel_path: str | PurePosixPath) -> bool:
        posix = PurePosixPath(rel_path).as_posix()
        parts = PurePosixPath(posix).parts
        if any(part in self._tokens for part in parts):
            return True
        return any(_glob_match(posix, pat) for pat in self._globs)

    def is_ignored_dir(self, name: str) -> bool:
        """Cheap check used to prune directories during a walk."""
        return name in self._tokens
