"""Line-level set-difference diff between two revisions of a text file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass(frozen=True, slots=True)
class LineDiff:
    """Lines removed from and added to one file.

    Both tuples keep the order of first occurrence in their source text.
    """

    removed: tuple[str, ...] = field(default_factory=tuple)
    added: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.removed and not self.added

    def render(self) -> list[str]:
        return [f"- {line}" for line in self.removed] + [f"+ {line}" for line in self.added]


def _unique_in_order(lines: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for line in lines:
        if line not in seen:
            seen.add(line)
            out.append(line)
    return out


def compute_line_diff(old: Optional[str], new: str) -> LineDiff:
    """Diff *old* against *new* by line membership.

    With no prior content every line of *new* is an addition. Otherwise a
    line is removed if it occurs in *old* but nowhere in *new*, and added if
    the reverse holds. Reordering or duplicating an existing line produces no
    entry.
    """
    if old is None:
        return LineDiff(added=tuple(new.splitlines()))

    new_lines = _unique_in_order(new.splitlines())
    old_lines = _unique_in_order(old.splitlines())
    old_set = set(old_lines)
    new_set = set(new_lines)
    return LineDiff(
        removed=tuple(line for line in old_lines if line not in new_set),
        added=tuple(line for line in new_lines if line not in old_set),
    )


def format_block(path: str, diff: LineDiff) -> str:
    """Render one labeled per-file block of the aggregate diff."""
    return "\n".join([f"### {path}", *diff.render()])


def join_blocks(blocks: Iterable[str]) -> str:
    return "\n\n".join(blocks)
