"""Tests for the changelog writer."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from difflog.engine.actions.changelog import ChangelogWriter, format_entry
from difflog.exceptions import ChangelogError

STAMP = datetime(2024, 1, 2, 3, 4, 5)


def test_format_entry():
    assert format_entry("body", STAMP) == "\n\n### Update: 2024-01-02 03:04:05\nbody\n"


def test_append_creates_file(tmp_path: Path):
    writer = ChangelogWriter(tmp_path / "CHANGELOG.md")
    writer.append("first", STAMP)
    assert (tmp_path / "CHANGELOG.md").read_text() == format_entry("first", STAMP)


def test_append_preserves_existing_content(tmp_path: Path):
    target = tmp_path / "README.md"
    target.write_text("# Title\n")
    writer = ChangelogWriter(target)
    writer.append("one", STAMP)
    writer.append("two", STAMP)
    text = target.read_text()
    assert text.startswith("# Title\n")
    assert text.index("one") < text.index("two")


@pytest.mark.parametrize("summary", ["", "   \n"])
def test_empty_summary_rejected(tmp_path: Path, summary: str):
    target = tmp_path / "README.md"
    with pytest.raises(ChangelogError):
        ChangelogWriter(target).append(summary, STAMP)
    assert not target.exists()


def test_write_failure(tmp_path: Path):
    with pytest.raises(ChangelogError, match="Failed to write"):
        ChangelogWriter(tmp_path / "missing_dir" / "README.md").append("x", STAMP)
