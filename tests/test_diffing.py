"""Tests for the set-difference line diff."""

from __future__ import annotations

from difflog.core.diffing import LineDiff, compute_line_diff, format_block, join_blocks


class TestComputeLineDiff:
    def test_scenario_remove_b_add_d(self):
        diff = compute_line_diff("a\nb\nc", "a\nc\nd")
        assert set(diff.removed) == {"b"}
        assert set(diff.added) == {"d"}

    def test_identical_content_is_empty(self):
        text = "one\ntwo\nthree\n"
        assert compute_line_diff(text, text).is_empty

    def test_symmetry(self):
        old = "x\ny\nz"
        new = "y\nq\nr"
        forward = compute_line_diff(old, new)
        backward = compute_line_diff(new, old)
        assert set(forward.removed) == set(backward.added) == {"x", "z"}
        assert set(forward.added) == set(backward.removed) == {"q", "r"}

    def test_new_file_is_all_additions(self):
        diff = compute_line_diff(None, "first\nsecond\nthird\n")
        assert diff.removed == ()
        assert diff.added == ("first", "second", "third")

    def test_reordering_produces_no_entries(self):
        assert compute_line_diff("a\nb\nc", "c\nb\na").is_empty

    def test_duplicating_a_line_produces_no_entries(self):
        assert compute_line_diff("a\nb", "a\nb\nb").is_empty

    def test_order_follows_first_occurrence(self):
        diff = compute_line_diff("keep", "keep\nz\na\nz")
        assert diff.added == ("z", "a")

    def test_emptying_a_file_removes_every_line(self):
        diff = compute_line_diff("a\nb", "")
        assert diff.removed == ("a", "b")
        assert diff.added == ()


class TestRendering:
    def test_format_block(self):
        block = format_block("src/app.py", LineDiff(removed=("b",), added=("d",)))
        assert block == "### src/app.py\n- b\n+ d"

    def test_join_blocks(self):
        assert join_blocks(["### a\n+ 1", "### b\n- 2"]) == "### a\n+ 1\n\n### b\n- 2"

    def test_empty_diff_renders_nothing(self):
        assert LineDiff().render() == []
