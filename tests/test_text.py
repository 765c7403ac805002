"""
Tests for title cleaning and normalization.
"""

import pytest

from todo_integrator.utils.text import (
    clean_task_title,
    has_legacy_tag,
    normalize_title,
    titles_match,
)


class TestCleanTaskTitle:

    @pytest.mark.parametrize("raw,expected", [
        ("A [todo::X] B [todo::Y]", "A B"),
        ("Buy milk [todo::AAMkAGI2]", "Buy milk"),
        ("[todo::abc] Leading tag", "Leading tag"),
        ("Empty payload [todo::]", "Empty payload"),
        ("Regex chars [todo::a.b*c+(d)?$^]", "Regex chars"),
        ("  spaced    out  ", "spaced out"),
        ("No tag here", "No tag here"),
    ])
    def test_strips_markers(self, raw, expected):
        assert clean_task_title(raw) == expected

    def test_nested_brackets_leave_outer_pair(self):
        assert clean_task_title("Task [[todo::x]]") == "Task []"

    def test_idempotent(self):
        once = clean_task_title("A [todo::X]  B [todo::Y] C")
        assert clean_task_title(once) == once

    def test_none_and_empty(self):
        assert clean_task_title(None) == ""
        assert clean_task_title("") == ""

    def test_only_marker(self):
        assert clean_task_title("[todo::xyz]") == ""

    def test_other_bracket_content_kept(self):
        assert clean_task_title("Read [[Some Note]] [todo::1]") == "Read [[Some Note]]"


class TestNormalizeTitle:

    def test_case_and_whitespace(self):
        assert normalize_title("  Buy   MILK\t") == "buy milk"

    def test_empty(self):
        assert normalize_title(None) == ""
        assert normalize_title("   ") == ""


def test_has_legacy_tag():
    assert has_legacy_tag("x [todo::1]")
    assert not has_legacy_tag("x [todo:1]")
    assert not has_legacy_tag(None)


def test_titles_match_ignores_markers_case_and_spacing():
    assert titles_match("Buy  Milk [todo::1]", "buy milk")
    assert not titles_match("Buy milk", "Buy bread")
