"""Tests for shellkeeper.console.filter."""

from __future__ import annotations

import pytest

from shellkeeper.console.errors import InvalidFilterPattern
from shellkeeper.console.filter import (
    compile_filter,
    extract_matches,
    filter_warning,
    select_lines,
)


# ---------------------------------------------------------------------------
# compile_filter
# ---------------------------------------------------------------------------


class TestCompileFilter:
    def test_valid_pattern(self) -> None:
        regex = compile_filter(r"^foo")
        # Multiline: ^ anchors at every line start
        assert regex.findall("foo\nbar\nfoo") == ["foo", "foo"]

    def test_invalid_pattern_raises(self) -> None:
        with pytest.raises(InvalidFilterPattern) as exc_info:
            compile_filter("[unclosed")
        assert exc_info.value.pattern == "[unclosed"


# ---------------------------------------------------------------------------
# extract_matches — match-extraction semantics
# ---------------------------------------------------------------------------


class TestExtractMatches:
    def test_no_pattern_strips(self) -> None:
        assert extract_matches("  hello\n", "\nerr  ") == ("hello", "err")

    def test_empty_pattern_strips(self) -> None:
        assert extract_matches(" a ", " b ", "") == ("a", "b")

    def test_matches_joined_by_newline(self) -> None:
        stdout = "id=1 ok\nid=2 fail\nid=3 ok"
        out, err = extract_matches(stdout, "", r"id=\d")
        assert out == "id=1\nid=2\nid=3"
        assert err == ""

    def test_streams_filtered_independently(self) -> None:
        out, err = extract_matches("ERROR one\ninfo", "warn\nERROR two", r"ERROR \w+")
        assert out == "ERROR one"
        assert err == "ERROR two"

    def test_no_match_is_empty_string(self) -> None:
        assert extract_matches("hello", "world", r"\d+") == ("", "")

    def test_whole_text_match_returns_text(self) -> None:
        text = "line one\nline two\n"
        out, _ = extract_matches(text, "", r"[\s\S]+")
        assert out.strip() == text.strip()

    def test_group_pattern_returns_full_match(self) -> None:
        out, _ = extract_matches("key=value", "", r"(\w+)=(\w+)")
        assert out == "key=value"

    def test_multiline_anchors(self) -> None:
        out, _ = extract_matches("abc\nabd\nxab", "", r"^ab.")
        assert out == "abc\nabd"

    def test_invalid_pattern_warns_on_stderr_only(self) -> None:
        out, err = extract_matches(" out \n", " err ", "(bad")
        assert out == "out"
        assert err == "err\n" + filter_warning("(bad")

    def test_invalid_pattern_with_empty_stderr(self) -> None:
        _, err = extract_matches("x", "", "*")
        assert err == "\n[Warning: Invalid regex filter: *]"


# ---------------------------------------------------------------------------
# select_lines — line-selection semantics
# ---------------------------------------------------------------------------


class TestSelectLines:
    def test_no_pattern_copies(self) -> None:
        lines = ["a", "b"]
        result = select_lines(lines)
        assert result == lines
        assert result is not lines

    def test_keeps_matching_lines(self) -> None:
        lines = ["[STDOUT] ok", "[STDERR] boom", "[STDOUT] fine"]
        assert select_lines(lines, "STDERR") == ["[STDERR] boom"]

    def test_consecutive_matches_all_kept(self) -> None:
        lines = ["match 1", "match 2", "match 3", "match 4"]
        assert select_lines(lines, "match") == lines

    def test_search_not_fullmatch(self) -> None:
        assert select_lines(["2024 [STDOUT] hello world"], "hello") == [
            "2024 [STDOUT] hello world"
        ]

    def test_invalid_pattern_keeps_all_and_warns(self) -> None:
        lines = ["a", "b"]
        result = select_lines(lines, "[x")
        assert result == ["a", "b", "[Warning: Invalid regex filter: [x]"]
        assert lines == ["a", "b"]
