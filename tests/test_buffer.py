"""Tests for shellkeeper.console.buffer.OutputBuffer."""

from __future__ import annotations

import re

import pytest

from shellkeeper.console.buffer import DEFAULT_CAPACITY, OutputBuffer

LINE_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z \[(STDOUT|STDERR)\] (.*)$"
)


def _texts(lines: list[str]) -> list[str]:
    return [LINE_RE.match(line).group(2) for line in lines]  # type: ignore[union-attr]


class TestOutputBufferBasics:
    def test_empty(self) -> None:
        buf = OutputBuffer()
        assert len(buf) == 0
        assert buf.capacity == DEFAULT_CAPACITY
        snap = buf.read()
        assert snap.lines == []
        assert snap.total_lines == 0

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            OutputBuffer(capacity=0)

    def test_append_formats_stdout(self) -> None:
        buf = OutputBuffer()
        assert buf.append("hello") == 1
        (line,) = buf.read().lines
        m = LINE_RE.match(line)
        assert m is not None
        assert m.group(1) == "STDOUT"
        assert m.group(2) == "hello"

    def test_append_formats_stderr(self) -> None:
        buf = OutputBuffer()
        buf.append("oops", is_error=True)
        assert "[STDERR] oops" in buf.read().lines[0]

    def test_append_splits_lines(self) -> None:
        buf = OutputBuffer()
        assert buf.append("line1\nline2\r\nline3\n") == 3
        assert _texts(buf.read().lines) == ["line1", "line2", "line3"]

    def test_blank_lines_dropped(self) -> None:
        buf = OutputBuffer()
        assert buf.append("\n  \na\n\t\n\nb\n") == 2
        assert _texts(buf.read().lines) == ["a", "b"]

    def test_line_text_not_stripped(self) -> None:
        buf = OutputBuffer()
        buf.append("  indented")
        assert _texts(buf.read().lines) == ["  indented"]


class TestOutputBufferOverflow:
    def test_capacity_enforced(self) -> None:
        buf = OutputBuffer(capacity=5)
        for i in range(10):
            buf.append(f"line {i}")
            assert len(buf) <= 5
        assert _texts(buf.read().lines) == [f"line {i}" for i in range(5, 10)]

    def test_large_chunk_evicts_oldest(self) -> None:
        buf = OutputBuffer(capacity=3)
        buf.append("a\nb")
        buf.append("c\nd\ne\nf")
        assert len(buf) == 3
        assert _texts(buf.read().lines) == ["d", "e", "f"]


class TestOutputBufferRead:
    def test_tail(self) -> None:
        buf = OutputBuffer()
        buf.append("\n".join(f"line {i}" for i in range(1000)))
        snap = buf.read(tail_lines=5)
        assert _texts(snap.lines) == [f"line {i}" for i in range(995, 1000)]
        assert snap.total_lines == 1000

    def test_tail_more_than_available(self) -> None:
        buf = OutputBuffer()
        buf.append("a\nb")
        assert _texts(buf.read(tail_lines=10).lines) == ["a", "b"]

    def test_tail_zero_means_all(self) -> None:
        buf = OutputBuffer()
        buf.append("a\nb")
        assert len(buf.read(tail_lines=0).lines) == 2

    def test_filter(self) -> None:
        buf = OutputBuffer()
        buf.append("error: disk\ninfo: fine\nerror: net")
        snap = buf.read(line_filter="error")
        assert _texts(snap.lines) == ["error: disk", "error: net"]
        assert snap.total_lines == 3

    def test_filter_by_stream_tag(self) -> None:
        buf = OutputBuffer()
        buf.append("out")
        buf.append("err", is_error=True)
        assert _texts(buf.read(line_filter=r"\[STDERR\]").lines) == ["err"]

    def test_tail_applied_before_filter(self) -> None:
        buf = OutputBuffer()
        buf.append("match 1\nmatch 2\nother\nother")
        assert buf.read(tail_lines=2, line_filter="match").lines == []

    def test_invalid_filter_returns_tail_with_warning(self) -> None:
        buf = OutputBuffer()
        buf.append("a\nb\nc")
        snap = buf.read(tail_lines=2, line_filter="(oops")
        assert len(snap.lines) == 3
        assert _texts(snap.lines[:2]) == ["b", "c"]
        assert snap.lines[-1] == "[Warning: Invalid regex filter: (oops]"

    def test_read_returns_copy(self) -> None:
        buf = OutputBuffer()
        buf.append("a")
        buf.read().lines.append("extra")
        assert len(buf) == 1


class TestOutputBufferClear:
    def test_clear(self) -> None:
        buf = OutputBuffer()
        buf.append("a\nb\nc")
        buf.clear()
        assert len(buf) == 0
        assert buf.read().lines == []

    def test_append_after_clear(self) -> None:
        buf = OutputBuffer(capacity=2)
        buf.append("a\nb")
        buf.clear()
        buf.append("c")
        assert _texts(buf.read().lines) == ["c"]
