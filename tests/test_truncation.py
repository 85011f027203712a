"""Tests for shellkeeper.tool.truncation."""

from __future__ import annotations

from pathlib import Path

import pytest

from shellkeeper.tool import truncation
from shellkeeper.tool.truncation import MAX_BYTES, MAX_LINES, truncate_output


@pytest.fixture(autouse=True)
def output_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    out = tmp_path / "tool-output"
    monkeypatch.setattr(truncation, "OUTPUT_DIR", str(out))
    return out


class TestTruncateOutput:
    def test_empty_string(self) -> None:
        assert truncate_output("") == ""

    def test_within_limits(self) -> None:
        text = "hello\nworld\n"
        assert truncate_output(text) == text

    def test_exact_line_limit(self) -> None:
        """Exactly at the limit should NOT truncate."""
        text = "\n".join(f"line {i}" for i in range(MAX_LINES))
        assert truncate_output(text) == text

    def test_over_line_limit_keeps_tail(self) -> None:
        text = "\n".join(f"line {i}" for i in range(MAX_LINES + 500))
        result = truncate_output(text, save_full=False)
        assert result.startswith("[Output truncated: 500 lines omitted")
        assert result.endswith(f"line {MAX_LINES + 499}")
        assert "\nline 0\n" not in result

    def test_over_byte_limit(self) -> None:
        text = "x" * (MAX_BYTES + 1000)
        result = truncate_output(text, save_full=False)
        assert "1000 bytes omitted" in result
        assert len(result.encode()) <= MAX_BYTES + 500  # Allow header overhead

    def test_multibyte_boundary(self) -> None:
        text = "é" * MAX_BYTES  # 2 bytes each
        result = truncate_output(text, save_full=False)
        body = result.split("\n", 1)[1]
        assert set(body) == {"é"}

    def test_save_full_creates_file(self, output_dir: Path) -> None:
        text = "\n".join(f"line {i}" for i in range(MAX_LINES + 100))
        result = truncate_output(text, save_full=True)
        assert "[Full output saved to:" in result
        saved = list(output_dir.iterdir())
        assert len(saved) == 1
        assert saved[0].read_text() == text

    def test_save_full_false(self, output_dir: Path) -> None:
        text = "\n".join(f"line {i}" for i in range(MAX_LINES + 100))
        result = truncate_output(text, save_full=False)
        assert "Full output saved" not in result
        assert not output_dir.exists()

    def test_custom_limits(self) -> None:
        result = truncate_output("a\nb\nc\nd\ne", max_lines=2, save_full=False)
        assert result.endswith("d\ne")
        assert "3 lines omitted" in result
