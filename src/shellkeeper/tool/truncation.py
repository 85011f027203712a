"""Output limits for tool results.

Command output is cut from the front so the most recent lines survive.
When anything is dropped, the complete text can be spilled to a file
under ``OUTPUT_DIR`` and the header points at it.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

MAX_LINES = 2000
MAX_BYTES = 50 * 1024  # 50KB
OUTPUT_DIR = "~/.shellkeeper/tool-output"


def truncate_output(
    text: str,
    max_lines: int = MAX_LINES,
    max_bytes: int = MAX_BYTES,
    save_full: bool = True,
) -> str:
    """Keep the tail of ``text`` within ``max_lines`` and ``max_bytes``.

    Args:
        text: Rendered tool output.
        max_lines: Maximum number of lines kept.
        max_bytes: Maximum UTF-8 size of the kept text.
        save_full: Spill the untruncated text to a file when cutting.

    Returns:
        ``text`` unchanged when it fits, otherwise a header line followed
        by the kept tail.
    """
    if not text:
        return text

    kept, dropped_lines = _tail_lines(text, max_lines)
    kept, dropped_bytes = _tail_bytes(kept, max_bytes)
    if not dropped_lines and not dropped_bytes:
        return text

    omitted = []
    if dropped_lines:
        omitted.append(f"{dropped_lines} lines")
    if dropped_bytes:
        omitted.append(f"{dropped_bytes} bytes")
    header = f"[Output truncated: {' and '.join(omitted)} omitted from the start]"
    if save_full:
        header += f"\n[Full output saved to: {spill(text)}]"
    return f"{header}\n{kept}"


def _tail_lines(text: str, limit: int) -> tuple[str, int]:
    lines = text.split("\n")
    if len(lines) <= limit:
        return text, 0
    return "\n".join(lines[-limit:]), len(lines) - limit


def _tail_bytes(text: str, limit: int) -> tuple[str, int]:
    raw = text.encode("utf-8", errors="replace")
    if len(raw) <= limit:
        return text, 0
    # A character split by the cut is dropped
    return raw[-limit:].decode("utf-8", errors="ignore"), len(raw) - limit


def spill(text: str) -> str:
    """Write ``text`` to a new file under ``OUTPUT_DIR`` and return its path."""
    directory = Path(OUTPUT_DIR).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    fd, path = tempfile.mkstemp(prefix="output-", suffix=".log", dir=directory)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(text)
    return path
