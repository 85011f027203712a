"""Rolling output buffer for console sessions."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from shellkeeper.console.filter import select_lines

DEFAULT_CAPACITY = 1000


@dataclass
class BufferSnapshot:
    """Result of a buffer read."""

    lines: list[str] = field(default_factory=list)
    total_lines: int = 0  # Buffer length before tail/filter


def _timestamp() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class OutputBuffer:
    """Bounded rolling log of formatted output lines.

    Every line is stored as ``<timestamp> [STDOUT] <text>`` (or ``[STDERR]``).
    Holds at most ``capacity`` lines; the oldest are evicted first.

    Only ever touched from the event loop thread, so there is no locking.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._lines: deque[str] = deque(maxlen=capacity)
        self._capacity = capacity

    def append(self, chunk: str, is_error: bool = False) -> int:
        """Append a raw output chunk, one entry per non-blank line.

        Args:
            chunk: Text as read from the process (may hold several lines).
            is_error: True if the chunk came from stderr.

        Returns:
            Number of lines stored.
        """
        timestamp = _timestamp()
        prefix = "[STDERR]" if is_error else "[STDOUT]"
        stored = 0
        for line in chunk.splitlines():
            if not line.strip():
                continue
            self._lines.append(f"{timestamp} {prefix} {line}")
            stored += 1
        return stored

    def read(
        self, tail_lines: int | None = None, line_filter: str | None = None
    ) -> BufferSnapshot:
        """Return a copy of the buffered lines.

        Args:
            tail_lines: Keep only the last N lines (ignored unless > 0).
            line_filter: Regex; keep only lines where it matches. An invalid
                pattern keeps every line and appends a warning line.
        """
        lines = list(self._lines)
        total = len(lines)
        if tail_lines and tail_lines > 0:
            lines = lines[-tail_lines:]
        if line_filter:
            lines = select_lines(lines, line_filter)
        return BufferSnapshot(lines=lines, total_lines=total)

    def clear(self) -> None:
        """Drop every buffered line."""
        self._lines.clear()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._lines)
