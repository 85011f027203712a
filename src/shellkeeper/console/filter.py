"""Output filters — regex match-extraction and line-selection.

Two different semantics share a pattern syntax:

* **match-extraction** (command results): each stream is scanned as one blob
  and replaced by the matched substrings, one per line.
* **line-selection** (buffer reads): whole lines are kept when the pattern
  occurs anywhere in them.

An invalid pattern never fails the caller. It is downgraded to a warning
annotation appended to the output.
"""

from __future__ import annotations

import logging
import re

from shellkeeper.console.errors import InvalidFilterPattern

logger = logging.getLogger(__name__)


def filter_warning(pattern: str) -> str:
    """Annotation appended to output when ``pattern`` does not compile."""
    return f"[Warning: Invalid regex filter: {pattern}]"


def compile_filter(pattern: str) -> re.Pattern[str]:
    """Compile a filter pattern in multiline mode.

    Raises:
        InvalidFilterPattern: If the pattern is not a valid regex.
    """
    try:
        return re.compile(pattern, re.MULTILINE)
    except re.error as e:
        raise InvalidFilterPattern(pattern, str(e)) from e


def extract_matches(
    stdout: str, stderr: str, pattern: str | None = None
) -> tuple[str, str]:
    """Apply match-extraction to a pair of output streams.

    Without a pattern both streams are returned stripped. With one, each
    stream becomes its matches joined by newlines (empty if nothing matched).

    Returns:
        ``(stdout, stderr)`` after filtering.
    """
    if not pattern:
        return stdout.strip(), stderr.strip()

    try:
        regex = compile_filter(pattern)
    except InvalidFilterPattern as e:
        logger.warning("%s", e)
        return stdout.strip(), stderr.strip() + "\n" + filter_warning(pattern)

    return _matches(regex, stdout), _matches(regex, stderr)


def _matches(regex: re.Pattern[str], text: str) -> str:
    return "\n".join(m.group(0) for m in regex.finditer(text))


def select_lines(lines: list[str], pattern: str | None = None) -> list[str]:
    """Apply line-selection to a list of lines.

    Always returns a new list. On an invalid pattern every line is kept and a
    single warning line is appended.
    """
    if not pattern:
        return list(lines)

    try:
        regex = compile_filter(pattern)
    except InvalidFilterPattern as e:
        logger.warning("%s", e)
        return [*lines, filter_warning(pattern)]

    return [line for line in lines if regex.search(line)]
