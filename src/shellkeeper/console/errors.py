"""Failure taxonomy for console operations.

Every public ``ConsoleManager`` operation either returns a result or raises
one of these. A failure only ever aborts the operation that raised it.
"""

from __future__ import annotations


class ConsoleError(Exception):
    """Base class for all console failures."""


class NameConflict(ConsoleError):
    """A console with the requested name is already active."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Console with name "{name}" already exists')
        self.name = name


class SpawnTimeout(ConsoleError):
    """The shell process did not confirm startup within the grace period."""


class SpawnError(ConsoleError):
    """The shell process could not be started."""


class NotFound(ConsoleError):
    """Unknown session, name or execution."""


class SessionNotFound(NotFound):
    def __init__(self, id_or_name: str) -> None:
        super().__init__(
            f'Console "{id_or_name}" not found (searched by both ID and name)'
        )
        self.id_or_name = id_or_name


class ExecutionNotFound(NotFound):
    def __init__(self, execution_id: str, console: str) -> None:
        super().__init__(f"Execution {execution_id} not found in console {console}")
        self.execution_id = execution_id


class InactiveSession(ConsoleError):
    def __init__(self, id_or_name: str) -> None:
        super().__init__(f"Console {id_or_name} is not active")
        self.id_or_name = id_or_name


class CommandTimeout(ConsoleError):
    """A synchronous command exceeded its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Command execution timed out after {timeout:g}s")
        self.timeout = timeout


class ExecutionError(ConsoleError):
    """The transient command process failed to spawn or run."""


class InvalidFilterPattern(ConsoleError):
    """An output filter is not a valid regular expression.

    Never escapes the filter module: callers get a warning annotation instead.
    """

    def __init__(self, pattern: str, reason: str = "") -> None:
        super().__init__(f"Invalid regex filter: {pattern}" + (f" ({reason})" if reason else ""))
        self.pattern = pattern
