"""Console sessions — long-lived shells with sync and async command execution.

Commands run in transient processes that share the session's shell,
working directory and environment. Their output is mirrored into a bounded
per-session buffer; background runs are tracked in a per-session
execution table and announced on the notification wire.
"""

from shellkeeper.console.buffer import BufferSnapshot, OutputBuffer
from shellkeeper.console.errors import (
    CommandTimeout,
    ConsoleError,
    ExecutionError,
    ExecutionNotFound,
    InactiveSession,
    InvalidFilterPattern,
    NameConflict,
    NotFound,
    SessionNotFound,
    SpawnError,
    SpawnTimeout,
)
from shellkeeper.console.execution import (
    AsyncExecution,
    ExecutionResult,
    ExecutionStatus,
    ExecutionTable,
)
from shellkeeper.console.manager import ConsoleManager
from shellkeeper.console.registry import SessionRegistry
from shellkeeper.console.runner import CommandRunner
from shellkeeper.console.session import ConsoleSession, ConsoleStatus, SessionStatus

__all__ = [
    "AsyncExecution",
    "BufferSnapshot",
    "CommandRunner",
    "CommandTimeout",
    "ConsoleError",
    "ConsoleManager",
    "ConsoleSession",
    "ConsoleStatus",
    "ExecutionError",
    "ExecutionNotFound",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutionTable",
    "InactiveSession",
    "InvalidFilterPattern",
    "NameConflict",
    "NotFound",
    "OutputBuffer",
    "SessionNotFound",
    "SessionRegistry",
    "SessionStatus",
    "SpawnError",
    "SpawnTimeout",
]
