"""Async execution records and the per-session execution table."""

from __future__ import annotations

import dataclasses
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from shellkeeper.console.errors import ExecutionNotFound
from shellkeeper.console.filter import extract_matches

logger = logging.getLogger(__name__)


class ExecutionStatus(enum.Enum):
    """Lifecycle states for an async execution."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    """Outcome of a finished command."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


@dataclass
class AsyncExecution:
    """A command started in the background and polled later.

    ``exit_code`` is set only when completed, ``error`` only when failed,
    ``ended_at`` only once terminal.
    """

    command: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: ExecutionStatus = ExecutionStatus.RUNNING
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    error: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not ExecutionStatus.RUNNING


class ExecutionTable:
    """Execution records of one console session, keyed by execution ID.

    Status only ever moves RUNNING -> COMPLETED or RUNNING -> FAILED.
    Transitions requested on a terminal record are ignored.
    """

    def __init__(self) -> None:
        self._executions: dict[str, AsyncExecution] = {}

    def start(self, command: str) -> AsyncExecution:
        """Insert a new running record for ``command``."""
        execution = AsyncExecution(command=command)
        self._executions[execution.id] = execution
        return execution

    def append_output(self, execution_id: str, text: str, is_error: bool = False) -> bool:
        """Add a chunk of output to a running execution.

        Returns:
            False if the record is unknown or already terminal.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.is_terminal:
            return False
        if is_error:
            execution.stderr += text
        else:
            execution.stdout += text
        return True

    def complete(
        self, execution_id: str, exit_code: int, stdout: str, stderr: str
    ) -> bool:
        """Mark a running execution completed.

        The accumulated output is replaced by ``stdout`` and ``stderr``.

        Returns:
            False if the record is unknown or already terminal.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.is_terminal:
            logger.debug("Ignoring completion of execution %s", execution_id)
            return False
        execution.status = ExecutionStatus.COMPLETED
        execution.exit_code = exit_code
        execution.stdout = stdout
        execution.stderr = stderr
        execution.ended_at = datetime.now(timezone.utc)
        return True

    def fail(self, execution_id: str, error: str) -> bool:
        """Mark a running execution failed, keeping the output gathered so far.

        Returns:
            False if the record is unknown or already terminal.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.is_terminal:
            logger.debug("Ignoring failure of execution %s", execution_id)
            return False
        execution.status = ExecutionStatus.FAILED
        execution.error = error
        execution.ended_at = datetime.now(timezone.utc)
        return True

    def get(
        self,
        execution_id: str,
        output_filter: str | None = None,
        console: str = "",
    ) -> AsyncExecution:
        """Return a snapshot of an execution record.

        The snapshot is a copy. A filter is applied to the copy's currently
        stored output (which may already have been filtered at completion),
        never written back.

        Raises:
            ExecutionNotFound: If the ID is unknown.
        """
        execution = self._executions.get(execution_id)
        if execution is None:
            raise ExecutionNotFound(execution_id, console)

        snapshot = dataclasses.replace(execution)
        if output_filter:
            snapshot.stdout, snapshot.stderr = extract_matches(
                snapshot.stdout, snapshot.stderr, output_filter
            )
        return snapshot

    def running_count(self) -> int:
        return sum(1 for e in self._executions.values() if not e.is_terminal)

    def __len__(self) -> int:
        return len(self._executions)

    def __contains__(self, execution_id: str) -> bool:
        return execution_id in self._executions
