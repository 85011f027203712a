"""Command runner — executes one command line in a transient shell process.

Each command gets its own process, started as ``<shell> -c <command>`` (or
the Windows/PowerShell equivalent) with the session's working directory and
environment. The session's persistent shell is never written to.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import sys
from pathlib import PureWindowsPath
from typing import TYPE_CHECKING, Callable

from shellkeeper.console.errors import CommandTimeout, ExecutionError, InactiveSession
from shellkeeper.console.execution import ExecutionResult
from shellkeeper.console.filter import extract_matches

if TYPE_CHECKING:
    from shellkeeper.console.session import ConsoleSession
    from shellkeeper.notify.wire import Wire

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
_READ_SIZE = 4096


def default_shell() -> str:
    """Platform default shell: ``COMSPEC`` on Windows, ``SHELL`` elsewhere."""
    if sys.platform == "win32":
        return os.environ.get("COMSPEC") or "cmd.exe"
    return os.environ.get("SHELL") or "/bin/sh"


def shell_args(shell: str, command: str) -> list[str]:
    """Arguments that make ``shell`` run ``command`` once and exit."""
    # PureWindowsPath splits on both "/" and "\"
    name = PureWindowsPath(shell).name.lower()
    if "cmd" in name:
        return ["/c", command]
    if "powershell" in name or "pwsh" in name:
        return ["-Command", command]
    return ["-c", command]


async def _pump(
    stream: asyncio.StreamReader | None, on_text: Callable[[str], None]
) -> None:
    """Forward decoded chunks from ``stream`` until EOF."""
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(_READ_SIZE)
        if not data:
            break
        text = decoder.decode(data)
        if text:
            on_text(text)
    tail = decoder.decode(b"", final=True)
    if tail:
        on_text(tail)


def _log_failure(task: asyncio.Task) -> None:
    # Abandoned tasks (a timed-out sync command) have no one awaiting them
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Command task failed: %s", exc, exc_info=exc)


class _Capture:
    """Accumulates a command's output and mirrors it into the session buffer.

    With an ``execution_id`` every chunk is also added to that row of the
    session's execution table while it is running.
    """

    def __init__(self, session: ConsoleSession, execution_id: str | None = None) -> None:
        self._session = session
        self._execution_id = execution_id
        self.stdout = ""
        self.stderr = ""

    def _record(self, text: str, is_error: bool) -> None:
        self._session.buffer.append(text, is_error=is_error)
        if self._execution_id is not None:
            self._session.executions.append_output(self._execution_id, text, is_error)

    def on_stdout(self, text: str) -> None:
        self.stdout += text
        self._record(text, is_error=False)

    def on_stderr(self, text: str) -> None:
        self.stderr += text
        self._record(text, is_error=True)


class CommandRunner:
    """Runs commands for console sessions, blocking or in the background.

    Background runs record their outcome in the session's execution table
    and announce it on the wire (if one is attached).
    """

    def __init__(self, wire: Wire | None = None) -> None:
        self._wire = wire
        # Strong references so in-flight tasks are not garbage collected
        self._tasks: set[asyncio.Task] = set()

    async def _spawn(
        self, session: ConsoleSession, command: str
    ) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            session.shell,
            *shell_args(session.shell, command),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=session.working_dir,
            env=session.merged_env(),
        )

    async def _collect(
        self, proc: asyncio.subprocess.Process, capture: _Capture
    ) -> int:
        """Stream both pipes to ``capture`` and wait for the exit code."""
        await asyncio.gather(
            _pump(proc.stdout, capture.on_stdout),
            _pump(proc.stderr, capture.on_stderr),
        )
        return await proc.wait()

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_failure)
        return task

    # ------------------------------------------------------------------
    # Blocking execution
    # ------------------------------------------------------------------

    async def run_sync(
        self,
        session: ConsoleSession,
        command: str,
        timeout: float = DEFAULT_TIMEOUT,
        output_filter: str | None = None,
        console: str | None = None,
    ) -> ExecutionResult:
        """Run ``command`` and wait for it to finish.

        Args:
            session: Session supplying shell, working directory and environment.
            command: Command line to run.
            timeout: Seconds to wait before giving up.
            output_filter: Regex for match-extraction on the result.
            console: Name the caller used for the session, for messages.

        Raises:
            InactiveSession: If the session is not running.
            CommandTimeout: If the command is still running after ``timeout``.
                The process is left running and keeps feeding the buffer.
            ExecutionError: If the process could not be spawned or read.
        """
        if not session.alive:
            raise InactiveSession(console or session.id)

        logger.debug("Console %s: run %r (timeout=%ss)", session.id, command, timeout)
        try:
            proc = await self._spawn(session, command)
        except (OSError, ValueError) as e:
            raise ExecutionError(f"Command execution failed: {e}") from e

        capture = _Capture(session)
        collector = self._track(self._collect(proc, capture))
        try:
            exit_code = await asyncio.wait_for(asyncio.shield(collector), timeout)
        except asyncio.TimeoutError as e:
            logger.warning(
                "Console %s: command timed out after %ss: %s",
                session.id,
                timeout,
                command,
            )
            raise CommandTimeout(timeout) from e
        except OSError as e:
            raise ExecutionError(f"Command execution failed: {e}") from e

        stdout, stderr = extract_matches(capture.stdout, capture.stderr, output_filter)
        return ExecutionResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

    # ------------------------------------------------------------------
    # Background execution
    # ------------------------------------------------------------------

    def run_async(
        self,
        session: ConsoleSession,
        command: str,
        output_filter: str | None = None,
        console: str | None = None,
    ) -> str:
        """Start ``command`` in the background and return its execution ID.

        Must be called from within a running event loop. Does not wait for
        the process to spawn; spawn failures surface as a failed execution.

        Raises:
            InactiveSession: If the session is not running.
        """
        if not session.alive:
            raise InactiveSession(console or session.id)

        execution = session.executions.start(command)
        self._track(self._run_background(session, execution.id, command, output_filter))
        logger.debug(
            "Console %s: started execution %s: %r", session.id, execution.id, command
        )
        return execution.id

    async def _run_background(
        self,
        session: ConsoleSession,
        execution_id: str,
        command: str,
        output_filter: str | None,
    ) -> None:
        capture = _Capture(session, execution_id)
        try:
            proc = await self._spawn(session, command)
            exit_code = await self._collect(proc, capture)
        except (OSError, ValueError) as e:
            error = str(e)
            if session.executions.fail(execution_id, error):
                logger.info("Execution %s failed: %s", execution_id, error)
                if self._wire is not None:
                    self._wire.send_execution_failed(
                        session.id, execution_id, command, error
                    )
            return

        stdout, stderr = extract_matches(capture.stdout, capture.stderr, output_filter)
        if session.executions.complete(execution_id, exit_code, stdout, stderr):
            logger.info(
                "Execution %s completed (code=%s)", execution_id, exit_code
            )
            if self._wire is not None:
                self._wire.send_execution_completed(
                    session.id,
                    execution_id,
                    command,
                    ExecutionResult(stdout=stdout, stderr=stderr, exit_code=exit_code),
                )

    async def wait_idle(self) -> None:
        """Wait until every tracked command process has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)
