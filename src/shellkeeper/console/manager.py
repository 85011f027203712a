"""Console manager — the public face of the console subsystem."""

from __future__ import annotations

import logging

from shellkeeper.config import ConsoleConfig
from shellkeeper.console.buffer import BufferSnapshot
from shellkeeper.console.errors import InactiveSession
from shellkeeper.console.execution import AsyncExecution, ExecutionResult
from shellkeeper.console.registry import SessionRegistry
from shellkeeper.console.runner import CommandRunner
from shellkeeper.console.session import ConsoleStatus
from shellkeeper.notify.wire import Listener, Wire

logger = logging.getLogger(__name__)


class ConsoleManager:
    """Creates console sessions and runs commands against them.

    Every operation that takes a ``console`` argument accepts either the
    session ID or its name; IDs win when both could match.

    Background command results are announced on the wire. Pass either a
    ready ``wire`` or an ``on_notification`` callable, not both.
    """

    def __init__(
        self,
        config: ConsoleConfig | None = None,
        wire: Wire | None = None,
        on_notification: Listener | None = None,
    ) -> None:
        if wire is not None and on_notification is not None:
            raise ValueError("Pass either wire or on_notification, not both")
        self.config = config or ConsoleConfig()
        self.wire = wire or Wire(listener=on_notification)
        self.registry = SessionRegistry(
            default_shell=self.config.default_shell,
            buffer_lines=self.config.buffer_lines,
            spawn_timeout=self.config.spawn_timeout,
            kill_grace_period=self.config.kill_grace_period,
        )
        self.runner = CommandRunner(wire=self.wire)

    async def create_console(
        self,
        shell: str | None = None,
        working_dir: str | None = None,
        environment: dict[str, str] | None = None,
        name: str | None = None,
    ) -> ConsoleStatus:
        session = await self.registry.create(
            shell=shell, working_dir=working_dir, environment=environment, name=name
        )
        return session.describe()

    async def execute_sync(
        self,
        console: str,
        command: str,
        timeout: float | None = None,
        output_filter: str | None = None,
    ) -> ExecutionResult:
        """Run a command and wait for its result.

        ``timeout`` is in seconds and defaults to ``config.sync_timeout``.
        """
        session = self.registry.get(console)
        return await self.runner.run_sync(
            session,
            command,
            timeout=timeout if timeout is not None else self.config.sync_timeout,
            output_filter=output_filter,
            console=console,
        )

    async def execute_async(
        self, console: str, command: str, output_filter: str | None = None
    ) -> str:
        """Start a command in the background and return its execution ID."""
        session = self.registry.get(console)
        return self.runner.run_async(
            session, command, output_filter=output_filter, console=console
        )

    async def get_async_result(
        self, console: str, execution_id: str, output_filter: str | None = None
    ) -> AsyncExecution:
        """Snapshot of a background execution.

        A filter given here is applied on top of whatever filter the command
        was started with.
        """
        session = self.registry.get(console)
        return session.executions.get(execution_id, output_filter, console=console)

    def list_consoles(self) -> list[ConsoleStatus]:
        return [s.describe() for s in self.registry.sessions()]

    def get_console_status(self, console: str) -> ConsoleStatus:
        return self.registry.get(console).describe()

    async def close_console(self, console: str) -> None:
        """Close a console and discard its execution results.

        Results of background commands that nobody has read yet are lost,
        even if the command already finished.
        """
        await self.registry.close(console)

    async def cleanup(self) -> dict[str, BaseException]:
        """Close every console. Returns the failures keyed by console ID."""
        return await self.registry.close_all()

    async def get_console_output(
        self,
        console: str,
        lines: int | None = None,
        output_filter: str | None = None,
    ) -> BufferSnapshot:
        """Recent lines from a console's output buffer.

        Raises:
            InactiveSession: If the console's shell is no longer running.
        """
        session = self.registry.get(console)
        if not session.alive:
            raise InactiveSession(console)
        return session.buffer.read(tail_lines=lines, line_filter=output_filter)

    async def clear_console_output(self, console: str) -> None:
        self.registry.get(console).buffer.clear()
