"""Console session — one long-lived shell process with its buffer and executions."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from shellkeeper.console.buffer import OutputBuffer
from shellkeeper.console.errors import SpawnError, SpawnTimeout
from shellkeeper.console.execution import ExecutionTable

logger = logging.getLogger(__name__)

SPAWN_TIMEOUT = 5.0
KILL_GRACE_PERIOD = 5.0


class SessionStatus(enum.Enum):
    """Lifecycle states for a console session."""

    STARTING = "starting"
    RUNNING = "running"
    CLOSING = "closing"  # SIGTERM sent, waiting for the process to go away
    CLOSED = "closed"  # Closed by us and the process is gone
    EXITED = "exited"  # Process exited on its own


@dataclass
class ConsoleStatus:
    """Point-in-time description of a console session."""

    id: str
    name: str | None
    shell: str
    working_dir: str
    created_at: datetime
    is_active: bool
    running_executions: int = 0
    environment: dict[str, str] = field(default_factory=dict)


@dataclass
class ConsoleSession:
    """A managed shell process.

    The shell itself only anchors the session: commands are run in transient
    processes spawned with the session's shell, working directory and
    environment. Output from those commands lands in ``buffer`` and async
    command state in ``executions``.
    """

    shell: str
    working_dir: str = field(default_factory=os.getcwd)
    environment: dict[str, str] = field(default_factory=dict)
    name: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    buffer: OutputBuffer = field(default_factory=OutputBuffer)
    executions: ExecutionTable = field(default_factory=ExecutionTable)

    # Internal state
    _proc: asyncio.subprocess.Process | None = field(default=None, init=False)
    _status: SessionStatus = field(default=SessionStatus.STARTING, init=False)
    _watch_task: asyncio.Task | None = field(default=None, init=False)
    _kill_handle: asyncio.TimerHandle | None = field(default=None, init=False)
    _on_exit: Callable[[ConsoleSession, int | None], None] | None = field(
        default=None, init=False
    )

    def set_on_exit(self, callback: Callable[[ConsoleSession, int | None], None]) -> None:
        """Set a callback for when the shell exits on its own.

        The callback receives (session, exit_code). It is not called when the
        session was closed via ``close()``.
        """
        self._on_exit = callback

    def merged_env(self) -> dict[str, str]:
        """Process environment overridden by this session's entries."""
        return {**os.environ, **self.environment}

    async def start(self, spawn_timeout: float = SPAWN_TIMEOUT) -> None:
        """Spawn the shell with piped stdio and start watching for its exit.

        Raises:
            SpawnTimeout: If the process is not up within ``spawn_timeout``.
            SpawnError: If the process cannot be spawned.
        """
        try:
            self._proc = await asyncio.wait_for(
                asyncio.create_subprocess_exec(
                    self.shell,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=self.working_dir,
                    env=self.merged_env(),
                ),
                timeout=spawn_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SpawnTimeout(
                f"Console process failed to start within {spawn_timeout:g}s"
            ) from e
        except (OSError, ValueError) as e:
            raise SpawnError(f"Failed to create console: {e}") from e

        self._status = SessionStatus.RUNNING
        self._watch_task = asyncio.create_task(self._watch_exit())

        logger.info(
            "Console %s started: pid=%d shell=%s cwd=%s",
            self.id,
            self._proc.pid,
            self.shell,
            self.working_dir,
        )

    async def _watch_exit(self) -> None:
        """Wait for the shell to exit and record why."""
        assert self._proc is not None
        exit_code = await self._proc.wait()

        if self._kill_handle is not None:
            self._kill_handle.cancel()
            self._kill_handle = None

        if self._status == SessionStatus.CLOSING:
            self._status = SessionStatus.CLOSED
            logger.debug("Console %s terminated (code=%s)", self.id, exit_code)
            return

        self._status = SessionStatus.EXITED
        logger.info("Console %s exited (code=%s)", self.id, exit_code)
        if self._on_exit:
            try:
                self._on_exit(self, exit_code)
            except Exception:
                logger.exception("Error in on_exit callback for console %s", self.id)

    def close(self, grace_period: float = KILL_GRACE_PERIOD) -> None:
        """Ask the shell to terminate; force-kill it after ``grace_period``.

        Returns immediately. The session is inactive from this point on.
        """
        if self._status != SessionStatus.RUNNING or self._proc is None:
            return

        self._status = SessionStatus.CLOSING
        try:
            self._proc.terminate()
        except ProcessLookupError:
            logger.debug("Console %s process already gone", self.id)
            return

        loop = asyncio.get_running_loop()
        self._kill_handle = loop.call_later(grace_period, self._force_kill)
        logger.info("Closing console %s (pid=%d)", self.id, self._proc.pid)

    async def wait_closed(self) -> None:
        """Wait until the shell process has exited. Returns at once if never started."""
        if self._watch_task is not None:
            await self._watch_task

    def _force_kill(self) -> None:
        self._kill_handle = None
        if self._status != SessionStatus.CLOSING:
            return
        if self._proc is None or self._proc.returncode is not None:
            return
        logger.warning("Console %s ignored SIGTERM, killing", self.id)
        try:
            self._proc.kill()
        except ProcessLookupError:
            pass

    @property
    def alive(self) -> bool:
        return self._status == SessionStatus.RUNNING

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    def describe(self) -> ConsoleStatus:
        return ConsoleStatus(
            id=self.id,
            name=self.name,
            shell=self.shell,
            working_dir=self.working_dir,
            created_at=self.created_at,
            is_active=self.alive,
            running_executions=self.executions.running_count(),
            environment=dict(self.environment),
        )
