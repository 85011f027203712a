"""Session registry — owns console sessions by ID with a name index."""

from __future__ import annotations

import asyncio
import logging
import os

from shellkeeper.console.buffer import DEFAULT_CAPACITY, OutputBuffer
from shellkeeper.console.errors import NameConflict, SessionNotFound
from shellkeeper.console.runner import default_shell
from shellkeeper.console.session import (
    KILL_GRACE_PERIOD,
    SPAWN_TIMEOUT,
    ConsoleSession,
)

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks live console sessions.

    Sessions are owned by ``_sessions`` (keyed by ID). ``_names`` is a
    secondary index holding only sessions that are still active, so a name
    becomes reusable as soon as its shell exits or the session is closed.
    A session stays resolvable by ID until it is closed explicitly.
    """

    def __init__(
        self,
        default_shell: str | None = None,
        buffer_lines: int = DEFAULT_CAPACITY,
        spawn_timeout: float = SPAWN_TIMEOUT,
        kill_grace_period: float = KILL_GRACE_PERIOD,
    ) -> None:
        self._sessions: dict[str, ConsoleSession] = {}
        self._names: dict[str, str] = {}  # name -> session id
        self._default_shell = default_shell
        self._buffer_lines = buffer_lines
        self._spawn_timeout = spawn_timeout
        self._kill_grace_period = kill_grace_period

    async def create(
        self,
        shell: str | None = None,
        working_dir: str | None = None,
        environment: dict[str, str] | None = None,
        name: str | None = None,
    ) -> ConsoleSession:
        """Spawn a new console session and register it.

        Args:
            shell: Shell executable. Defaults to the configured shell, then
                the platform default.
            working_dir: Working directory. Defaults to the current directory.
            environment: Variables layered over the current environment.
            name: Optional unique name for lookups.

        Raises:
            NameConflict: If ``name`` belongs to an active session.
            SpawnTimeout: If the shell did not start in time.
            SpawnError: If the shell could not be spawned.
        """
        if name and name in self._names:
            raise NameConflict(name)

        session = ConsoleSession(
            shell=shell or self._default_shell or default_shell(),
            working_dir=working_dir or os.getcwd(),
            environment=dict(environment or {}),
            name=name or None,
            buffer=OutputBuffer(self._buffer_lines),
        )
        session.set_on_exit(self._on_exit)
        await session.start(spawn_timeout=self._spawn_timeout)

        # The name may have been taken while we were waiting for the spawn
        if session.name and session.name in self._names:
            session.close(self._kill_grace_period)
            raise NameConflict(session.name)

        self._sessions[session.id] = session
        if session.name:
            self._names[session.name] = session.id
        return session

    def _on_exit(self, session: ConsoleSession, exit_code: int | None) -> None:
        self._release_name(session)

    def _release_name(self, session: ConsoleSession) -> None:
        if session.name and self._names.get(session.name) == session.id:
            del self._names[session.name]

    def resolve(self, id_or_name: str) -> str:
        """Map an ID or name to a session ID. IDs take priority.

        Raises:
            SessionNotFound: If neither lookup matches.
        """
        if id_or_name in self._sessions:
            return id_or_name
        session_id = self._names.get(id_or_name)
        if session_id is not None:
            return session_id
        raise SessionNotFound(id_or_name)

    def get(self, id_or_name: str) -> ConsoleSession:
        """Get a session by ID or name.

        Raises:
            SessionNotFound: If neither lookup matches.
        """
        return self._sessions[self.resolve(id_or_name)]

    async def close(self, id_or_name: str) -> None:
        """Terminate a session's shell and forget the session.

        Does not wait for the process to exit.

        Raises:
            SessionNotFound: If neither lookup matches.
        """
        session = self.get(id_or_name)
        session.close(self._kill_grace_period)
        self._release_name(session)
        del self._sessions[session.id]
        logger.info("Console %s closed", session.id)

    async def close_all(self) -> dict[str, BaseException]:
        """Close every session; one failure does not stop the others.

        Waits for the shells that were signalled to exit, which takes at
        most the kill grace period.

        Returns:
            Mapping of session ID to the error that closing it raised.
        """
        sessions = list(self._sessions.values())
        results = await asyncio.gather(
            *(self.close(session.id) for session in sessions), return_exceptions=True
        )
        failures: dict[str, BaseException] = {}
        closed: list[ConsoleSession] = []
        for session, result in zip(sessions, results):
            if isinstance(result, BaseException):
                logger.error("Error closing console %s: %s", session.id, result)
                failures[session.id] = result
            else:
                closed.append(session)
        await asyncio.gather(*(session.wait_closed() for session in closed))
        logger.info("All consoles cleaned up")
        return failures

    def sessions(self) -> list[ConsoleSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, id_or_name: str) -> bool:
        return id_or_name in self._sessions or id_or_name in self._names
