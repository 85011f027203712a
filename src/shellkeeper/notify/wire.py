"""Notification wire — delivers execution events to a single listener.

The console manager fires an event when a background command finishes.
Exactly zero or one listener receives them: a plain callable invoked
synchronously inside the event loop turn, or a queue handed out by
``subscribe()``. With no listener events are dropped; nothing is queued
for later.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from shellkeeper.console.execution import ExecutionResult

logger = logging.getLogger(__name__)


class EventType(enum.Enum):
    EXECUTION_COMPLETED = "execution_completed"
    EXECUTION_FAILED = "execution_failed"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[WireEvent], None]


class Wire:
    """Single-listener event sink."""

    def __init__(self, listener: Listener | None = None) -> None:
        self._listener: Listener | None = listener
        self._queue: asyncio.Queue[WireEvent | None] | None = None
        self._closed: bool = False

    @property
    def has_listener(self) -> bool:
        return self._listener is not None

    def send(self, event: WireEvent) -> None:
        """Deliver an event to the listener, if any.

        Silently drops events after ``close()`` has been called. A listener
        that raises is logged; the error never reaches the sender.
        """
        if self._closed or self._listener is None:
            return
        try:
            self._listener(event)
        except Exception:
            logger.exception("Error in wire listener for %s", event.type.value)

    def send_execution_completed(
        self,
        console_id: str,
        execution_id: str,
        command: str,
        result: ExecutionResult,
    ) -> None:
        self.send(
            WireEvent(
                type=EventType.EXECUTION_COMPLETED,
                data={
                    "console_id": console_id,
                    "execution_id": execution_id,
                    "command": command,
                    "result": result,
                },
            )
        )

    def send_execution_failed(
        self, console_id: str, execution_id: str, command: str, error: str
    ) -> None:
        self.send(
            WireEvent(
                type=EventType.EXECUTION_FAILED,
                data={
                    "console_id": console_id,
                    "execution_id": execution_id,
                    "command": command,
                    "error": error,
                },
            )
        )

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Register a queue as the listener and return it.

        Raises:
            RuntimeError: If a listener is already registered.
        """
        if self._listener is not None:
            raise RuntimeError("Wire already has a listener")
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._listener = q.put_nowait
        self._queue = q
        return q

    def close(self) -> None:
        """Stop delivering events. A subscribed queue receives ``None``."""
        if self._closed:
            return
        self._closed = True
        if self._queue is not None:
            self._queue.put_nowait(None)
