"""Execution notifications."""

from shellkeeper.notify.wire import EventType, Wire, WireEvent

__all__ = ["EventType", "Wire", "WireEvent"]
