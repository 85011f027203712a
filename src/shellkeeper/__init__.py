"""shellkeeper — long-lived shell sessions with sync and async command execution."""

__version__ = "0.1.0"
