"""Configuration — Pydantic models for shellkeeper settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ConsoleConfig(BaseModel):
    """Console session and command execution settings."""

    default_shell: str | None = Field(
        default=None,
        description=(
            "Shell used when a console is created without one. "
            "Unset means COMSPEC on Windows, SHELL (or /bin/sh) elsewhere."
        ),
    )
    buffer_lines: int = Field(
        default=1000, ge=1, description="Lines kept in each console's output buffer"
    )
    spawn_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for a shell to start"
    )
    kill_grace_period: float = Field(
        default=5.0,
        ge=0,
        description="Seconds between SIGTERM and SIGKILL when closing a console",
    )
    sync_timeout: float = Field(
        default=30.0, gt=0, description="Default timeout for synchronous commands"
    )


class ShellkeeperConfig(BaseModel):
    """Top-level shellkeeper configuration."""

    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    log_level: str = Field(default="INFO")

    @classmethod
    def load(cls, config_path: str | None = None) -> ShellkeeperConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            SHELLKEEPER_DEFAULT_SHELL       - Shell for consoles created without one
            SHELLKEEPER_BUFFER_LINES        - Output buffer capacity per console
            SHELLKEEPER_SPAWN_TIMEOUT       - Seconds to wait for a shell to start
            SHELLKEEPER_KILL_GRACE_PERIOD   - Seconds before a closing shell is killed
            SHELLKEEPER_SYNC_TIMEOUT        - Default sync command timeout in seconds
            SHELLKEEPER_LOG_LEVEL           - Logging level name
        """
        load_dotenv()

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        console = config_data.get("console", {})

        env_shell = os.environ.get("SHELLKEEPER_DEFAULT_SHELL")
        if env_shell:
            console["default_shell"] = env_shell

        env_buffer_lines = os.environ.get("SHELLKEEPER_BUFFER_LINES")
        if env_buffer_lines:
            console["buffer_lines"] = int(env_buffer_lines)

        env_spawn_timeout = os.environ.get("SHELLKEEPER_SPAWN_TIMEOUT")
        if env_spawn_timeout:
            console["spawn_timeout"] = float(env_spawn_timeout)

        env_grace = os.environ.get("SHELLKEEPER_KILL_GRACE_PERIOD")
        if env_grace:
            console["kill_grace_period"] = float(env_grace)

        env_sync_timeout = os.environ.get("SHELLKEEPER_SYNC_TIMEOUT")
        if env_sync_timeout:
            console["sync_timeout"] = float(env_sync_timeout)

        if console:
            config_data["console"] = console

        env_log_level = os.environ.get("SHELLKEEPER_LOG_LEVEL")
        if env_log_level:
            config_data["log_level"] = env_log_level.upper()

        return cls.model_validate(config_data)
