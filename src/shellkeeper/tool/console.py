"""Console tools — expose ConsoleManager operations as named tools.

Each tool validates its arguments, calls the manager, and renders the
result as plain text. A ``ConsoleError`` becomes an error result worded
``"<failure>: <message>"``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from shellkeeper.console.errors import ConsoleError
from shellkeeper.tool.base import BaseTool, P, ToolResult

if TYPE_CHECKING:
    from shellkeeper.console.manager import ConsoleManager
    from shellkeeper.console.session import ConsoleStatus

_CONSOLE_DESC = "Console ID or name"
_FILTER_DESC = "Regex pattern to filter output (reduces context size)"


def _fmt_time(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _describe(status: ConsoleStatus, with_running: bool = False) -> str:
    lines = [f"ID: {status.id}"]
    if status.name:
        lines.append(f"Name: {status.name}")
    lines += [
        f"Shell: {status.shell}",
        f"Working Dir: {status.working_dir}",
        f"Created: {_fmt_time(status.created_at)}",
        f"Active: {'Yes' if status.is_active else 'No'}",
    ]
    if with_running:
        lines.append(f"Running Executions: {status.running_executions}")
    return "\n".join(lines)


class ConsoleTool(BaseTool[P]):
    """A tool bound to one ConsoleManager."""

    handled = (ConsoleError,)

    def __init__(self, manager: ConsoleManager) -> None:
        self._manager = manager


# ----------------------------------------------------------------------
# create_console
# ----------------------------------------------------------------------


class CreateConsoleParams(BaseModel):
    shell: str | None = Field(
        default=None, description="Shell to use (default: system default)"
    )
    working_dir: str | None = Field(
        default=None, description="Working directory for the console"
    )
    environment: dict[str, str] | None = Field(
        default=None, description="Environment variables"
    )
    name: str | None = Field(
        default=None,
        description="Optional name for the console (for easier reference)",
    )


class CreateConsoleTool(ConsoleTool[CreateConsoleParams]):
    name = "create_console"
    description = "Create a new console session and return its unique ID"
    params = CreateConsoleParams
    failure = "Failed to create console"

    async def execute(self, params: CreateConsoleParams) -> ToolResult:
        status = await self._manager.create_console(
            shell=params.shell,
            working_dir=params.working_dir,
            environment=params.environment,
            name=params.name,
        )
        text = "Console created successfully:\n" + _describe(status)
        if status.environment:
            text += f"\nEnvironment Variables: {len(status.environment)} set"
        return ToolResult.ok(text, summary=f"created {status.name or status.id}")


# ----------------------------------------------------------------------
# execute_sync / execute_async / get_async_result
# ----------------------------------------------------------------------


class ExecuteSyncParams(BaseModel):
    console: str = Field(description=_CONSOLE_DESC)
    command: str = Field(description="Command to execute")
    timeout: float = Field(default=30, gt=0, description="Timeout in seconds (default: 30)")
    output_filter: str | None = Field(default=None, description=_FILTER_DESC)


class ExecuteSyncTool(ConsoleTool[ExecuteSyncParams]):
    name = "execute_sync"
    description = "Execute a command synchronously and return the result immediately"
    params = ExecuteSyncParams
    failure = "Failed to execute command"

    async def execute(self, params: ExecuteSyncParams) -> ToolResult:
        result = await self._manager.execute_sync(
            params.console,
            params.command,
            timeout=params.timeout,
            output_filter=params.output_filter,
        )
        return ToolResult.ok(
            "Command executed successfully:\n\n"
            f"STDOUT:\n{result.stdout}\n\n"
            f"STDERR:\n{result.stderr}\n\n"
            f"Exit Code: {result.exit_code}",
            summary=f"exit={result.exit_code}: {params.command[:50]}",
        )


class ExecuteAsyncParams(BaseModel):
    console: str = Field(description=_CONSOLE_DESC)
    command: str = Field(description="Command to execute asynchronously")
    output_filter: str | None = Field(default=None, description=_FILTER_DESC)


class ExecuteAsyncTool(ConsoleTool[ExecuteAsyncParams]):
    name = "execute_async"
    description = (
        "Execute a command asynchronously and return an execution ID "
        "for later result retrieval"
    )
    params = ExecuteAsyncParams
    failure = "Failed to start async command"

    async def execute(self, params: ExecuteAsyncParams) -> ToolResult:
        execution_id = await self._manager.execute_async(
            params.console, params.command, output_filter=params.output_filter
        )
        return ToolResult.ok(
            f"Command started asynchronously with execution ID: {execution_id}",
            summary=f"started {execution_id}",
        )


class GetAsyncResultParams(BaseModel):
    console: str = Field(description=_CONSOLE_DESC)
    execution_id: str = Field(description="Execution ID returned from execute_async")
    output_filter: str | None = Field(
        default=None,
        description="Regex pattern to filter output (post-processing filter)",
    )


class GetAsyncResultTool(ConsoleTool[GetAsyncResultParams]):
    name = "get_async_result"
    description = "Get the result of an asynchronously executed command"
    params = GetAsyncResultParams
    failure = "Failed to get async result"

    async def execute(self, params: GetAsyncResultParams) -> ToolResult:
        execution = await self._manager.get_async_result(
            params.console, params.execution_id, output_filter=params.output_filter
        )
        ended = (
            f"Ended: {_fmt_time(execution.ended_at)}"
            if execution.ended_at
            else "Still running"
        )
        parts = [
            f"Execution {execution.id} status: {execution.status.value}",
            "",
            f"Command: {execution.command}",
            f"Started: {_fmt_time(execution.started_at)}",
            ended,
            "",
            f"STDOUT:\n{execution.stdout}",
            "",
            f"STDERR:\n{execution.stderr}",
        ]
        if execution.exit_code is not None:
            parts += ["", f"Exit Code: {execution.exit_code}"]
        if execution.error:
            parts += ["", f"Error: {execution.error}"]
        if params.output_filter:
            parts.append(f"[Filtered with regex: {params.output_filter}]")
        return ToolResult.ok("\n".join(parts), summary=execution.status.value)


# ----------------------------------------------------------------------
# list / status / close
# ----------------------------------------------------------------------


class NoParams(BaseModel):
    pass


class ConsoleParams(BaseModel):
    console: str = Field(description=_CONSOLE_DESC)


class ListConsolesTool(ConsoleTool[NoParams]):
    name = "list_consoles"
    description = "List all active console sessions"
    params = NoParams

    async def execute(self, params: NoParams) -> ToolResult:
        consoles = self._manager.list_consoles()
        if not consoles:
            return ToolResult.ok("No active consoles")
        listing = "\n\n".join(_describe(c) for c in consoles)
        return ToolResult.ok(
            f"Active consoles:\n\n{listing}", summary=f"{len(consoles)} consoles"
        )


class CloseConsoleTool(ConsoleTool[ConsoleParams]):
    name = "close_console"
    description = "Close a console session and clean up resources"
    params = ConsoleParams
    failure = "Failed to close console"

    async def execute(self, params: ConsoleParams) -> ToolResult:
        await self._manager.close_console(params.console)
        return ToolResult.ok(f"Console {params.console} closed successfully")


class GetConsoleStatusTool(ConsoleTool[ConsoleParams]):
    name = "get_console_status"
    description = "Get detailed status information about a console session"
    params = ConsoleParams
    failure = "Failed to get console status"

    async def execute(self, params: ConsoleParams) -> ToolResult:
        status = self._manager.get_console_status(params.console)
        return ToolResult.ok("Console Status:\n" + _describe(status, with_running=True))


# ----------------------------------------------------------------------
# Output buffer
# ----------------------------------------------------------------------


class GetConsoleOutputParams(BaseModel):
    console: str = Field(description=_CONSOLE_DESC)
    lines: int | None = Field(
        default=None, description="Number of recent lines to retrieve (default: all)"
    )
    output_filter: str | None = Field(
        default=None, description="Regex pattern to filter output lines"
    )


class GetConsoleOutputTool(ConsoleTool[GetConsoleOutputParams]):
    name = "get_console_output"
    description = "Get recent output from a console session's buffer"
    params = GetConsoleOutputParams
    failure = "Failed to get console output"

    async def execute(self, params: GetConsoleOutputParams) -> ToolResult:
        snapshot = await self._manager.get_console_output(
            params.console, lines=params.lines, output_filter=params.output_filter
        )
        text = f"Console output for {params.console}:\n"
        text += f"Total lines in buffer: {snapshot.total_lines}\n"
        if params.lines:
            text += f"Showing last {min(params.lines, len(snapshot.lines))} lines\n"
        if params.output_filter:
            text += f"Filtered with regex: {params.output_filter}\n"
        text += "\n--- Output ---\n"
        text += "\n".join(snapshot.lines) if snapshot.lines else "No output available"
        return ToolResult.ok(text, summary=f"{len(snapshot.lines)} lines")


class ClearConsoleOutputTool(ConsoleTool[ConsoleParams]):
    name = "clear_console_output"
    description = "Clear the output buffer of a console session"
    params = ConsoleParams
    failure = "Failed to clear console output"

    async def execute(self, params: ConsoleParams) -> ToolResult:
        await self._manager.clear_console_output(params.console)
        return ToolResult.ok(f"Output buffer cleared for console {params.console}")


def create_console_tools(manager: ConsoleManager) -> list[BaseTool]:
    """Instantiate every console tool bound to ``manager``."""
    return [
        CreateConsoleTool(manager),
        ExecuteSyncTool(manager),
        ExecuteAsyncTool(manager),
        GetAsyncResultTool(manager),
        ListConsolesTool(manager),
        CloseConsoleTool(manager),
        GetConsoleStatusTool(manager),
        GetConsoleOutputTool(manager),
        ClearConsoleOutputTool(manager),
    ]
