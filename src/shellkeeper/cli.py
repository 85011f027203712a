"""CLI entry point for shellkeeper."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import typer
from rich.console import Console

from shellkeeper import __version__
from shellkeeper.config import ShellkeeperConfig
from shellkeeper.console.errors import ConsoleError
from shellkeeper.console.manager import ConsoleManager
from shellkeeper.notify.wire import EventType, WireEvent
from shellkeeper.tool import ToolRegistry, create_console_tools

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="shellkeeper",
    help="Long-lived shell sessions with sync and async command execution.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def log_notification(event: WireEvent) -> None:
    """Report a finished background command on stderr."""
    data = event.data
    logger.info(
        "%s: Console %s, Execution %s, Command: %s",
        event.type.value,
        data.get("console_id"),
        data.get("execution_id"),
        data.get("command"),
    )
    if event.type is EventType.EXECUTION_COMPLETED:
        result = data["result"]
        logger.info(
            "Exit Code: %s, STDOUT length: %d, STDERR length: %d",
            result.exit_code,
            len(result.stdout),
            len(result.stderr),
        )
    else:
        logger.info("Error: %s", data.get("error"))


def build_registry(manager: ConsoleManager) -> ToolRegistry:
    return ToolRegistry(create_console_tools(manager))


async def handle_line(registry: ToolRegistry, line: str) -> dict[str, Any]:
    """Dispatch one JSON request line and build the response object."""
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        return {"tool": None, "content": f"Invalid JSON: {e}", "is_error": True}
    if not isinstance(request, dict) or not isinstance(request.get("tool"), str):
        return {
            "tool": None,
            "content": 'Request must be an object with a "tool" string',
            "is_error": True,
        }

    arguments = request.get("arguments") or {}
    if not isinstance(arguments, dict):
        return {
            "tool": request["tool"],
            "content": '"arguments" must be an object',
            "is_error": True,
        }
    result = await registry.dispatch(request["tool"], arguments)
    return {"tool": request["tool"], "content": result.text, "is_error": result.is_error}


async def drain_notifications(queue: asyncio.Queue[WireEvent | None]) -> None:
    """Log events from a subscribed wire queue until the wire is closed."""
    while True:
        event = await queue.get()
        if event is None:
            break
        log_notification(event)


async def _serve(config: ShellkeeperConfig) -> None:
    manager = ConsoleManager(config=config.console)
    notifications = asyncio.create_task(drain_notifications(manager.wire.subscribe()))
    registry = build_registry(manager)
    loop = asyncio.get_running_loop()
    logger.info("shellkeeper serving %d tools on stdio", len(registry))

    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not line.strip():
                continue
            response = await handle_line(registry, line)
            sys.stdout.write(json.dumps(response) + "\n")
            sys.stdout.flush()
    finally:
        await manager.cleanup()
        manager.wire.close()
        await notifications


@app.command()
def serve(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
) -> None:
    """Serve the console tools as JSON lines over stdin/stdout."""
    config = ShellkeeperConfig.load(config_file)
    setup_logging(verbose, config.log_level)
    asyncio.run(_serve(config))


async def _exec_once(
    config: ShellkeeperConfig,
    command: str,
    shell: str | None,
    cwd: str | None,
    timeout: float | None,
    output_filter: str | None,
) -> int:
    manager = ConsoleManager(config=config.console)
    try:
        status = await manager.create_console(shell=shell, working_dir=cwd)
        result = await manager.execute_sync(
            status.id, command, timeout=timeout, output_filter=output_filter
        )
    finally:
        await manager.cleanup()

    if result.stdout:
        typer.echo(result.stdout)
    if result.stderr:
        typer.echo(result.stderr, err=True)
    return result.exit_code


@app.command("exec")
def exec_command(
    command: str = typer.Argument(help="Command line to run."),
    shell: str | None = typer.Option(None, "--shell", "-s", help="Shell to run it with."),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory."),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Timeout in seconds."
    ),
    output_filter: str | None = typer.Option(
        None, "--filter", "-f", help="Regex; print only the matching parts."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
) -> None:
    """Run one command in a fresh console and print its output."""
    config = ShellkeeperConfig.load(config_file)
    setup_logging(verbose, config.log_level)
    try:
        exit_code = asyncio.run(
            _exec_once(config, command, shell, cwd, timeout, output_filter)
        )
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    raise typer.Exit(exit_code)


@app.command()
def tools() -> None:
    """Print the tool specifications as JSON."""
    registry = build_registry(ConsoleManager())
    Console().print_json(json.dumps(registry.specs()))


@app.command()
def version() -> None:
    """Show the version."""
    typer.echo(f"shellkeeper v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
