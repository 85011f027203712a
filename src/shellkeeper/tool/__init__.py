"""Tool system — base classes, registry, console tools and output truncation."""

from shellkeeper.tool.base import BaseTool, ToolResult
from shellkeeper.tool.console import ConsoleTool, create_console_tools
from shellkeeper.tool.registry import ToolRegistry
from shellkeeper.tool.truncation import truncate_output

__all__ = [
    "BaseTool",
    "ConsoleTool",
    "ToolResult",
    "ToolRegistry",
    "create_console_tools",
    "truncate_output",
]
