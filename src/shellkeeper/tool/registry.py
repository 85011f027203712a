"""Tool registry: look up tools by name and dispatch calls to them."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from shellkeeper.tool.base import BaseTool, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-indexed collection of tools. Names are unique."""

    def __init__(self, tools: Iterable[BaseTool] = ()) -> None:
        self._tools: dict[str, BaseTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def specs(self, only: Iterable[str] | None = None) -> list[dict[str, Any]]:
        """Function specs for every tool, or for the tools named in ``only``."""
        if only is None:
            return [tool.spec for tool in self._tools.values()]
        wanted = set(only)
        return [tool.spec for name, tool in self._tools.items() if name in wanted]

    async def dispatch(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.error(
                f"Unknown tool: {name}. Available tools: {', '.join(self._tools)}"
            )
        try:
            return await tool.run(arguments or {})
        except Exception as e:
            logger.exception("Tool %s raised", name)
            return ToolResult.error(f"Error executing {name}: {e}")

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
