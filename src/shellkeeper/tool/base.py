"""Tool plumbing: parameter validation, error rendering and output limits."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from shellkeeper.tool.truncation import truncate_output

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the caller, flagged when it describes a failure."""

    text: str
    is_error: bool = False
    summary: str = ""  # One-line note for debug logs

    @classmethod
    def ok(cls, text: str, summary: str = "") -> ToolResult:
        return cls(text=text, summary=summary)

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(text=text, is_error=True)


class BaseTool(ABC, Generic[P]):
    """A named operation with a Pydantic parameter model.

    Subclasses set ``name``, ``description`` and ``params`` and implement
    ``execute``. Exceptions listed in ``handled`` are rendered as
    ``"<failure>: <message>"`` error results; anything else propagates.

    Usage:
        class PingParams(BaseModel):
            console: str

        class PingTool(BaseTool[PingParams]):
            name = "ping"
            description = "Check that a console answers"
            params = PingParams
            handled = (ConsoleError,)
            failure = "Failed to ping console"

            async def execute(self, params: PingParams) -> ToolResult:
                return ToolResult.ok("pong")
    """

    name: ClassVar[str]
    description: ClassVar[str]
    params: ClassVar[type[BaseModel]]
    handled: ClassVar[tuple[type[Exception], ...]] = ()
    failure: ClassVar[str] = ""

    async def run(self, arguments: Mapping[str, Any]) -> ToolResult:
        """Validate ``arguments``, execute, and bound the output size."""
        try:
            params = self.params.model_validate(arguments)
        except ValidationError as e:
            return ToolResult.error(f"Invalid parameters for {self.name}: {e}")

        try:
            result = await self.execute(params)  # type: ignore[arg-type]
        except self.handled as e:
            return ToolResult.error(f"{self.failure or self.name + ' failed'}: {e}")

        if result.summary:
            logger.debug("Tool %s: %s", self.name, result.summary)
        return replace(result, text=truncate_output(result.text))

    @abstractmethod
    async def execute(self, params: P) -> ToolResult: ...

    @property
    def spec(self) -> dict[str, Any]:
        """OpenAI-style function spec built from the parameter model."""
        schema = self.params.model_json_schema()
        schema.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }
