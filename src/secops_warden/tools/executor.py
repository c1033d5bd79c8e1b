"""Tool executor: registration, schema export, and execution of engine-callable tools."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ToolOutput:
    """Uniform result returned by the tool adapters."""

    success: bool
    output: str
    status_code: int | None = None

    @classmethod
    def ok(cls, output: str, status_code: int | None = None) -> ToolOutput:
        return cls(success=True, output=output, status_code=status_code)

    @classmethod
    def error(cls, output: str, status_code: int | None = None) -> ToolOutput:
        return cls(success=False, output=output, status_code=status_code)


@dataclass
class ToolDefinition:
    """A callable tool the reasoning engine can invoke."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema
    handler: Callable[..., Coroutine[Any, Any, str | ToolOutput]]
    category: str = "general"

    def to_summary(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description, "category": self.category}


@dataclass
class ToolResult:
    """Outcome of one tool call, as fed back to the model."""

    tool_name: str
    success: bool
    output: str
    duration_ms: float = 0.0


class ToolExecutor:
    """Holds the tools offered to the model and runs them with a time limit."""

    def __init__(self, timeout_seconds: float = 60.0) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._timeout = timeout_seconds

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool. Raises ValueError if name already taken."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def get_schemas(self) -> list[dict]:
        """Return JSON schemas for all tools in Anthropic tool_use format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in self._tools.values()
        ]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Run tool *name* with *arguments*.

        Never raises: unknown tools, timeouts and handler exceptions all come
        back as unsuccessful results the model can read.
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(name, False, f"Unknown tool: {name}")

        start = time.monotonic()
        try:
            output = await asyncio.wait_for(tool.handler(**arguments), timeout=self._timeout)
        except TimeoutError:
            logger.warning("Tool '%s' timed out after %ss", name, self._timeout)
            return ToolResult(
                name, False, f"Tool '{name}' timed out after {self._timeout}s", _since(start)
            )
        except Exception as exc:
            logger.exception("Tool '%s' raised an exception", name)
            return ToolResult(name, False, f"Tool '{name}' failed: {exc}", _since(start))

        if isinstance(output, ToolOutput):
            return ToolResult(name, output.success, output.output, _since(start))
        return ToolResult(name, True, output, _since(start))


def _since(start: float) -> float:
    return (time.monotonic() - start) * 1000
