"""
tools.registry - the catalog of the tools available to the agent.

The registry is populated once, at startup, from an explicit list of
tool constructors (`DEFAULT_TOOLS`), and is read-only afterwards. The
process-wide instance is obtained with `get_registry()`; independent
registries may be built with `discover_tools()`, e.g. for tests.

Example:
    ```python
    from agentloop.tools.registry import get_registry

    registry = get_registry()
    calculator = registry.fetch("calculate")
    calculator.call("4 * 7")   # '28'
    registry.schemas()         # function descriptors for the model
    ```
"""

import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from agentloop.errors import DuplicateToolName, UnknownTool
from agentloop.utils.logging import LoggerBase, get_logger

from .base import Tool
from .calculate import CalculateTool
from .files import (
    DirectoryListTool,
    FileEditTool,
    FileReadTool,
    FileWriteTool,
)
from .search import GoogleSearchTool, SimonBlogSearchTool, WikipediaTool

logger: LoggerBase = get_logger(__name__)

# Tools discovered at startup, in registration order
DEFAULT_TOOLS: tuple[Callable[[], Tool], ...] = (
    CalculateTool,
    WikipediaTool,
    GoogleSearchTool,
    SimonBlogSearchTool,
    FileReadTool,
    FileWriteTool,
    FileEditTool,
    DirectoryListTool,
)


class ToolRegistry:
    """Tools addressable by name."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Add a tool. Raises DuplicateToolName if a tool with the
        same name is already registered."""
        if tool.name in self._tools:
            raise DuplicateToolName(tool.name)
        self._tools[tool.name] = tool

    def fetch(self, name: str) -> Tool:
        """The tool called name. Raises UnknownTool if absent."""
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def tools(self) -> list[Tool]:
        return list(self._tools.values())

    def schemas(self) -> list[dict[str, Any]]:
        """Function descriptors advertising the tools to backends
        with function calling, one per tool, in registration order."""
        return [tool_schema(tool) for tool in self._tools.values()]

    def describe(self) -> str:
        """One 'name: description' line per tool."""
        return "\n".join(
            f"{tool.name}: {tool.description}"
            for tool in self._tools.values()
        )

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def tool_schema(tool: Tool) -> dict[str, Any]:
    """The function descriptor of a tool. All tools take a single
    string, 'input'; structured tools describe the JSON it must
    contain."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": {
                "type": "object",
                "properties": {
                    "input": {
                        "type": "string",
                        "description": "Input for the tool",
                    }
                },
                "required": ["input"],
                "additionalProperties": False,
            },
            "strict": True,
        },
    }


def tool_name_from_schema(schema: dict[str, Any]) -> str:
    """The tool name advertised by a function descriptor."""
    return schema["function"]["name"]


def discover_tools(
    constructors: Sequence[Callable[[], Tool]] = DEFAULT_TOOLS,
) -> ToolRegistry:
    """
    Instantiate each constructor once and register the tools.

    Raises:
        DuplicateToolName: two constructors produce the same name
    """
    registry = ToolRegistry()
    for constructor in constructors:
        registry.register(constructor())
    return registry


_registry: ToolRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ToolRegistry:
    """The process-wide registry, populated on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = discover_tools()
            logger.info(
                f"Loaded {len(_registry)} tools: "
                + ", ".join(_registry.names())
            )
        return _registry
