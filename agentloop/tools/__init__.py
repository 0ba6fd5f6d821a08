# pyright: reportUnusedImport=false
# flake8: noqa

from .base import Tool, parse_json_input
from .registry import (
    ToolRegistry,
    DEFAULT_TOOLS,
    discover_tools,
    get_registry,
    tool_schema,
    tool_name_from_schema,
)
