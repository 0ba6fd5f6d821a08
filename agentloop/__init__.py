# pyright: reportUnusedImport=false
# flake8: noqa

__version__ = "0.1.0"

from .agent import Agent, create_agent
from .errors import (
    AgentLoopError,
    BackendError,
    UnknownTool,
    DuplicateToolName,
    MalformedToolArguments,
)
