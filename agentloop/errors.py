"""
Exceptions raised by the agent loop and its collaborators.

Only BackendError terminates a query. The other conditions are raised
at the point where they are detected (registry, argument decoding) and
absorbed by the agent into observations fed back to the model.
"""

from typing import Any


class AgentLoopError(Exception):
    """Base class of the package exceptions."""


class BackendError(AgentLoopError):
    """The vendor endpoint returned a failure, a malformed body, or
    could not be reached.

    Attributes:
        payload: the vendor's error payload, if the response had one
        status_code: the HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        payload: Any = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.payload = payload
        self.status_code = status_code


class UnknownTool(AgentLoopError, LookupError):
    """A tool name is absent from the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class DuplicateToolName(AgentLoopError, ValueError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class MalformedToolArguments(AgentLoopError, ValueError):
    """The arguments of a tool call are not valid JSON."""

    def __init__(self, raw_arguments: str) -> None:
        super().__init__(
            f"Tool arguments are not valid JSON: {raw_arguments!r}"
        )
        self.raw_arguments = raw_arguments
