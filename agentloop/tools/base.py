"""
The tool contract.

A tool takes one string and returns one string. Failures the tool can
anticipate (missing parameters, malformed JSON, I/O errors, searches
without results, unreachable services) are reported in the returned
string, so that the model can read them and try something else. Only
unexpected faults are raised.

Tools that need structured input document the JSON shape in their
description; the registry advertises every tool to function-calling
backends with a single string parameter, 'input'.

Example:
    ```python
    from agentloop.tools.base import Tool

    class EchoTool(Tool):
        name = "echo"
        description = "Returns its input unchanged."

        def call(self, input: str) -> str:
            return input
    ```
"""

import json
from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """Abstract base for the tools available to the agent."""

    name: str
    description: str = "No description provided."

    @abstractmethod
    def call(self, input: str) -> str:
        """Run the tool on input and return the observation."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def parse_json_input(
    input: str, example: str, required: tuple[str, ...] = ()
) -> dict[str, Any] | str:
    """
    Decode the JSON object passed to a structured tool.

    Args:
        input: the tool input
        example: an example of valid input, quoted in error messages
        required: fields that must be present

    Returns:
        the decoded object, or a string describing the error
    """
    try:
        params = json.loads(input)
    except (json.JSONDecodeError, TypeError) as e:
        return (
            f"Error parsing input: {e}. Input must be JSON. "
            f"Example: {example}"
        )
    if not isinstance(params, dict):
        return f"Error: input must be a JSON object. Example: {example}"
    for field in required:
        if params.get(field) is None:
            return (
                f"Error: {field} parameter is required. "
                f"Input must be JSON like: {example}"
            )
    return params
