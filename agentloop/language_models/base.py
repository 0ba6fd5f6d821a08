"""
Abstract base class for language model clients.

A client wraps one provider's request/response shape. It owns the
conversation of its session: `send` appends the user message, makes
exactly one round trip, and appends the assistant message, so that
the history is always complete for the next request.

Subclasses implement `_execute`, which sends the conversation and
converts the vendor payload into a RawBackendResponse variant.
Failures of the vendor endpoint are raised as BackendError.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal

from agentloop.utils.logging import LoggerBase, get_logger

from .messages import (
    Conversation,
    ToolCallRequest,
    tool_message,
    user_message,
)
from .responses import RawBackendResponse

# How the backend expresses tool calls
ToolCallMode = Literal['native', 'json_fallback', 'action_line']


class LLMClient(ABC):
    """Abstract base class for the clients of chat models.

    Attributes:
        model: the model name, as known to the provider
        mode: how tool calls are expressed by the backend
        conversation: the transcript of the session
    """

    mode: ToolCallMode = 'native'

    def __init__(
        self,
        model: str,
        system_prompt: str | None = None,
        *,
        logger: LoggerBase | None = None,
    ) -> None:
        self.model = model
        self.system_prompt = system_prompt
        self.conversation = Conversation(system_prompt)
        self.logger = logger or get_logger(__name__)

    @property
    def name(self) -> str:
        return f"{type(self).__name__}:{self.model}"

    @property
    def uses_tool_schemas(self) -> bool:
        """Whether the tool schemas are sent with the requests."""
        return self.mode != 'action_line'

    def send(
        self,
        prompt: str | None,
        tools: list[dict[str, Any]] | None = None,
    ) -> RawBackendResponse:
        """
        Send the conversation, with prompt appended as a user
        message unless None, and record the response.

        Args:
            prompt: the new user message, or None when only tool
                observations are being fed back
            tools: function descriptors of the available tools

        Returns:
            the response of the backend

        Raises:
            BackendError: the round trip failed
        """
        if prompt is not None:
            self.conversation.append(user_message(prompt))
        response = self._execute(tools if self.uses_tool_schemas else None)
        message = response.assistant_message()
        if message is not None:
            self.conversation.append(message)
        return response

    def add_observation(
        self, call: ToolCallRequest, observation: str
    ) -> None:
        """Record the result of a tool call requested by the model."""
        self.conversation.append(tool_message(call.id, observation))

    @abstractmethod
    def _execute(
        self, tools: list[dict[str, Any]] | None
    ) -> RawBackendResponse:
        """
        Perform one request with the current conversation.

        Raises:
            BackendError: non-success status, error payload, malformed
                body, or network failure
        """
        pass
