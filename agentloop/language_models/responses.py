"""
Backend responses, one variant per response shape.

A client converts the vendor payload into one of these variants as
soon as it is received. From there on, the agent only deals with the
AgentTurnResult returned by `normalize()`, and the conversation only
records the message returned by `assistant_message()`. Both derive
from the same normalization, computed once, so that ids synthesized
for tool calls are the same in the transcript and in the calls
dispatched by the agent.
"""

from functools import cached_property
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .messages import Message, assistant_message
from .normalize import normalize_action_text, normalize_native
from .results import AgentTurnResult, ToolInvocations


class _BackendResponse(BaseModel):

    @cached_property
    def result(self) -> AgentTurnResult:
        return self._normalize()

    def normalize(self) -> AgentTurnResult:
        """The canonical form of the response."""
        return self.result

    def _normalize(self) -> AgentTurnResult:
        raise NotImplementedError

    def assistant_message(self) -> Message | None:
        """The message recorded in the conversation, None if the
        backend returned no message."""
        raise NotImplementedError


class NativeResponse(_BackendResponse):
    """Response of a backend with structured function calling.

    Attributes:
        message: the assistant message, None if the response had none
        json_fallback: the backend may write tool calls as JSON in
            the content instead of using the structured entries
    """

    kind: Literal['native'] = 'native'
    message: Message | None = None
    json_fallback: bool = False

    def _normalize(self) -> AgentTurnResult:
        return normalize_native(self.message, self.json_fallback)

    def assistant_message(self) -> Message | None:
        if self.message is None:
            return None
        result = self.normalize()
        if isinstance(result, ToolInvocations) and not self.message.tool_calls:
            # calls recovered from the content replace it
            return assistant_message(None, result.calls)
        return self.message


class ActionLineResponse(_BackendResponse):
    """Free-text response following the Thought/Action/PAUSE protocol.

    The recorded message keeps the full text, which the protocol
    expects to see again in the history, and carries the recovered
    call so that the observation can be correlated to it.
    """

    kind: Literal['action_line'] = 'action_line'
    text: str | None = None

    def _normalize(self) -> AgentTurnResult:
        return normalize_action_text(self.text)

    def assistant_message(self) -> Message | None:
        if self.text is None:
            return None
        result = self.normalize()
        if isinstance(result, ToolInvocations):
            return assistant_message(self.text, result.calls)
        return assistant_message(self.text)


RawBackendResponse = Annotated[
    NativeResponse | ActionLineResponse,
    Field(discriminator='kind'),
]
