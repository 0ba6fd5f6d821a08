"""
The canonical outcome of one model turn. Every backend response is
reduced to one of these before the agent acts on it.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .messages import ToolCallRequest


class FinalAnswer(BaseModel):
    """The model answered; the loop ends. text is None when the
    backend returned no usable content."""

    kind: Literal['final_answer'] = 'final_answer'
    text: str | None = None

    model_config = ConfigDict(frozen=True)


class ToolInvocations(BaseModel):
    """The model requested one or more tool calls, in order."""

    kind: Literal['tool_invocations'] = 'tool_invocations'
    calls: list[ToolCallRequest] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


AgentTurnResult = Annotated[
    FinalAnswer | ToolInvocations, Field(discriminator='kind')
]
