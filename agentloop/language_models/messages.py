"""
Generic data structures for the exchange with language models.

A conversation is an append-only sequence of messages. Tool-call
requests travel on assistant messages and are answered by tool
messages carrying the id of the request.
"""

import itertools
import uuid
from collections.abc import Iterator
from typing import Literal, overload

from pydantic import BaseModel, ConfigDict, Field

Role = Literal['system', 'user', 'assistant', 'tool']

# ids synthesized for tool calls when the provider gives none
_call_counter = itertools.count(1)
_call_prefix = uuid.uuid4().hex[:8]


def new_call_id() -> str:
    """A tool-call id unique within the process."""
    return f"call_{_call_prefix}_{next(_call_counter)}"


class ToolCallRequest(BaseModel):
    """A tool call requested by the model."""

    id: str
    tool_name: str
    raw_arguments: str = Field(
        default="",
        description="Arguments as sent by the model, usually JSON",
    )

    model_config = ConfigDict(frozen=True)


class Message(BaseModel):
    """Represents a message in a chat conversation."""

    role: Role
    content: str | None = None
    tool_calls: list[ToolCallRequest] | None = None
    tool_call_id: str | None = Field(
        default=None,
        description="ID of the tool call this message responds to",
    )

    model_config = ConfigDict(frozen=True)


def system_message(content: str) -> Message:
    return Message(role='system', content=content)


def user_message(content: str) -> Message:
    return Message(role='user', content=content)


def assistant_message(
    content: str | None,
    tool_calls: list[ToolCallRequest] | None = None,
) -> Message:
    return Message(
        role='assistant',
        content=content,
        tool_calls=tool_calls or None,
    )


def tool_message(tool_call_id: str, content: str) -> Message:
    return Message(
        role='tool', content=content, tool_call_id=tool_call_id
    )


class Conversation:
    """
    The ordered transcript of a session. Messages may only be
    appended: the transcript order is the order of the exchange.

    A tool message must answer a tool call requested by a previous
    assistant message; appending one that does not raises ValueError.
    """

    def __init__(self, system_prompt: str | None = None) -> None:
        self._messages: list[Message] = []
        self._requested_ids: set[str] = set()
        if system_prompt:
            self.append(system_message(system_prompt))

    def append(self, message: Message) -> None:
        if message.role == 'tool':
            if message.tool_call_id not in self._requested_ids:
                raise ValueError(
                    "Tool message does not answer a requested tool "
                    f"call: {message.tool_call_id!r}"
                )
        for call in message.tool_calls or []:
            self._requested_ids.add(call.id)
        self._messages.append(message)

    @property
    def messages(self) -> list[Message]:
        """A copy of the messages, in transcript order."""
        return list(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def count(self, role: Role) -> int:
        """The number of messages with the given role."""
        return sum(1 for m in self._messages if m.role == role)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    @overload
    def __getitem__(self, index: int) -> Message: ...

    @overload
    def __getitem__(self, index: slice) -> list[Message]: ...

    def __getitem__(self, index: int | slice) -> Message | list[Message]:
        return self._messages[index]
