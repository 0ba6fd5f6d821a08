"""
Client wrapping a LangChain chat model.

The conversation is converted to LangChain messages at each round
trip; tool schemas are bound to the model with `bind_tools`, and the
tool calls of the reply are read from `AIMessage.tool_calls`.
"""

import json
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from agentloop.errors import BackendError
from agentloop.utils.logging import LoggerBase

from ..base import LLMClient, ToolCallMode
from ..messages import Message, ToolCallRequest, new_call_id
from ..responses import NativeResponse, RawBackendResponse


def _tool_call_args(raw_arguments: str) -> dict[str, Any]:
    # LangChain requires a dict; non-object arguments are wrapped
    try:
        args = json.loads(raw_arguments) if raw_arguments else {}
    except json.JSONDecodeError:
        return {"input": raw_arguments}
    return args if isinstance(args, dict) else {"input": raw_arguments}


def to_langchain_messages(messages: list[Message]) -> list[BaseMessage]:
    """Convert generic messages to LangChain messages."""
    lc_messages: list[BaseMessage] = []
    for msg in messages:
        match msg.role:
            case 'system':
                lc_messages.append(SystemMessage(content=msg.content or ""))
            case 'user':
                lc_messages.append(HumanMessage(content=msg.content or ""))
            case 'assistant':
                lc_messages.append(
                    AIMessage(
                        content=msg.content or "",
                        tool_calls=[
                            {
                                "name": call.tool_name,
                                "args": _tool_call_args(call.raw_arguments),
                                "id": call.id,
                            }
                            for call in msg.tool_calls or []
                        ],
                    )
                )
            case 'tool':
                lc_messages.append(
                    ToolMessage(
                        content=msg.content or "",
                        tool_call_id=msg.tool_call_id or "",
                    )
                )
    return lc_messages


def _text_content(content: Any) -> str | None:
    """Message content as text. Some providers return a list of
    content blocks."""
    if isinstance(content, str):
        return content or None
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts) or None
    return None


def from_langchain_message(response: BaseMessage) -> Message:
    """Convert a LangChain reply to a generic assistant message."""
    calls: list[ToolCallRequest] = []
    for call in getattr(response, "tool_calls", None) or []:
        calls.append(
            ToolCallRequest(
                id=call.get("id") or new_call_id(),
                tool_name=call["name"],
                raw_arguments=json.dumps(
                    call.get("args") or {}, ensure_ascii=False
                ),
            )
        )
    return Message(
        role='assistant',
        content=_text_content(response.content),
        tool_calls=calls or None,
    )


class LangchainClient(LLMClient):
    """Client of a LangChain chat model, with native tool calling."""

    mode: ToolCallMode = 'native'

    def __init__(
        self,
        model: BaseChatModel,
        system_prompt: str | None = None,
        *,
        model_name: str | None = None,
        logger: LoggerBase | None = None,
    ) -> None:
        super().__init__(
            model_name or type(model).__name__,
            system_prompt,
            logger=logger,
        )
        self.chat_model = model

    def _bound_model(self, tools: list[dict[str, Any]] | None) -> Any:
        if not tools:
            return self.chat_model
        try:
            return self.chat_model.bind_tools(tools)
        except NotImplementedError:
            self.logger.warning(
                f"{self.name}: model does not support tool calling"
            )
            return self.chat_model

    def _execute(
        self, tools: list[dict[str, Any]] | None
    ) -> RawBackendResponse:
        model = self._bound_model(tools)
        messages = to_langchain_messages(self.conversation.messages)
        try:
            response = model.invoke(messages)
        except Exception as e:
            raise BackendError(f"{self.name} call failed: {e}") from e
        if not isinstance(response, BaseMessage):
            return NativeResponse(message=None)
        return NativeResponse(message=from_langchain_message(response))
