"""
Recovery of tool-call intent from model output.

Three surfaces are reduced to an AgentTurnResult:

    - native: the response carries structured tool-call entries
    - JSON fallback: the model was told to write the tool-call JSON
      as plain content, e.g.

        {"name": "calculate", "arguments": {"input": "2+2"}}

      possibly several objects in one response, possibly surrounded
      by prose
    - action line: the Thought/Action/PAUSE text protocol, e.g.

        Thought: I should check
        Action: calculate: 4 * 7
        PAUSE

Example:
    ```python
    from agentloop.language_models.normalize import normalize_json_text

    result = normalize_json_text(
        'foo {"name": "calculate", "arguments": {"input": "2+2"}} bar'
    )
    result.calls[0].tool_name  # 'calculate'
    ```
"""

import json
import re
from typing import Any

from .messages import Message, ToolCallRequest, new_call_id
from .results import AgentTurnResult, FinalAnswer, ToolInvocations

ACTION_REGEX = re.compile(r"^Action: (\w+): (.*)$", re.MULTILINE)

_decoder = json.JSONDecoder()


def encode_arguments(arguments: Any) -> str:
    """Tool-call arguments as a string: strings are kept as they
    are, everything else is JSON-encoded."""
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, ensure_ascii=False)


def _is_tool_call(obj: Any) -> bool:
    """A decoded JSON object with both a 'name' and an 'arguments'
    field."""
    if not isinstance(obj, dict):
        return False
    name = obj.get("name")
    if not isinstance(name, str) or not name:
        return False
    return obj.get("arguments") is not None


def _as_tool_call(obj: Any) -> ToolCallRequest | None:
    if not _is_tool_call(obj):
        return None
    name: str = obj["name"]
    call_id = obj.get("id")
    return ToolCallRequest(
        id=call_id if isinstance(call_id, str) and call_id else new_call_id(),
        tool_name=name,
        raw_arguments=encode_arguments(obj["arguments"]),
    )


def scan_json_objects(text: str) -> list[dict[str, Any]]:
    """
    Decode the JSON objects embedded in text, left to right.

    Decoding is attempted at each opening brace; the decoder tracks
    strings and nesting, so arguments containing braces are handled.
    A tool-call object is consumed whole. Any other object is searched
    for nested objects; text that does not decode is skipped.
    """
    objects: list[dict[str, Any]] = []
    pos = text.find('{')
    while pos != -1:
        try:
            obj, end = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            pos = text.find('{', pos + 1)
            continue
        if _is_tool_call(obj):
            objects.append(obj)
            pos = text.find('{', end)
        else:
            pos = text.find('{', pos + 1)
    return objects


def extract_json_tool_calls(text: str) -> list[ToolCallRequest]:
    """
    Tool calls written as JSON in free text.

    The whole trimmed text is first decoded as a single object; only
    if that fails is the text scanned for embedded objects. Text that
    decodes to something other than a tool call yields no calls.
    """
    content = text.strip()
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        calls: list[ToolCallRequest] = []
        for obj in scan_json_objects(content):
            call = _as_tool_call(obj)
            if call is not None:
                calls.append(call)
        return calls

    call = _as_tool_call(parsed)
    return [call] if call is not None else []


def parse_action_line(text: str) -> ToolCallRequest | None:
    """The first 'Action: <tool>: <argument>' line, or None. Further
    action lines in the same text are ignored."""
    match = ACTION_REGEX.search(text)
    if match is None:
        return None
    return ToolCallRequest(
        id=new_call_id(),
        tool_name=match.group(1),
        raw_arguments=match.group(2).strip(),
    )


def normalize_native(
    message: Message | None, json_fallback: bool = False
) -> AgentTurnResult:
    """
    Normalize a structured assistant message.

    Args:
        message: the assistant message, None if the backend returned
            none
        json_fallback: look for tool-call JSON in the content when
            the message has no structured tool calls
    """
    if message is None:
        return FinalAnswer(text=None)
    if message.tool_calls:
        return ToolInvocations(calls=list(message.tool_calls))
    if json_fallback and message.content:
        return normalize_json_text(message.content)
    return FinalAnswer(text=message.content)


def normalize_json_text(text: str | None) -> AgentTurnResult:
    if not text:
        return FinalAnswer(text=text)
    calls = extract_json_tool_calls(text)
    if calls:
        return ToolInvocations(calls=calls)
    return FinalAnswer(text=text)


def normalize_action_text(text: str | None) -> AgentTurnResult:
    if not text:
        return FinalAnswer(text=text)
    call = parse_action_line(text)
    if call is None:
        return FinalAnswer(text=text)
    return ToolInvocations(calls=[call])
