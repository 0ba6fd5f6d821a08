"""
Clients of vendors exposing an OpenAI-compatible chat completions
endpoint, over `requests`.

Each client differs from the others only in its endpoint, credentials,
default model, fixed request parameters, and in the way the model
expresses tool calls (its mode):

    - native: the response message carries structured `tool_calls`
      (OpenAI)
    - json_fallback: as native, but the model may write the tool-call
      JSON in the content instead (Moonshot, LMStudio)
    - action_line: no tool support; the model follows the
      Thought/Action/PAUSE protocol in plain text (DeepSeek,
      Perplexity)

Example:
    ```python
    from agentloop.language_models.http_clients import OpenAIClient

    client = OpenAIClient("gpt-4o", "You are a helpful assistant.")
    response = client.send("Why is the sky blue?")
    response.normalize()    # FinalAnswer(text=...)
    ```
"""

import os
from typing import Any

import requests
from pydantic import ValidationError

from agentloop.errors import BackendError
from agentloop.utils.logging import LoggerBase

from .base import LLMClient, ToolCallMode
from .messages import Message, ToolCallRequest, new_call_id
from .normalize import encode_arguments
from .responses import (
    ActionLineResponse,
    NativeResponse,
    RawBackendResponse,
)

DEFAULT_TIMEOUT = 60.0


class ChatCompletionsClient(LLMClient):
    """
    Client of an OpenAI-compatible chat completions endpoint.

    Subclasses set the class attributes below; the constructor
    arguments override them.

    Attributes:
        API_URL: the chat completions endpoint
        DEFAULT_MODEL: model used when none is given
        API_KEY_ENV: environment variable holding the API key
        DEFAULT_PARAMS: parameters added to every request
        FIXED_SYSTEM_PROMPT: replaces any system prompt, if set
    """

    API_URL: str = "https://api.openai.com/v1/chat/completions"
    DEFAULT_MODEL: str = "gpt-4"
    API_KEY_ENV: str | None = "OPENAI_API_KEY"
    DEFAULT_PARAMS: dict[str, Any] = {}
    FIXED_SYSTEM_PROMPT: str | None = None

    def __init__(
        self,
        model: str | None = None,
        system_prompt: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        params: dict[str, Any] | None = None,
        session: requests.Session | None = None,
        logger: LoggerBase | None = None,
    ) -> None:
        super().__init__(
            model or self.DEFAULT_MODEL, system_prompt, logger=logger
        )
        self.api_url = (
            base_url.rstrip('/') + "/chat/completions"
            if base_url
            else self.API_URL
        )
        self.timeout = timeout or DEFAULT_TIMEOUT
        self.params: dict[str, Any] = {**self.DEFAULT_PARAMS}
        self.params.update(params or {})
        self.api_key = api_key or self._read_api_key()
        self.session = session or requests.Session()

    def _read_api_key(self) -> str | None:
        if self.API_KEY_ENV is None:
            return None
        key = os.environ.get(self.API_KEY_ENV)
        if not key:
            self.logger.warning(
                f"{type(self).__name__}: {self.API_KEY_ENV} is not set"
            )
        return key

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(
        self, tools: list[dict[str, Any]] | None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                self._wire_message(m) for m in self.conversation
            ],
        }
        payload.update(self.params)
        if tools:
            payload["tools"] = tools
        return payload

    # wire serialization-------------------------------------------
    def _wire_message(self, message: Message) -> dict[str, Any]:
        if self.mode == 'action_line':
            match message.role:
                case 'tool':
                    return {
                        "role": "user",
                        "content": f"Observation: {message.content}",
                    }
                case _:
                    return {
                        "role": message.role,
                        "content": message.content or "",
                    }

        wire: dict[str, Any] = {
            "role": message.role,
            "content": message.content,
        }
        if message.tool_calls:
            wire["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.tool_name,
                        "arguments": call.raw_arguments,
                    },
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id is not None:
            wire["tool_call_id"] = message.tool_call_id
        return wire

    # round trip--------------------------------------------------
    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        label = type(self).__name__
        try:
            response = self.session.post(
                self.api_url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f"{label} request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(
                f"{label} returned invalid JSON: {e}",
                payload=response.text,
                status_code=response.status_code,
            ) from e

        if isinstance(body, dict) and body.get("error"):
            raise BackendError(
                f"{label} API Error: {body['error']}",
                payload=body["error"],
                status_code=response.status_code,
            )
        if not response.ok:
            raise BackendError(
                f"{label} returned HTTP {response.status_code}",
                payload=body,
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            raise BackendError(
                f"{label} returned an unexpected body",
                payload=body,
                status_code=response.status_code,
            )
        return body

    def _execute(
        self, tools: list[dict[str, Any]] | None
    ) -> RawBackendResponse:
        body = self._post(self._payload(tools))
        raw_message = _first_message(body)
        if raw_message is None:
            if self.mode == 'action_line':
                return ActionLineResponse(text=None)
            return NativeResponse(message=None)

        if self.mode == 'action_line':
            text = raw_message.get("content")
            return ActionLineResponse(
                text=text if isinstance(text, str) else None
            )
        try:
            message = parse_message(raw_message)
        except ValidationError as e:
            raise BackendError(
                f"{type(self).__name__} returned a malformed message: {e}",
                payload=raw_message,
            ) from e
        return NativeResponse(
            message=message,
            json_fallback=self.mode == 'json_fallback',
        )


def _first_message(body: dict[str, Any]) -> dict[str, Any] | None:
    """choices[0].message, None if absent."""
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    return message if isinstance(message, dict) else None


def parse_message(raw: dict[str, Any]) -> Message:
    """An assistant message in the chat completions format. Tool calls
    without an id are given a synthesized one; entries without a
    function name are skipped."""
    calls: list[ToolCallRequest] = []
    entries = raw.get("tool_calls")
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        function = entry.get("function")
        if not isinstance(function, dict):
            continue
        name = function.get("name")
        if not isinstance(name, str) or not name:
            continue
        call_id = entry.get("id")
        calls.append(
            ToolCallRequest(
                id=str(call_id) if call_id else new_call_id(),
                tool_name=name,
                raw_arguments=encode_arguments(
                    function.get("arguments") or ""
                ),
            )
        )
    content = raw.get("content")
    return Message(
        role='assistant',
        content=content if isinstance(content, str) else None,
        tool_calls=calls or None,
    )


class OpenAIClient(ChatCompletionsClient):
    API_URL = "https://api.openai.com/v1/chat/completions"
    DEFAULT_MODEL = "gpt-4"
    API_KEY_ENV = "OPENAI_API_KEY"
    mode: ToolCallMode = 'native'

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        # reasoning models reject max_tokens
        if _is_reasoning_model(self.model):
            if "max_tokens" in self.params:
                self.params["max_completion_tokens"] = self.params.pop(
                    "max_tokens"
                )
            self.params.setdefault("max_completion_tokens", 4000)
        else:
            self.params.setdefault("max_tokens", 4000)


def _is_reasoning_model(model: str) -> bool:
    return len(model) > 1 and model[0] == 'o' and model[1].isdigit()


class MoonshotClient(ChatCompletionsClient):
    API_URL = "https://api.moonshot.ai/v1/chat/completions"
    DEFAULT_MODEL = "moonshot-v1-8k"
    API_KEY_ENV = "MOONSHOT_API_KEY"
    DEFAULT_PARAMS = {"temperature": 0.3}
    mode: ToolCallMode = 'json_fallback'


class LMStudioClient(ChatCompletionsClient):
    """Client of a local LM Studio server. No API key is needed."""

    BASE_URL = "http://localhost:1234/v1"
    API_URL = f"{BASE_URL}/chat/completions"
    DEFAULT_MODEL = "local-model"
    API_KEY_ENV = None
    DEFAULT_PARAMS = {"max_tokens": 4000, "temperature": 0.7}
    mode: ToolCallMode = 'json_fallback'

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("api_key", "lm-studio")
        super().__init__(*args, **kwargs)

    def list_models(self) -> list[str]:
        """The ids of the models loaded in the server.

        Raises:
            BackendError: the server cannot be reached or answers
                with an error
        """
        url = self.api_url.removesuffix("/chat/completions") + "/models"
        try:
            response = self.session.get(
                url, headers=self._headers(), timeout=self.timeout
            )
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise BackendError(
                f"Error connecting to LM Studio at {url}: {e}"
            ) from e
        if not isinstance(body, dict) or body.get("error"):
            raise BackendError(
                f"LM Studio API Error: {body}",
                payload=body,
                status_code=response.status_code,
            )
        return [
            str(model["id"])
            for model in body.get("data") or []
            if isinstance(model, dict) and "id" in model
        ]


class DeepSeekClient(ChatCompletionsClient):
    API_URL = "https://api.deepseek.com/chat/completions"
    DEFAULT_MODEL = "deepseek-chat"
    API_KEY_ENV = "DEEPSEEK_API_KEY"
    DEFAULT_PARAMS = {"stream": False}
    mode: ToolCallMode = 'action_line'


class PerplexityClient(ChatCompletionsClient):
    """Perplexity answers from web search; its system prompt is
    fixed."""

    API_URL = "https://api.perplexity.ai/chat/completions"
    DEFAULT_MODEL = "llama-3.1-sonar-huge-128k-online"
    API_KEY_ENV = "PERPLEXITY_API_KEY"
    FIXED_SYSTEM_PROMPT = "Be precise and concise."
    DEFAULT_PARAMS = {
        "temperature": 0.2,
        "top_p": 0.9,
        "search_domain_filter": ["perplexity.ai"],
        "return_images": False,
        "return_related_questions": False,
        "search_recency_filter": "month",
        "top_k": 0,
        "stream": False,
        "presence_penalty": 0,
        "frequency_penalty": 1,
    }
    mode: ToolCallMode = 'action_line'

    def __init__(
        self,
        model: str | None = None,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, self.FIXED_SYSTEM_PROMPT, **kwargs)
        if system_prompt and system_prompt != self.FIXED_SYSTEM_PROMPT:
            self.logger.warning(
                "PerplexityClient: custom system prompt replaced by "
                + repr(self.FIXED_SYSTEM_PROMPT)
            )

