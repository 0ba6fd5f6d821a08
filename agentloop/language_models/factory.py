"""
Selection of the client of a session from the model settings.

The source of the model specification ('Source/model-name') determines
the client, and with it the way the model expresses tool calls. The
client is selected once, when the session starts.

Example:
    ```python
    from agentloop.config.config import LanguageModelSettings
    from agentloop.language_models.factory import create_client

    client = create_client(LanguageModelSettings(model="DeepSeek/deepseek-chat"))
    client.mode     # 'action_line'
    ```
"""

from typing import TYPE_CHECKING, Any

from agentloop.config.config import LanguageModelSettings, ModelSource
from agentloop.utils.logging import LoggerBase

from .base import LLMClient
from .http_clients import (
    ChatCompletionsClient,
    DeepSeekClient,
    LMStudioClient,
    MoonshotClient,
    OpenAIClient,
    PerplexityClient,
)
from .prompts import default_prompt_for

if TYPE_CHECKING:
    from agentloop.tools.registry import ToolRegistry

_HTTP_CLIENTS: dict[str, type[ChatCompletionsClient]] = {
    'OpenAI': OpenAIClient,
    'Moonshot': MoonshotClient,
    'LMStudio': LMStudioClient,
    'DeepSeek': DeepSeekClient,
    'Perplexity': PerplexityClient,
}


def _http_params(settings: LanguageModelSettings) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if settings.temperature is not None:
        params["temperature"] = settings.temperature
    if settings.max_tokens is not None:
        params["max_tokens"] = settings.max_tokens
    params.update(settings.provider_params)
    return params


def create_client(
    settings: LanguageModelSettings,
    system_prompt: str | None = None,
    registry: "ToolRegistry | None" = None,
    *,
    logger: LoggerBase | None = None,
) -> LLMClient:
    """
    Create the client of a new session.

    Args:
        settings: the language model settings
        system_prompt: the system prompt; if None, the default prompt
            for the mode of the client is used
        registry: the tools listed by the default action-line prompt;
            the process-wide registry if None
        logger: the logger of the client

    Returns:
        a client with an empty conversation, seeded with the system
        prompt.

    Raises:
        ValueError: unsupported source
        ImportError: the LangChain integration of the source is not
            installed
    """
    source: ModelSource = settings.get_model_source()
    model_name = settings.get_model_name()

    match source:
        case 'OpenAI' | 'Moonshot' | 'LMStudio' | 'DeepSeek' | 'Perplexity':
            client_class = _HTTP_CLIENTS[source]
            prompt = system_prompt
            if prompt is None and client_class.FIXED_SYSTEM_PROMPT is None:
                prompt = default_prompt_for(client_class.mode, registry)
            return client_class(
                model_name,
                prompt,
                base_url=settings.base_url,
                timeout=settings.timeout,
                params=_http_params(settings),
                logger=logger,
            )
        case 'Anthropic' | 'Gemini' | 'Mistral' | 'Debug':
            from .langchain import LangchainClient, create_model_from_settings

            prompt = (
                system_prompt
                if system_prompt is not None
                else default_prompt_for(LangchainClient.mode, registry)
            )
            return LangchainClient(
                create_model_from_settings(settings),
                prompt,
                model_name=model_name,
                logger=logger,
            )
        case _:
            raise ValueError(f"Unsupported model source: {source}")
