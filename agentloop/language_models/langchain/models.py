"""
Creation of LangChain chat models for the sources that are not served
by the HTTP clients of agentloop.language_models.http_clients.

The model objects are stored in the repository `langchain_models`,
keyed by the (frozen, hashable) LanguageModelSettings object that
specifies them, so that sessions using the same settings share the
model object. The model objects hold no conversation state.

Examples:

```python
from agentloop.language_models.langchain.models import (
    create_model_from_spec,
    create_model_from_settings,
    langchain_models,
)
from agentloop.config.config import LanguageModelSettings

settings = LanguageModelSettings(
    model="Anthropic/claude-sonnet-4-5",
    temperature=0.7,
)
model = langchain_models[settings]
model = create_model_from_settings(settings)   # same object

model = create_model_from_spec(model="Debug/echo", provider_params={
    'message': "Answer: 42"
})
```

Behaviour:
    Raises exception from LangChain and from itself. Sources served
    by the HTTP clients (OpenAI, Moonshot, LMStudio, DeepSeek,
    Perplexity) raise ValueError here.

Note:
    Support for new model sources should be added here by extending
    the match ... case statement in _create_model_instance.
"""

import itertools
from collections.abc import Iterator
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel

from agentloop.config.config import (
    LanguageModelSettings,
    ModelSource,
    ParamPrimitive,
)

from ..lazy_dict import LazyLoadingDict


def _debug_messages(message: str | None) -> Iterator[str]:
    """The replies of the Debug model: the given message over and
    over, or 'Message 1', 'Message 2', ..."""
    if message is not None:
        return itertools.cycle([message])
    return (f"Message {n}" for n in itertools.count(1))


def _create_model_instance(
    model: LanguageModelSettings,
) -> BaseChatModel:
    """
    Factory function to create LangChain models while checking
    permissible sources.
    """
    model_source: ModelSource = model.get_model_source()
    model_name: str = model.get_model_name()
    match model_source:
        case "Anthropic":
            try:
                from langchain_anthropic.chat_models import (
                    ChatAnthropic,
                )
            except ImportError as e:
                raise ImportError(
                    "Anthropic models require the "
                    "'langchain-anthropic' package. "
                    "Install it with: pip install langchain-anthropic"
                ) from e

            kwargs: dict[str, Any] = {
                "model_name": model_name,
                "temperature": model.temperature,
                "max_tokens_to_sample": model.max_tokens or 1024,
                "timeout": model.timeout,
                "max_retries": model.max_retries,
                "stop": None,
            }
            kwargs.update(model.provider_params)
            return ChatAnthropic(**kwargs)

        case "Gemini":
            try:
                from langchain_google_genai import (
                    ChatGoogleGenerativeAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Gemini models require the "
                    "'langchain-google-genai' package. "
                    "Install it with: pip install "
                    "langchain-google-genai"
                ) from e

            kwargs = {
                "model": model_name,
                "temperature": model.temperature,
            }
            if model.max_tokens is not None:
                kwargs["max_output_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["request_timeout"] = model.timeout
            kwargs.update(model.provider_params)
            return ChatGoogleGenerativeAI(**kwargs)

        case "Mistral":
            try:
                from langchain_mistralai.chat_models import (
                    ChatMistralAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Mistral models require the 'langchain-mistralai'"
                    " package. Install it with: pip install "
                    "langchain-mistralai"
                ) from e

            kwargs = {
                "model_name": model_name,
                "temperature": model.temperature,
                "max_retries": model.max_retries,
            }
            if model.max_tokens is not None:
                kwargs["max_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["timeout"] = int(model.timeout)
            kwargs.update(model.provider_params)
            return ChatMistralAI(**kwargs)

        case "Debug":
            from langchain_core.language_models.fake_chat_models import (
                GenericFakeChatModel,
            )

            message = model.provider_params.get("message")
            return GenericFakeChatModel(
                name=f"Debug {model_name}",
                messages=_debug_messages(
                    None if message is None else str(message)
                ),
            )

        case _:
            raise ValueError(
                f"{model_source} is not a LangChain source. Use "
                "agentloop.language_models.factory.create_client."
            )


# Public interface----------------------------------------------
langchain_models: LazyLoadingDict[LanguageModelSettings, BaseChatModel] = (
    LazyLoadingDict(_create_model_instance)
)


def create_model_from_spec(
    model: str,
    *,
    temperature: float | None = None,
    max_tokens: int | None = None,
    max_retries: int = 2,
    timeout: float | None = None,
    provider_params: dict[str, ParamPrimitive] | None = None,
) -> BaseChatModel:
    """
    Create LangChain model from specifications.

    Args:
        model: the model in the form source/model, such as
            'Anthropic/claude-sonnet-4-5'

    Returns:
        a LangChain model object.

    Raises ValueError, TypeError, ValidationError
    """
    spec = LanguageModelSettings(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=max_retries,
        timeout=timeout,
        provider_params=provider_params or {},
    )
    return langchain_models[spec]


def create_model_from_settings(
    settings: LanguageModelSettings,
) -> BaseChatModel:
    """
    Create LangChain model from a LanguageModelSettings object.
    Raises a ValueError if the source is not a LangChain source.
    """
    return langchain_models[settings]
