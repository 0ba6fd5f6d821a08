"""
Read and write configuration file.

This file also contains the definitions of the model sources supported
by the package. A source selects the client that talks to the vendor
(see agentloop.language_models.factory) and thereby the way tool calls
are expressed by the model.
"""

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import (
    Field,
    field_validator,
    model_validator,
    BaseModel,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Supported model sources. Each must be handled in create_client
# (agentloop/language_models/factory.py)
ModelSource = Literal[
    'OpenAI',
    'Moonshot',
    'LMStudio',
    'DeepSeek',
    'Perplexity',
    'Anthropic',
    'Gemini',
    'Mistral',
    'Debug',
]

# Values accepted in provider_params
ParamPrimitive = str | int | float | bool | list[str]

DEFAULT_CONFIG_FILE = "config.toml"
ENV_PREFIX = "AGENTLOOP_"


class LanguageModelSettings(BaseModel):
    """
    Specification of the language model used by the agent.

    Attributes:
        model: model specification, 'source/model'
        temperature: float between 0.0 and 2.0, or None for the
            default of the source
        max_tokens: max number of generated tokens
        max_retries: max number retries attempts (LangChain sources)
        timeout: timeout when waiting for response
        base_url: endpoint override for OpenAI-compatible sources
        provider_params: provider-specific parameters
    """

    model: str = Field(
        description="Model specification in the form "
        + "'model_provider/model' (e.g., 'OpenAI/gpt-4o')"
    )

    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Controls randomness in model responses (0.0-2.0)",
    )
    max_tokens: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of tokens to generate",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Maximum number of retry attempts",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Request timeout in seconds"
    )
    base_url: str | None = Field(
        default=None,
        description="Endpoint of OpenAI-compatible servers "
        + "(e.g., 'http://localhost:1234/v1')",
    )

    provider_params: dict[str, ParamPrimitive] = Field(
        default_factory=dict,
        description="Provider-specific parameters (e.g., top_p)",
    )

    model_config = SettingsConfigDict(frozen=True, extra='forbid')

    def __hash__(self) -> int:
        """Hash on all fields, provider_params as a sorted tuple."""
        provider_params_tuple = tuple(
            (key, tuple(value) if isinstance(value, list) else value)
            for key, value in sorted(self.provider_params.items())
        )
        return hash(
            (
                self.model,
                self.temperature,
                self.max_tokens,
                self.max_retries,
                self.timeout,
                self.base_url,
                provider_params_tuple,
            )
        )

    def get_model_source(self) -> ModelSource:
        return self.model.split('/')[0]  # type: ignore

    def get_model_name(self) -> str:
        return self.model.split('/', 1)[1]

    @field_validator('model', mode='after')
    @classmethod
    def validate_model_spec(cls, spec: str) -> str:
        cleaned_spec = spec.strip()
        if not (bool(cleaned_spec)):
            raise ValueError("Model specification is empty")
        if '\n' in cleaned_spec or '\r' in cleaned_spec:
            raise ValueError(
                "Model specification cannot contain newlines or carriage"
                + " returns."
            )
        # local model names may contain '/' (e.g. LMStudio/org/model)
        tokens = cleaned_spec.split('/', 1)
        if len(tokens) != 2 or not tokens[1].strip():
            raise ValueError(
                "Model specification must contain the model provider and "
                + "the model name separated by '/'.",
            )
        model_spec = tokens[0].strip()
        if model_spec not in ModelSource.__args__:
            raise ValueError(
                f"Invalid model provider: '{model_spec}'. "
                + f"Must be one of {ModelSource.__args__}."
            )
        return model_spec + '/' + tokens[1].strip()

    @model_validator(mode='after')
    def validate_provider_params(self) -> Self:
        """Validate provider-specific parameters based on the source."""
        params = self.provider_params

        ALLOWED_PARAMS = {
            'OpenAI': {
                'frequency_penalty',
                'presence_penalty',
                'top_p',
                'seed',
            },
            'Moonshot': {'top_p', 'frequency_penalty', 'presence_penalty'},
            'DeepSeek': {'top_p', 'frequency_penalty', 'presence_penalty'},
            'Perplexity': {
                'top_p',
                'top_k',
                'search_domain_filter',
                'search_recency_filter',
                'return_images',
                'return_related_questions',
                'presence_penalty',
                'frequency_penalty',
            },
            'Anthropic': {'top_p', 'top_k', 'stop_sequences'},
            'Mistral': {'top_p', 'random_seed', 'safe_mode'},
            'Gemini': {'top_p', 'top_k', 'candidate_count'},
            'Debug': {'message'},
        }

        source: ModelSource = self.get_model_source()
        if source and source in ALLOWED_PARAMS:
            allowed = ALLOWED_PARAMS[source]
            invalid_params = set(params.keys()) - allowed

            if invalid_params:
                raise ValueError(
                    f"Invalid provider_params for {source}: {invalid_params}. Allowed: {allowed}"
                )

        return self


class AgentSettings(BaseModel):
    """
    Settings of the orchestration loop.

    Attributes:
        max_turns: default bound on model round trips per query
        system_prompt: custom system prompt, replaces the default
            prompt of the client
        personality: name of a prompt in the prompt library, used
            when no system_prompt is given
        log_file: if given, progress messages are also written here
    """

    max_turns: int = Field(
        default=5,
        ge=1,
        description="Maximum number of model round trips per query",
    )
    system_prompt: str | None = Field(
        default=None, description="Custom system prompt"
    )
    personality: str | None = Field(
        default=None,
        description="Prompt library entry used as system prompt "
        + "(e.g., 'teacher')",
    )
    log_file: str | None = Field(
        default=None, description="File receiving the log messages"
    )

    model_config = SettingsConfigDict(frozen=True, extra='forbid')


class Settings(BaseSettings):
    """
    A pydantic settings object containing the fields with the
    configuration information.

    Settings are saved and read from the configuration file in TOML
    format. Environment variables with the AGENTLOOP_ prefix take
    precedence over the file (e.g. AGENTLOOP_AGENT='{"max_turns": 3}'),
    and arguments given to the constructor over both.

    Attributes:
        model: the language model used by the agent
        agent: settings of the orchestration loop

    Note:
        API keys are not part of the settings. They are read from
        the environment variables of each provider (e.g.
        OPENAI_API_KEY) when the client is created.
    """

    model: LanguageModelSettings = Field(
        default_factory=lambda: LanguageModelSettings(
            model="OpenAI/gpt-4o",
        ),
        description="Language model used by the agent",
    )
    agent: AgentSettings = Field(
        default_factory=AgentSettings,
        description="Settings of the agent loop",
    )

    model_config = SettingsConfigDict(
        toml_file=DEFAULT_CONFIG_FILE,
        env_prefix=ENV_PREFIX,
        frozen=True,
        validate_assignment=True,
        extra='allow',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources. Earlier sources
        take precedence."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    def __str__(self) -> str:
        return serialize_settings(self)


def serialize_settings(sets: BaseSettings) -> str:
    """Transform the settings into a string in TOML format.

    Args:
        sets: The settings object to serialize

    Returns:
        TOML formatted string representation of settings
    """
    import tomlkit

    doc = tomlkit.document()
    doc.add(tomlkit.comment("agentloop configuration file"))
    doc.add(tomlkit.nl())

    data: dict[str, Any] = sets.model_dump()
    for key, value in data.items():
        if isinstance(value, dict):
            tbl = tomlkit.table()
            for kkey, vvalue in value.items():  # type: ignore
                # None values cannot be serialized to TOML
                if vvalue is not None:
                    tbl[kkey] = vvalue
            doc[key] = tbl
        elif value is not None:
            doc[key] = value

    return str(tomlkit.dumps(doc))  # type: ignore


def export_settings(
    settings: BaseSettings, file_path: str | Path | None = None
) -> None:
    """Save settings to file in TOML format.

    Args:
        settings: A settings object to save
        file_path: The settings file path (defaults to config.toml)

    Raises:
        OSError: If file cannot be written
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with file_path.open("w", encoding="utf-8") as f:
        f.write(serialize_settings(settings))


def create_default_config_file(
    file_path: str | Path | None = None,
) -> None:
    """Create a settings file with the default values.

    Args:
        file_path: Target file path (defaults to config.toml)

    Raises:
        OSError: If file cannot be written
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)

    # defaults only, without reading the file or the environment
    export_settings(Settings.model_construct(), file_path)


def print_settings(settings: BaseSettings) -> None:
    """Print settings in TOML format to stdout."""
    print(serialize_settings(settings))


def load_settings(file_path: str | Path | None = None) -> Settings:
    """Load settings from TOML file.

    Args:
        file_path: Path to settings file (defaults to config.toml)

    Returns:
        Loaded settings object

    Raises:
        FileNotFoundError: If settings file doesn't exist
        ValueError: If settings file is invalid
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(
            f"Settings file not found: {file_path}"
        )

    try:

        class FileSettings(Settings):
            model_config = SettingsConfigDict(
                toml_file=str(file_path),
                env_prefix=ENV_PREFIX,
                frozen=True,
                validate_assignment=True,
                extra='allow',
            )

        return FileSettings()
    except Exception as e:
        raise ValueError(
            f"Failed to load settings from {file_path}: {e}"
        ) from e


def format_pydantic_error_message(error_message: str) -> str:
    """Filter out the documentation links from pydantic error
    messages."""
    lines = error_message.split('\n')
    filtered_lines = [
        line
        for line in lines
        if "For further information visit" not in line
    ]
    return '\n'.join(filtered_lines)


# Create a default config.toml file, if there is none.
if not Path(DEFAULT_CONFIG_FILE).exists():
    create_default_config_file()
