"""
The orchestration loop: an agent alternates model round trips and
tool calls until the model answers or the turn budget is spent.

Each query goes through the states

    AwaitingModel -> Normalizing -> Dispatching -> AwaitingModel ...
                                 -> Done

A turn is one model round trip. The tools requested in a turn are
called sequentially, in the order of the request, and each result is
recorded as a tool message before the next round trip. A turn budget
that runs out is not an error: query() returns None.

Example:
    ```python
    from agentloop.agent import create_agent

    agent = create_agent()          # settings from config.toml
    answer = agent.query("What is 4 * 7?")
    ```
"""

import json

from agentloop.config.config import Settings
from agentloop.errors import (
    BackendError,
    MalformedToolArguments,
    UnknownTool,
)
from agentloop.language_models.base import LLMClient
from agentloop.language_models.factory import create_client
from agentloop.language_models.messages import ToolCallRequest
from agentloop.language_models.prompts import prompt_library
from agentloop.language_models.results import FinalAnswer
from agentloop.tools.registry import ToolRegistry, get_registry
from agentloop.utils.logging import LoggerBase, create_logger, get_logger

DEFAULT_MAX_TURNS = 5


def decode_tool_input(raw_arguments: str) -> str:
    """
    The string passed to a tool, from the arguments of its call.

    A JSON object with an 'input' field gives that field (JSON-encoded
    if it is not a string); any other JSON value is passed as the raw
    text, which structured tools decode themselves.

    Raises:
        MalformedToolArguments: raw_arguments is not JSON
    """
    if not raw_arguments.strip():
        return raw_arguments
    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError:
        raise MalformedToolArguments(raw_arguments) from None
    if isinstance(arguments, dict) and "input" in arguments:
        value = arguments["input"]
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)
    return raw_arguments


class Agent:
    """
    An agent answers questions with a client and the tools of a
    registry.

    The agent holds one session: the conversation is owned by the
    client and grows across queries.
    """

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry | None = None,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        logger: LoggerBase | None = None,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.client = client
        self.registry = registry if registry is not None else get_registry()
        self.max_turns = max_turns
        self.logger = logger or get_logger(__name__)

    def query(
        self, question: str, max_turns: int | None = None
    ) -> str | None:
        """
        Answer a question, calling tools as requested by the model.

        Args:
            question: the user message
            max_turns: bound on the model round trips; the default of
                the agent if None

        Returns:
            the final answer, or None if the turn budget ran out or
            the backend returned no usable content

        Raises:
            BackendError: a round trip failed
            ValueError: max_turns is less than 1
        """
        budget = self.max_turns if max_turns is None else max_turns
        if budget < 1:
            raise ValueError("max_turns must be at least 1")
        schemas = self.registry.schemas()
        pending: str | None = question

        for turn in range(1, budget + 1):
            self.logger.info(f"Agent iteration {turn}/{budget}")
            try:
                response = self.client.send(pending, tools=schemas)
            except BackendError as e:
                self.logger.error(f"Backend error: {e}")
                raise
            pending = None

            result = response.normalize()
            if isinstance(result, FinalAnswer):
                return result.text

            self.logger.info(
                f"Agent making {len(result.calls)} tool call(s)"
            )
            for call in result.calls:
                self.client.add_observation(call, self._dispatch(call))

        self.logger.warning(
            f"Agent reached the limit of {budget} turns without an answer"
        )
        return None

    def _dispatch(self, call: ToolCallRequest) -> str:
        """The observation of a tool call."""
        try:
            tool = self.registry.fetch(call.tool_name)
        except UnknownTool as e:
            self.logger.warning(str(e))
            return str(e)

        if self.client.mode == 'action_line':
            # the protocol passes the argument text as it is
            tool_input = call.raw_arguments
        else:
            try:
                tool_input = decode_tool_input(call.raw_arguments)
            except MalformedToolArguments as e:
                self.logger.warning(str(e))
                tool_input = call.raw_arguments

        self.logger.info(f"Calling tool: {tool.name}")
        return tool.call(tool_input)

    def tools_summary(self) -> str:
        """The loaded tools, one per line."""
        return "\n".join(
            f"- {tool.name}: {tool.description}"
            for tool in self.registry.tools()
        )


def create_agent(
    settings: Settings | None = None,
    *,
    system_prompt: str | None = None,
    personality: str | None = None,
    registry: ToolRegistry | None = None,
    logger: LoggerBase | None = None,
) -> Agent:
    """
    Create an agent from the configuration.

    Args:
        settings: the settings; read from config.toml if None
        system_prompt: replaces the default system prompt of the client
        personality: name of a prompt library entry used as system
            prompt, if system_prompt is not given
        registry: the tools of the agent; the process-wide registry
            if None
        logger: where progress messages go; if None, the console, and
            the log file of the settings if one is given

    Raises:
        ValueError: unknown personality or unsupported model source
    """
    if settings is None:
        settings = Settings()
    if logger is None:
        logger = create_logger("agentloop.agent", settings.agent.log_file)
    if registry is None:
        registry = get_registry()

    prompt = system_prompt or settings.agent.system_prompt
    personality = personality or settings.agent.personality
    if prompt is None and personality is not None:
        prompt = prompt_library[personality]  # type: ignore

    client = create_client(settings.model, prompt, registry, logger=logger)
    logger.info(f"Agent created with {client.name}")
    return Agent(
        client,
        registry,
        max_turns=settings.agent.max_turns,
        logger=logger,
    )
