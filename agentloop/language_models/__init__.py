# pyright: reportUnusedImport=false
# flake8: noqa

from .messages import (
    Message,
    ToolCallRequest,
    Conversation,
)
from .results import AgentTurnResult, FinalAnswer, ToolInvocations
from .responses import (
    RawBackendResponse,
    NativeResponse,
    ActionLineResponse,
)
from .base import LLMClient, ToolCallMode
from .factory import create_client
