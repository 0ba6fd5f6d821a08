# pyright: reportUnusedImport=false
# flake8: noqa

from .agent import Agent, create_agent, decode_tool_input
