"""
defitools: schema-validated DeFi and market data tools for LLM agents.
"""

__version__ = "0.1.0"

from defitools.client import Tool, ToolClient, create_tool, create_tool_collection  # noqa: E402
from defitools.errors import (  # noqa: E402
    ArgumentError,
    ChainNotSupportedError,
    ConfigurationError,
    DuplicateToolError,
    ParseError,
    ProviderError,
    ToolError,
    UnknownToolError,
)

__all__ = [
    "ArgumentError",
    "ChainNotSupportedError",
    "ConfigurationError",
    "DuplicateToolError",
    "ParseError",
    "ProviderError",
    "Tool",
    "ToolClient",
    "ToolError",
    "UnknownToolError",
    "create_tool",
    "create_tool_collection",
]
