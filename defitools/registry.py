"""
Registry: every tool collection flattened into one name-keyed map.

Name collisions across collections are rejected with DuplicateToolError
rather than silently overwritten.
"""

import logging
from typing import Iterable, Optional

import httpx

from defitools.client import Tool, ToolClient
from defitools.errors import DuplicateToolError
from defitools.tools import (
    bridge_tools,
    crypto_price_tools,
    defillama_tools,
    fear_greed_index_tools,
    image_gen_tools,
    market_event_tools,
    web_tools,
    yield_tools,
)

logger = logging.getLogger(__name__)

# Tools that only exist when their credentials are configured. A lookup miss
# on one of these means "configure the key", not "no such tool".
KEY_GATED_TOOLS: dict[str, list[str]] = {
    "get_market_events": ["COINMARKETCAL_API_KEY"],
    "generate_and_pin_image": ["FIREWORKS_API_KEY", "PINATA_JWT"],
}


def all_tools(keys: Optional[dict[str, Optional[str]]] = None) -> list[Tool]:
    keys = keys or {}
    tools = [
        *crypto_price_tools(),
        *fear_greed_index_tools(),
        *web_tools(),
        *defillama_tools(),
        *yield_tools(),
        *bridge_tools(),
    ]
    if keys.get("COINMARKETCAL_API_KEY"):
        tools += market_event_tools(keys["COINMARKETCAL_API_KEY"])
    if keys.get("FIREWORKS_API_KEY") and keys.get("PINATA_JWT"):
        tools += image_gen_tools(keys["FIREWORKS_API_KEY"], keys["PINATA_JWT"])

    logger.debug("registered %d tools", len(tools))
    return tools


def build_tool_map(tools: Iterable[Tool]) -> dict[str, Tool]:
    tool_map: dict[str, Tool] = {}
    for tool in tools:
        if tool.name in tool_map:
            raise DuplicateToolError(tool.name)
        tool_map[tool.name] = tool
    return tool_map


def search_tools(tool_map: dict[str, Tool], keyword: str) -> list[dict]:
    needle = keyword.lower()
    return [
        {"name": name, "description": tool.description}
        for name, tool in sorted(tool_map.items())
        if needle in name.lower() or needle in tool.description.lower()
    ]


def create_client(
    keys: Optional[dict[str, Optional[str]]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> ToolClient:
    keys = keys or {}
    credentials = {k: v for k, v in keys.items() if v}
    return ToolClient(tools=all_tools(keys), credentials=credentials, transport=transport, **kwargs)
