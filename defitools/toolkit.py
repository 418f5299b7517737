"""
Anthropic Messages API adapter
==============================
Exposes a ToolClient's tools as Anthropic tool definitions and turns
``tool_use`` blocks into ``tool_result`` blocks.

Every invocation returns an envelope, never raises for tool failures:

  success: {"tool_name", "success": True, "tool_result_id", "timestamp", "result"}
  failure: {"tool_name", "success": False, "tool_result_id", "error": <code>, "message"}

so the model sees the error code and can decide whether to retry with
different arguments.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

import anthropic
from anthropic.types import ToolParam, ToolResultBlockParam, ToolUseBlock

from defitools.client import ToolClient
from defitools.errors import ToolError

logger = logging.getLogger(__name__)


class Toolkit:
    def __init__(self, client: ToolClient, names: Optional[list[str]] = None):
        self.client = client
        self.names = names

    def _tools(self):
        tools = self.client.get_tools()
        if self.names is None:
            return list(tools.values())
        return [tools[n] for n in self.names if n in tools]

    def definitions(self) -> list[ToolParam]:
        return [
            {"name": t.name, "description": t.description, "input_schema": t.json_schema()}
            for t in self._tools()
        ]

    async def invoke(self, name: str, args: Optional[dict] = None) -> dict:
        now = datetime.now(timezone.utc)
        tool_result_id = f"{name}_{int(now.timestamp())}"
        try:
            result: Any = await self.client.execute(name, args)
        except ToolError as e:
            return {
                "tool_name": name,
                "success": False,
                "tool_result_id": tool_result_id,
                "error": e.code,
                "message": e.message,
            }
        return {
            "tool_name": name,
            "success": True,
            "tool_result_id": tool_result_id,
            "timestamp": now.isoformat(),
            "result": result,
        }

    async def run(self, block: ToolUseBlock) -> ToolResultBlockParam:
        envelope = await self.invoke(block.name, block.input if isinstance(block.input, dict) else {})
        if not envelope["success"]:
            logger.info("tool_use %s failed: %s", block.id, envelope["error"])
        return {
            "type": "tool_result",
            "tool_use_id": block.id,
            "content": json.dumps(envelope, default=str),
            "is_error": not envelope["success"],
        }


# ---------------------------------------------------------------------------
# Tool-use loop
# ---------------------------------------------------------------------------

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOOL_ROUNDS = 8


def _get_anthropic() -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))


async def ask(
    toolkit: Toolkit,
    prompt: str,
    llm: Optional[anthropic.AsyncAnthropic] = None,
    model: Optional[str] = None,
    system: Optional[str] = None,
    max_tokens: int = 1024,
) -> str:
    """
    Run one question through Claude with the toolkit's tools until the model
    stops calling tools (or MAX_TOOL_ROUNDS is hit). Returns the final text.
    """
    llm = llm or _get_anthropic()
    model = model or os.getenv("DEFITOOLS_MODEL", DEFAULT_MODEL)
    messages: list = [{"role": "user", "content": prompt}]
    extra = {"system": system} if system else {}

    for _ in range(MAX_TOOL_ROUNDS):
        response = await llm.messages.create(
            model=model,
            max_tokens=max_tokens,
            tools=toolkit.definitions(),
            messages=messages,
            **extra,
        )
        tool_uses = [b for b in response.content if b.type == "tool_use"]
        if response.stop_reason != "tool_use" or not tool_uses:
            return "".join(b.text for b in response.content if b.type == "text")

        messages.append({"role": "assistant", "content": response.content})
        messages.append({"role": "user", "content": [await toolkit.run(b) for b in tool_uses]})

    logger.warning("stopped after %d tool rounds", MAX_TOOL_ROUNDS)
    return ""
