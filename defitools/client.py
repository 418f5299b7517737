"""
Tool model and the shared client context
========================================
A Tool is a named, described unit of work with a pydantic parameter model
and an async ``execute(client, params)``. Tools are grouped into collections
by provider; collections are built by factory functions in defitools.tools.

ToolClient is the context every tool receives. It carries:
  - the configured chains (for tools that read chain state)
  - the HTTP capability (an httpx transport + timeout)
  - the resolved credentials
  - the name-keyed tool map used by execute()

Tools read from the client and never mutate it, so one client can serve
concurrent tool calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx
from pydantic import BaseModel, ValidationError

from defitools.chains import DEFAULT_CHAINS, Chain
from defitools.errors import (
    ArgumentError,
    ChainNotSupportedError,
    DuplicateToolError,
    ProviderError,
    ToolError,
    UnknownToolError,
)
from defitools.utils import suggest_tool

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "defitools/0.1 (+https://github.com/defitools/defitools)"

Executor = Callable[["ToolClient", Any], Awaitable[Any]]


class NoParams(BaseModel):
    pass


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    parameters: type[BaseModel]
    execute: Executor
    supported_chains: Optional[tuple[Chain, ...]] = None

    def validate(self, args: Optional[dict]) -> BaseModel:
        """Validate raw arguments. Never touches the network."""
        try:
            return self.parameters.model_validate(args or {})
        except ValidationError as e:
            issues = [
                {"field": ".".join(str(p) for p in err["loc"]) or "(root)", "message": err["msg"]}
                for err in e.errors()
            ]
            summary = "; ".join(f"{i['field']}: {i['message']}" for i in issues)
            raise ArgumentError(f"Invalid arguments for {self.name}: {summary}", issues) from e

    def json_schema(self) -> dict:
        return self.parameters.model_json_schema()

    def supports_chain(self, chain_id: int) -> bool:
        if not self.supported_chains:
            return True
        return any(c.id == chain_id for c in self.supported_chains)


def _as_int(value) -> Optional[int]:
    # CLI flags arrive as strings; anything non-numeric is left to validation
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def create_tool(
    name: str,
    description: str,
    execute: Executor,
    parameters: type[BaseModel] = NoParams,
    supported_chains: Optional[Iterable[Chain]] = None,
) -> Tool:
    if not name:
        raise ValueError("Tool name must be non-empty")
    chains = tuple(supported_chains) if supported_chains is not None else None
    return Tool(name, description, parameters, execute, chains)


def create_tool_collection(tools: Iterable[Tool]) -> list[Tool]:
    return list(tools)


# ---------------------------------------------------------------------------
# Client context
# ---------------------------------------------------------------------------

class ToolClient:
    def __init__(
        self,
        tools: Iterable[Tool] = (),
        chains: Iterable[Chain] = DEFAULT_CHAINS,
        credentials: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.chains: tuple[Chain, ...] = tuple(chains)
        self.credentials: dict[str, str] = dict(credentials or {})
        self.transport = transport
        self.timeout = timeout
        self._tools: dict[str, Tool] = {}
        self.add_tools(tools)

    # -- HTTP --------------------------------------------------------------

    def http(self) -> httpx.AsyncClient:
        """
        Fresh AsyncClient for one tool call. Use as ``async with client.http() as http:``.
        Tests inject an httpx.MockTransport through the constructor.
        """
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    # -- chains ------------------------------------------------------------

    def get_chains(self) -> tuple[Chain, ...]:
        return self.chains

    def get_chain(self, chain_id: int) -> Chain:
        for chain in self.chains:
            if chain.id == chain_id:
                return chain
        raise ChainNotSupportedError(chain_id)

    def filter_supported_chains(
        self, supported: Iterable[Chain], chain_id: Optional[int] = None
    ) -> list[Chain]:
        """Configured chains that are also in ``supported``, optionally narrowed to one id."""
        supported_ids = {c.id for c in supported}
        chains = [c for c in self.chains if c.id in supported_ids]
        if chain_id is not None:
            chains = [c for c in chains if c.id == chain_id]
            if not chains:
                raise ChainNotSupportedError(chain_id)
        return chains

    # -- tools -------------------------------------------------------------

    def add_tools(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            if tool.name in self._tools:
                raise DuplicateToolError(tool.name)
            self._tools[tool.name] = tool

    def get_tools(self) -> dict[str, Tool]:
        return dict(self._tools)

    def get_tool(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            available = sorted(self._tools)
            raise UnknownToolError(name, available, suggest_tool(name, available))
        return tool

    async def execute(self, name: str, args: Optional[dict] = None) -> Any:
        """
        Look up, chain-check, validate, then run a tool.
        Validation happens before execute, so bad arguments never reach the network.
        """
        tool = self.get_tool(name)
        args = dict(args or {})

        chain_id = _as_int(args.get("chain_id"))
        if chain_id is not None and tool.supported_chains and not tool.supports_chain(chain_id):
            raise ChainNotSupportedError(chain_id, tool.name)

        params = tool.validate(args)
        logger.info("tool %s called with %s", name, sorted(args))

        try:
            return await tool.execute(self, params)
        except ToolError as e:
            logger.warning("tool %s failed: %s", name, e.message)
            raise
        except httpx.HTTPError as e:
            logger.warning("tool %s transport failure: %s", name, e)
            raise ProviderError(name, None, str(e) or type(e).__name__) from e
