"""
Tests for the Tool / collection / client contract.

Tests cover:
  1. Collections - names unique and non-empty, factories deterministic
  2. Key-gated factories fail fast without credentials
  3. Argument validation happens before any network call
  4. Lookup, chain checks and duplicate rejection
  5. Transport failures surface as ProviderError
"""

import httpx
import pytest

from defitools.chains import DEFAULT_CHAINS, MAINNET, OPTIMISM
from defitools.client import ToolClient, create_tool, create_tool_collection
from defitools.errors import (
    ArgumentError,
    ChainNotSupportedError,
    ConfigurationError,
    DuplicateToolError,
    ProviderError,
    UnknownToolError,
)
from defitools.registry import all_tools, build_tool_map, search_tools
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
from defitools.tools.yields import get_chain_name

FACTORIES = {
    "cryptoprices": crypto_price_tools,
    "feargreed": fear_greed_index_tools,
    "web": web_tools,
    "defillama": defillama_tools,
    "yields": yield_tools,
    "across": bridge_tools,
    "coinmarketcal": lambda: market_event_tools("cmc-key"),
    "imagegen": lambda: image_gen_tools("fw-key", "pinata-jwt"),
}

ALL_KEYS = {
    "COINMARKETCAL_API_KEY": "cmc-key",
    "FIREWORKS_API_KEY": "fw-key",
    "PINATA_JWT": "pinata-jwt",
}


# ---------------------------------------------------------------------------
# Test 1 - collections
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("factory", FACTORIES.values(), ids=FACTORIES.keys())
def test_collection_names_unique_and_non_empty(factory):
    """
    GIVEN  any tool collection factory
    WHEN   it builds its collection
    THEN   every tool has a non-empty name and no name repeats.
    """
    names = [t.name for t in factory()]
    assert names, "collection should not be empty"
    assert all(names)
    assert len(names) == len(set(names))


@pytest.mark.parametrize("factory", FACTORIES.values(), ids=FACTORIES.keys())
def test_factory_is_deterministic(factory):
    """
    GIVEN  the same configuration
    WHEN   a factory is called twice
    THEN   both collections have identical names, descriptions and schemas.
    """
    def shape(tools):
        return [(t.name, t.description, t.json_schema()) for t in tools]

    assert shape(factory()) == shape(factory())


def test_registry_has_no_cross_collection_collisions():
    tool_map = build_tool_map(all_tools(ALL_KEYS))
    assert "get_market_events" in tool_map
    assert "generate_and_pin_image" in tool_map
    assert "get_token_chart" in tool_map
    assert "get_yields" in tool_map


def test_registry_skips_key_gated_collections_without_keys():
    names = {t.name for t in all_tools({})}
    assert "get_market_events" not in names
    assert "generate_and_pin_image" not in names
    assert "get_crypto_price" in names


def test_search_matches_name_or_description_sorted():
    tool_map = build_tool_map(all_tools({}))
    hits = search_tools(tool_map, "YIELD")
    names = [h["name"] for h in hits]
    assert names == sorted(names)
    assert {"get_yields", "compare_yields", "get_yield_history", "compare_yield_history"} <= set(names)
    assert search_tools(tool_map, "no-such-thing-anywhere") == []


# ---------------------------------------------------------------------------
# Test 2 - credentials
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("build", [
    lambda: market_event_tools(None),
    lambda: market_event_tools(""),
    lambda: market_event_tools("   "),
    lambda: image_gen_tools(None, "jwt"),
    lambda: image_gen_tools("key", ""),
])
def test_key_gated_factories_fail_fast(build):
    with pytest.raises(ConfigurationError) as exc:
        build()
    assert exc.value.code == "MISSING_API_KEY"


# ---------------------------------------------------------------------------
# Test 3 - validation before network
# ---------------------------------------------------------------------------

BAD_ARGS = [
    ("get_crypto_price", {}),
    ("get_crypto_price", {"symbol": ""}),
    ("get_market_events", {"show_only": "everything"}),
    ("generate_and_pin_image", {"prompt": "a cat", "steps": 99}),
    ("generate_and_pin_image", {}),
    ("scrape_web_content", {"website": "ftp://example.com"}),
    ("get_token_chart", {}),
    ("get_yields", {"limit": 0}),
    ("get_yields", {"min_apy": -1}),
    ("get_yields", {"max_risk": "extreme"}),
    ("compare_yields", {"assets": []}),
    ("compare_yields", {"assets": ["a", "b", "c", "d", "e", "f"]}),
    ("get_yield_history", {"pool_id": "abc", "days": 366}),
    ("compare_yield_history", {"pool_ids": ["only-one"]}),
    ("compare_yield_history", {"pool_ids": ["a", "b"], "sort_by": "vibes"}),
    ("get_across_fee_quote", {"input_token": "not-an-address"}),
    ("get_across_fee_quote", {
        "input_token": "0x" + "11" * 20,
        "output_token": "0x" + "22" * 20,
        "origin_chain_id": 1,
        "destination_chain_id": 8453,
        "amount": "abc",
    }),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("name,args", BAD_ARGS)
async def test_invalid_arguments_never_reach_network(make_client, name, args):
    """
    GIVEN  arguments that fail the tool's schema
    WHEN   the tool is executed through the client
    THEN   ArgumentError is raised and zero HTTP requests were made.
    """
    client, recorder = make_client(all_tools(ALL_KEYS))

    with pytest.raises(ArgumentError) as exc:
        await client.execute(name, args)

    assert exc.value.code == "VALIDATION_ERROR"
    assert exc.value.issues, "issues should list the failing fields"
    assert recorder.requests == []


# ---------------------------------------------------------------------------
# Test 4 - lookup, chains, duplicates
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_tool_lists_available_and_suggests(make_client):
    client, recorder = make_client(crypto_price_tools() + web_tools())

    with pytest.raises(UnknownToolError) as exc:
        await client.execute("get_crypto_prise", {"symbol": "BTC"})

    assert exc.value.suggestion == "get_crypto_price"
    assert exc.value.available == ["get_crypto_price", "scrape_web_content"]
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_unsupported_chain_rejected_before_validation(make_client):
    client, recorder = make_client(yield_tools())

    with pytest.raises(ChainNotSupportedError) as exc:
        await client.execute("get_yields", {"chain_id": 56})

    assert "not supported by tool get_yields" in exc.value.message
    assert recorder.requests == []


def test_duplicate_tool_names_rejected():
    with pytest.raises(DuplicateToolError):
        ToolClient(tools=[*web_tools(), *web_tools()])
    with pytest.raises(DuplicateToolError):
        build_tool_map([*yield_tools(), *yield_tools()])


def test_get_chain_and_filter_supported_chains():
    client = ToolClient(chains=[MAINNET])
    assert client.get_chain(1) is MAINNET
    with pytest.raises(ChainNotSupportedError):
        client.get_chain(10)
    assert client.filter_supported_chains([MAINNET, OPTIMISM]) == [MAINNET]
    with pytest.raises(ChainNotSupportedError):
        client.filter_supported_chains([MAINNET, OPTIMISM], 10)


@pytest.mark.parametrize("chain", DEFAULT_CHAINS, ids=lambda c: c.name)
def test_chain_names_match_yield_chain_names(chain):
    assert chain.name == get_chain_name(chain.id)


def test_create_tool_requires_name():
    async def _noop(client, params):
        return None

    with pytest.raises(ValueError):
        create_tool(name="", description="nothing", execute=_noop)
    tools = create_tool_collection([create_tool(name="noop", description="nothing", execute=_noop)])
    assert tools[0].json_schema()["properties"] == {}


# ---------------------------------------------------------------------------
# Test 5 - transport failure
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_transport_failure_becomes_provider_error(make_client):
    def _refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, recorder = make_client(fear_greed_index_tools(), _refuse)

    with pytest.raises(ProviderError) as exc:
        await client.execute("get_fear_greed_index")

    assert exc.value.status is None
    assert "connection refused" in exc.value.message
    assert len(recorder.requests) == 1
