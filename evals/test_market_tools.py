"""
Tests for the market data wrappers: CoinGecko prices, Fear & Greed index,
CoinMarketCal events and DefiLlama token charts.
"""

from datetime import datetime, timezone

import httpx
import pytest

from conftest import json_response
from defitools.errors import ParseError, ProviderError
from defitools.tools import (
    crypto_price_tools,
    defillama_tools,
    fear_greed_index_tools,
    market_event_tools,
)
from defitools.tools.cryptoprices import coingecko_id


# ---------------------------------------------------------------------------
# CoinGecko
# ---------------------------------------------------------------------------

def test_coingecko_id_mapping_and_fallback():
    assert coingecko_id("btc") == "bitcoin"
    assert coingecko_id(" AVAX ") == "avalanche-2"
    assert coingecko_id("PEPE") == "pepe"


@pytest.mark.asyncio
async def test_crypto_price_happy_path(make_client):
    client, recorder = make_client(
        crypto_price_tools(), lambda r: json_response({"bitcoin": {"usd": 67012.5}})
    )

    result = await client.execute("get_crypto_price", {"symbol": "btc"})

    assert result["symbol"] == "BTC"
    assert result["price"] == 67012.5
    assert result["currency"] == "USD"
    assert result["source"] == "CoinGecko"
    datetime.fromisoformat(result["timestamp"])
    params = recorder.requests[0].url.params
    assert params["ids"] == "bitcoin"
    assert params["vs_currencies"] == "usd"


@pytest.mark.asyncio
async def test_crypto_price_missing_coin_is_parse_error(make_client):
    client, _ = make_client(crypto_price_tools(), lambda r: json_response({}))

    with pytest.raises(ParseError):
        await client.execute("get_crypto_price", {"symbol": "NOPE"})


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [[{"usd": 1}], "bitcoin", 42, {"bitcoin": [1, 2]}])
async def test_crypto_price_wrong_typed_body_is_parse_error(make_client, payload):
    """
    GIVEN  CoinGecko answers 200 with JSON that is not a coin -> quote object
    WHEN   get_crypto_price runs
    THEN   ParseError is raised, not AttributeError.
    """
    client, _ = make_client(crypto_price_tools(), lambda r: json_response(payload))

    with pytest.raises(ParseError):
        await client.execute("get_crypto_price", {"symbol": "BTC"})


@pytest.mark.asyncio
async def test_crypto_price_rate_limited(make_client):
    client, _ = make_client(crypto_price_tools(), lambda r: httpx.Response(429, text="slow down"))

    with pytest.raises(ProviderError) as exc:
        await client.execute("get_crypto_price", {"symbol": "ETH"})
    assert exc.value.status == 429
    assert exc.value.detail == "slow down"


# ---------------------------------------------------------------------------
# Fear & Greed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fear_greed_returns_trimmed_latest_entry(make_client):
    payload = {"data": [{"value": "72", "value_classification": " Greed ", "timestamp": "1718000000"}]}
    client, recorder = make_client(fear_greed_index_tools(), lambda r: json_response(payload))

    result = await client.execute("get_fear_greed_index")

    assert result == {"value": "72", "value_classification": "Greed", "timestamp": "1718000000"}
    assert recorder.urls == ["https://api.alternative.me/fng/"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {},
    {"data": []},
    {"data": [{"value": ""}]},
    {"data": {"value": "50"}},
    {"data": ["50"]},
    [{"value": "50"}],
    "fear",
])
async def test_fear_greed_invalid_shape(make_client, payload):
    client, _ = make_client(fear_greed_index_tools(), lambda r: json_response(payload))

    with pytest.raises(ParseError):
        await client.execute("get_fear_greed_index")


# ---------------------------------------------------------------------------
# CoinMarketCal
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_market_events_strips_history_and_sends_key(make_client):
    events = [{
        "id": 1,
        "title": {"en": "Mainnet launch"},
        "vote_history": [1, 2, 3],
        "view_history": [4, 5],
        "coins": [{"symbol": "ABC"}],
    }]
    client, recorder = make_client(
        market_event_tools("cmc-key"), lambda r: json_response({"body": events})
    )

    result = await client.execute("get_market_events", {"show_only": "trending_events"})

    assert result == [{"id": 1, "title": {"en": "Mainnet launch"}, "coins": [{"symbol": "ABC"}]}]
    request = recorder.requests[0]
    assert request.headers["x-api-key"] == "cmc-key"
    assert request.url.params["showOnly"] == "trending_events"
    assert request.url.params["max"] == "50"
    assert request.url.params["lang"] == "en"


@pytest.mark.asyncio
@pytest.mark.parametrize("status,detail", [
    (400, "Bad Request: Invalid parameters"),
    (403, "Invalid API key"),
    (429, "Quota exceeded or too many requests"),
])
async def test_market_events_status_messages(make_client, status, detail):
    client, _ = make_client(market_event_tools("bad"), lambda r: httpx.Response(status))

    with pytest.raises(ProviderError) as exc:
        await client.execute("get_market_events")
    assert exc.value.status == status
    assert exc.value.detail == detail


# ---------------------------------------------------------------------------
# DefiLlama token chart
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_token_chart_joins_tokens_and_converts_start(make_client):
    coins = {"coingecko:ethereum": {"symbol": "ETH", "prices": [{"timestamp": 1735689600, "price": 3300}]}}
    client, recorder = make_client(defillama_tools(), lambda r: json_response({"coins": coins}))

    result = await client.execute("get_token_chart", {
        "tokens": ["coingecko:ethereum", "ethereum:0xabc"],
        "period": "4h",
        "start_time": "2025-01-01T00:00:00Z",
        "options": {"span": 10, "search_width": "600"},
    })

    assert result == {
        "success": True,
        "tokens": ["coingecko:ethereum", "ethereum:0xabc"],
        "period": "4h",
        "coins": coins,
    }
    url = recorder.requests[0].url
    assert url.path == "/chart/coingecko:ethereum,ethereum:0xabc"
    expected_start = int(datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp())
    assert url.params["start"] == str(expected_start)
    assert url.params["span"] == "10"
    assert url.params["searchWidth"] == "600"


@pytest.mark.asyncio
async def test_token_chart_single_token_defaults(make_client):
    client, recorder = make_client(defillama_tools(), lambda r: json_response({"coins": {}}))

    result = await client.execute("get_token_chart", {"tokens": "coingecko:bitcoin"})

    assert result["tokens"] == ["coingecko:bitcoin"]
    assert result["period"] == "1d"
    assert dict(recorder.requests[0].url.params) == {"period": "1d"}
