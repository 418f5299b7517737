"""
Spot prices from CoinGecko's free simple/price endpoint. No API key.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ParseError
from defitools.http import ensure_ok, json_body

PROVIDER = "CoinGecko"
PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"

# Ticker -> CoinGecko coin id. Anything else falls back to the lower-cased ticker.
COINGECKO_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "BNB": "binancecoin",
    "DOT": "polkadot",
    "ADA": "cardano",
    "XRP": "ripple",
    "DOGE": "dogecoin",
    "SHIB": "shiba-inu",
    "ARB": "arbitrum",
    "OP": "optimism",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
}


def coingecko_id(symbol: str) -> str:
    symbol = symbol.upper().strip()
    return COINGECKO_IDS.get(symbol, symbol.lower())


class CryptoPriceParams(BaseModel):
    symbol: str = Field(min_length=1, description="Ticker symbol, e.g. BTC, ETH, SOL")


async def _get_crypto_price(client, params: CryptoPriceParams) -> dict:
    symbol = params.symbol.upper().strip()
    coin_id = coingecko_id(symbol)

    async with client.http() as http:
        resp = await http.get(PRICE_URL, params={"ids": coin_id, "vs_currencies": "usd"})
    data = json_body(ensure_ok(resp, PROVIDER), PROVIDER)

    if not isinstance(data, dict):
        raise ParseError(f"Unexpected response format from {PROVIDER}")
    quote = data.get(coin_id)
    price = quote.get("usd") if isinstance(quote, dict) else None
    if price is None:
        raise ParseError(f"No price data found for {symbol}")

    return {
        "symbol": symbol,
        "price": price,
        "currency": "USD",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": PROVIDER,
    }


def crypto_price_tools():
    return create_tool_collection([
        create_tool(
            name="get_crypto_price",
            description="Get the current price of a cryptocurrency in USD.",
            parameters=CryptoPriceParams,
            execute=_get_crypto_price,
        ),
    ])
