"""
Historical token prices from DefiLlama's coins API.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ArgumentError, ParseError
from defitools.http import ensure_ok, json_body

PROVIDER = "DefiLlama"
COINS_CHART_URL = "https://coins.llama.fi/chart/{tokens}"


class ChartOptions(BaseModel):
    span: Optional[int] = Field(default=None, ge=1, description="Number of data points to return")
    search_width: Optional[str] = Field(
        default=None, description='Time range on either side to find price data, e.g. "600"'
    )


class TokenChartParams(BaseModel):
    tokens: Union[str, list[str]] = Field(
        description='Token id as "chain:address" (e.g. "coingecko:ethereum"), or a list of them'
    )
    period: str = Field(default="1d", description="Interval between points: 1h, 4h, 1d, 1w")
    start_time: Optional[str] = Field(
        default=None, description='ISO timestamp to start from, e.g. "2025-01-01T00:00:00Z"'
    )
    options: Optional[ChartOptions] = None


def _unix_seconds(iso: str) -> int:
    try:
        return int(datetime.fromisoformat(iso.replace("Z", "+00:00")).timestamp())
    except ValueError as e:
        raise ArgumentError(f"start_time {iso!r} is not an ISO timestamp") from e


async def _get_token_chart(client, params: TokenChartParams) -> dict:
    tokens = [params.tokens] if isinstance(params.tokens, str) else list(params.tokens)
    if not tokens:
        raise ArgumentError("tokens must name at least one token")

    query: dict[str, object] = {"period": params.period}
    if params.start_time:
        query["start"] = _unix_seconds(params.start_time)
    if params.options and params.options.span:
        query["span"] = params.options.span
    if params.options and params.options.search_width:
        query["searchWidth"] = params.options.search_width

    async with client.http() as http:
        resp = await http.get(COINS_CHART_URL.format(tokens=",".join(tokens)), params=query)
    data = json_body(ensure_ok(resp, PROVIDER), PROVIDER)

    if not isinstance(data, dict) or "coins" not in data:
        raise ParseError("DefiLlama chart response has no 'coins' field")

    return {
        "success": True,
        "tokens": tokens,
        "period": params.period,
        "coins": data["coins"],
    }


def defillama_tools():
    return create_tool_collection([
        create_tool(
            name="get_token_chart",
            description="Gets historical price chart data for one or more tokens from DefiLlama.",
            parameters=TokenChartParams,
            execute=_get_token_chart,
        ),
    ])
