"""
Upcoming crypto market events (listings, forks, airdrops, ...) from CoinMarketCal.
Requires COINMARKETCAL_API_KEY.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ConfigurationError, ParseError, ProviderError
from defitools.http import json_body

PROVIDER = "CoinMarketCal"
EVENTS_URL = "https://developers.coinmarketcal.com/v1/events"
MAX_EVENTS = 50

STATUS_MESSAGES = {
    400: "Bad Request: Invalid parameters",
    403: "Invalid API key",
    429: "Quota exceeded or too many requests",
}

# Heavy per-event arrays not worth handing to a model
DROPPED_FIELDS = ("vote_history", "view_history")


class MarketEventsParams(BaseModel):
    show_only: Optional[
        Literal["trending_events", "popular_events", "firmed_date", "confirmed_by_representatives"]
    ] = Field(default=None, description="Only return events in this category")


def market_event_tools(api_key: Optional[str]):
    if not api_key or not api_key.strip():
        raise ConfigurationError("CoinMarketCal API key is required for using these tools.")

    async def _get_market_events(client, params: MarketEventsParams) -> list[dict]:
        query = {
            "lang": "en",
            "showViews": "true",
            "showVotes": "true",
            "max": MAX_EVENTS,
        }
        if params.show_only:
            query["showOnly"] = params.show_only

        async with client.http() as http:
            resp = await http.get(
                EVENTS_URL,
                params=query,
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "deflate, gzip",
                    "x-api-key": api_key,
                },
            )
        if not resp.is_success:
            detail = STATUS_MESSAGES.get(resp.status_code, f"API error: {resp.reason_phrase}")
            raise ProviderError(PROVIDER, resp.status_code, detail)

        body = json_body(resp, PROVIDER)
        events = body.get("body") if isinstance(body, dict) else None
        if not isinstance(events, list) or not all(isinstance(e, dict) for e in events):
            raise ParseError("CoinMarketCal response has no 'body' event list")

        return [
            {k: v for k, v in event.items() if k not in DROPPED_FIELDS}
            for event in events
        ]

    return create_tool_collection([
        create_tool(
            name="get_market_events",
            description=(
                "Fetches upcoming cryptocurrency market events from CoinMarketCal "
                "(token launches, airdrops, listings, forks). Optionally filter by event "
                "category. Returns up to 50 events with dates, coins, proof links and votes."
            ),
            parameters=MarketEventsParams,
            execute=_get_market_events,
        ),
    ])
