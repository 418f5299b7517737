from defitools.client import create_tool, create_tool_collection
from defitools.errors import ParseError
from defitools.http import ensure_ok, json_body
from defitools.utils import clean

PROVIDER = "Alternative.me"
FNG_URL = "https://api.alternative.me/fng/"


async def _get_fear_greed_index(client, params) -> dict:
    async with client.http() as http:
        resp = await http.get(FNG_URL)
    body = json_body(ensure_ok(resp, PROVIDER), PROVIDER)

    entries = body.get("data") if isinstance(body, dict) else None
    latest = entries[0] if isinstance(entries, list) and entries else None
    if not isinstance(latest, dict) or not latest.get("value"):
        raise ParseError("Invalid response format from Alternative.me")
    return clean(latest)


def fear_greed_index_tools():
    return create_tool_collection([
        create_tool(
            name="get_fear_greed_index",
            description=(
                "Current crypto Fear and Greed Index from Alternative.me: "
                "value 0-100 and its classification (Extreme Fear ... Extreme Greed)."
            ),
            execute=_get_fear_greed_index,
        ),
    ])
