"""
DefiLlama yields API access.

fetch_defillama_pools and fetch_pool_historical_data raise on failure.
fetch_protocol_data is the one helper that degrades instead: any failure is
logged and an empty list is returned, so a multi-protocol comparison still
answers with whatever protocols did load.
"""

import logging
from typing import Optional

import httpx

from defitools.errors import ParseError, ToolError
from defitools.http import ensure_ok, json_body
from defitools.tools.yields.constants import POOL_CHART_URL, POOLS_URL, PROVIDER, YieldData
from defitools.tools.yields.helpers import CHAIN_ID_MAP, assess_risk, get_project_filter, pool_apy

logger = logging.getLogger(__name__)


async def fetch_defillama_pools(client) -> list[dict]:
    async with client.http() as http:
        resp = await http.get(POOLS_URL)
    body = json_body(ensure_ok(resp, PROVIDER), PROVIDER)
    pools = body.get("data") if isinstance(body, dict) else None
    if not isinstance(pools, list):
        raise ParseError("DefiLlama pools response has no 'data' list")
    return pools


async def fetch_pool_historical_data(client, pool_id: str) -> list[dict]:
    async with client.http() as http:
        resp = await http.get(POOL_CHART_URL.format(pool_id=pool_id))
    body = json_body(ensure_ok(resp, PROVIDER), PROVIDER)
    points = body.get("data") if isinstance(body, dict) else None
    if not isinstance(points, list) or not points:
        raise ParseError(f"No historical data found for pool ID: {pool_id}")
    return points


async def fetch_protocol_data(
    client, protocol: str, chain_id: Optional[int] = None
) -> list[YieldData]:
    try:
        pools = await fetch_defillama_pools(client)
    except (ToolError, httpx.HTTPError) as e:
        logger.warning("yield data for %s unavailable: %s", protocol, e)
        return []

    if protocol != "DefiLlama":
        project = get_project_filter(protocol)
        if project:
            pools = [p for p in pools if project in (p.get("project") or "").lower()]

    if chain_id:
        pools = [p for p in pools if CHAIN_ID_MAP.get(p.get("chain")) == chain_id]

    results = []
    for pool in pools:
        apy = pool_apy(pool)
        results.append(YieldData(
            protocol=protocol,
            asset=pool.get("project") or "",
            symbol=pool.get("symbol") or "",
            apy=apy,
            tvl=pool.get("tvlUsd") or 0,
            chain=CHAIN_ID_MAP.get(pool.get("chain"), 1),
            risk=assess_risk(apy),
        ))
    return results
