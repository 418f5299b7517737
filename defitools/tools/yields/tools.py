"""
Yield analysis tools over the DefiLlama yields API
==================================================
  get_yields             - filter and rank current pool yields
  compare_yields         - best protocols per asset, with projected earnings
  get_yield_history      - one pool's APY/TVL timeline and statistics
  compare_yield_history  - rank 2-5 pools on APY, volatility, stability, TVL
"""

import asyncio
from typing import Literal, Optional

from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ParseError
from defitools.tools.yields.api import (
    fetch_defillama_pools,
    fetch_pool_historical_data,
    fetch_protocol_data,
)
from defitools.tools.yields.constants import RISK_LEVELS, SUPPORTED_CHAINS, SUPPORTED_YIELD_PROTOCOLS
from defitools.tools.yields.helpers import (
    CHAIN_ID_MAP,
    assess_risk,
    calculate_projected_earnings,
    get_chain_name,
    pool_apy,
    signed_percent,
)
from defitools.tools.yields.stats import (
    apy_summary,
    calculate_apy_stats,
    calculate_stability_score,
    calculate_tvl_stats,
    extract_time_series_data,
    parse_timestamp,
)
from defitools.utils import format_percent, format_usd

Risk = Literal["low", "medium", "high"]
Protocol = Literal["Aave", "Compound", "Morpho", "SparkLend", "Lido", "RocketPool", "DefiLlama"]


# ---------------------------------------------------------------------------
# get_yields
# ---------------------------------------------------------------------------

class YieldParams(BaseModel):
    chain: Optional[str] = Field(default=None, description="Chain name filter, e.g. Ethereum, Arbitrum")
    project: Optional[str] = Field(default=None, description="Project filter, e.g. aave-v3, lido")
    symbol: Optional[str] = Field(default=None, description="Token symbol filter, e.g. ETH, USDC")
    stablecoin: Optional[bool] = Field(default=None, description="Only stablecoin (or non-stablecoin) pools")
    min_apy: Optional[float] = Field(default=None, ge=0, description="Minimum APY in percent, e.g. 5")
    max_risk: Optional[Risk] = Field(default=None, description="Maximum risk level")
    protocol: Optional[Protocol] = Field(default=None, description="Restrict to one known protocol")
    asset: Optional[str] = Field(default=None, description="Asset filter matched on project or symbol")
    chain_id: Optional[int] = Field(default=None, description="Chain id filter, e.g. 1 or 10")
    limit: int = Field(default=20, ge=1, le=100, description="Maximum number of results")


def _within_risk(apy: float, max_risk: Optional[str]) -> bool:
    if not max_risk:
        return True
    return RISK_LEVELS[assess_risk(apy)] <= RISK_LEVELS[max_risk]


async def _protocol_yields(client, params: YieldParams) -> dict:
    data = await fetch_protocol_data(client, params.protocol, params.chain_id)

    if params.min_apy is not None:
        data = [d for d in data if d.apy >= params.min_apy]
    if params.max_risk:
        data = [d for d in data if RISK_LEVELS[d.risk] <= RISK_LEVELS[params.max_risk]]
    if params.asset:
        needle = params.asset.lower()
        data = [d for d in data if needle in d.asset.lower() or needle in d.symbol.lower()]

    data.sort(key=lambda d: d.apy, reverse=True)
    data = data[:params.limit]

    return {
        "count": len(data),
        "yields": [
            {
                "protocol": d.protocol,
                "asset": f"{d.asset} ({d.symbol})",
                "chain": get_chain_name(d.chain),
                "apy": format_percent(d.apy),
                "tvl": format_usd(d.tvl),
                "risk": d.risk,
            }
            for d in data
        ],
    }


def _format_pool(pool: dict) -> dict:
    apy = pool_apy(pool)
    predictions = pool.get("predictions")
    probability = predictions.get("predictedProbability") if predictions else None
    return {
        "project": pool.get("project"),
        "asset": pool.get("symbol"),
        "chain": pool.get("chain"),
        "pool": pool.get("pool"),
        "apy": format_percent(apy),
        "apy_base": format_percent(pool["apyBase"]) if pool.get("apyBase") is not None else None,
        "apy_reward": format_percent(pool["apyReward"]) if pool.get("apyReward") is not None else None,
        "tvl": format_usd(pool.get("tvlUsd") or 0),
        "risk": assess_risk(apy),
        "stablecoin": "Yes" if pool.get("stablecoin") else "No",
        "il_risk": pool.get("ilRisk"),
        "exposure": pool.get("exposure"),
        "trend": {
            "1d": signed_percent(pool.get("apyPct1D")),
            "7d": signed_percent(pool.get("apyPct7D")),
            "30d": signed_percent(pool.get("apyPct30D")),
        },
        "prediction": {
            "class": predictions.get("predictedClass"),
            "confidence": f"{probability}%" if probability is not None else "N/A",
        } if predictions else None,
    }


async def _get_yields(client, params: YieldParams) -> dict:
    if params.protocol:
        return await _protocol_yields(client, params)

    pools = await fetch_defillama_pools(client)

    def contains(field: str, needle: Optional[str]):
        return lambda p: needle.lower() in (p.get(field) or "").lower()

    if params.chain:
        pools = list(filter(contains("chain", params.chain), pools))
    if params.chain_id is not None:
        pools = [p for p in pools if CHAIN_ID_MAP.get(p.get("chain")) == params.chain_id]
    if params.project:
        pools = list(filter(contains("project", params.project), pools))
    if params.symbol:
        pools = list(filter(contains("symbol", params.symbol), pools))
    if params.stablecoin is not None:
        pools = [p for p in pools if bool(p.get("stablecoin")) == params.stablecoin]
    if params.min_apy is not None:
        pools = [p for p in pools if pool_apy(p) >= params.min_apy]
    if params.max_risk:
        pools = [p for p in pools if _within_risk(pool_apy(p), params.max_risk)]
    if params.asset:
        by_project, by_symbol = contains("project", params.asset), contains("symbol", params.asset)
        pools = [p for p in pools if by_project(p) or by_symbol(p)]

    pools.sort(key=pool_apy, reverse=True)
    pools = pools[:params.limit]
    return {"count": len(pools), "yields": [_format_pool(p) for p in pools]}


# ---------------------------------------------------------------------------
# compare_yields
# ---------------------------------------------------------------------------

class CompareYieldParams(BaseModel):
    assets: list[str] = Field(min_length=1, max_length=5, description='Assets to compare, e.g. ["USDC", "ETH"]')
    amount: Optional[float] = Field(default=None, gt=0, description="Investment amount in USD")
    duration: Optional[int] = Field(default=None, ge=1, description="Investment duration in days")


async def _compare_yields(client, params: CompareYieldParams) -> dict:
    per_protocol = await asyncio.gather(
        *[fetch_protocol_data(client, p) for p in SUPPORTED_YIELD_PROTOCOLS]
    )
    all_yields = [d for batch in per_protocol for d in batch]
    with_projection = params.amount is not None and params.duration is not None

    comparisons = []
    for asset in params.assets:
        needle = asset.lower()
        matches = [d for d in all_yields if needle in d.asset.lower() or needle in d.symbol.lower()]
        matches.sort(key=lambda d: d.apy, reverse=True)

        top = []
        for d in matches[:5]:
            row = {
                "protocol": d.protocol,
                "chain": get_chain_name(d.chain),
                "apy": format_percent(d.apy),
                "risk": d.risk,
            }
            if with_projection:
                earnings = calculate_projected_earnings(params.amount, d.apy, params.duration)
                row["projected_earnings"] = format_usd(earnings)
                row["total_value"] = format_usd(params.amount + earnings)
            top.append(row)
        comparisons.append({"asset": asset, "protocols": top, "count": len(top)})

    details = None
    if params.amount is not None:
        details = {
            "initial_amount": format_usd(params.amount),
            "duration": f"{params.duration} days" if params.duration is not None else None,
        }
    return {"comparisons": comparisons, "investment_details": details}


# ---------------------------------------------------------------------------
# get_yield_history / compare_yield_history
# ---------------------------------------------------------------------------

class YieldHistoryParams(BaseModel):
    pool_id: str = Field(min_length=1, description="DefiLlama pool id (see the 'pool' field of get_yields)")
    days: int = Field(default=30, ge=1, le=365, description="Days of history to return")


def _day(point: dict) -> str:
    return parse_timestamp(point["timestamp"]).date().isoformat()


async def _windowed_history(client, pool_id: str, days: int) -> list[dict]:
    points = extract_time_series_data(await fetch_pool_historical_data(client, pool_id), days)
    if not points:
        raise ParseError(f"No data points for pool {pool_id} in the last {days} days")
    return points


async def _get_yield_history(client, params: YieldHistoryParams) -> dict:
    points = await _windowed_history(client, params.pool_id, params.days)
    latest = points[-1]

    return {
        "pool_id": params.pool_id,
        "period": f"{params.days} days",
        "data_points": len(points),
        "current": {
            "apy": format_percent(latest.get("apy") or 0),
            "tvl": format_usd(latest.get("tvlUsd") or 0),
            "date": _day(latest),
        },
        "statistics": {
            "apy": calculate_apy_stats([p.get("apy") or 0 for p in points]),
            "tvl": calculate_tvl_stats([p.get("tvlUsd") or 0 for p in points]),
        },
        "timeline": [
            {
                "date": _day(p),
                "apy": format_percent(p.get("apy") or 0),
                "tvl": format_usd(p.get("tvlUsd") or 0),
                "apy_base": format_percent(p["apyBase"]) if p.get("apyBase") else "N/A",
                "apy_reward": format_percent(p["apyReward"]) if p.get("apyReward") else "N/A",
            }
            for p in points
        ],
    }


class CompareYieldHistoryParams(BaseModel):
    pool_ids: list[str] = Field(min_length=2, max_length=5, description="2-5 DefiLlama pool ids")
    days: int = Field(default=30, ge=1, le=365, description="Days of history to analyze")
    sort_by: Literal["apy", "volatility", "stability", "tvl"] = Field(
        default="apy", description="Metric to sort the comparison by"
    )


def _pool_report(pool_id: str, points: list[dict]) -> dict:
    apys = [p.get("apy") or 0 for p in points]
    tvls = [p.get("tvlUsd") or 0 for p in points]
    summary = apy_summary(apys)
    stability = calculate_stability_score(summary["average"], summary["volatility"])
    latest = points[-1]

    return {
        "pool_id": pool_id,
        "project": "",
        "symbol": "",
        "chain": "",
        "current": {
            "apy": format_percent(latest.get("apy") or 0),
            "tvl": format_usd(latest.get("tvlUsd") or 0),
        },
        "statistics": {"apy": calculate_apy_stats(apys), "tvl": calculate_tvl_stats(tvls)},
        "performance": {
            "apy_change": signed_percent(apys[-1] - apys[0]),
            "stability_score": round(stability, 2),
        },
        "_avg_apy": summary["average"],
        "_volatility": summary["volatility"],
        "_avg_tvl": sum(tvls) / len(tvls),
    }


async def _compare_yield_history(client, params: CompareYieldHistoryParams) -> dict:
    histories = await asyncio.gather(
        *[_windowed_history(client, pool_id, params.days) for pool_id in params.pool_ids]
    )
    reports = [_pool_report(pid, pts) for pid, pts in zip(params.pool_ids, histories)]

    metadata = {p.get("pool"): p for p in await fetch_defillama_pools(client)}
    for report in reports:
        pool = metadata.get(report["pool_id"])
        if pool:
            report["project"] = pool.get("project") or ""
            report["symbol"] = pool.get("symbol") or ""
            report["chain"] = pool.get("chain") or ""

    by_apy = sorted(reports, key=lambda r: r["_avg_apy"], reverse=True)
    by_volatility = sorted(reports, key=lambda r: r["_volatility"])
    by_stability = sorted(reports, key=lambda r: r["performance"]["stability_score"], reverse=True)
    by_tvl = sorted(reports, key=lambda r: r["_avg_tvl"], reverse=True)

    for rank, report in enumerate(by_apy, 1):
        report["performance"]["apy_rank"] = rank
    for rank, report in enumerate(by_volatility, 1):
        report["performance"]["volatility_rank"] = rank

    ordered = {
        "apy": by_apy,
        "volatility": by_volatility,
        "stability": by_stability,
        "tvl": by_tvl,
    }[params.sort_by]

    def label(r: dict) -> str:
        return f"{r['project']} {r['symbol']}"

    details = [{k: v for k, v in r.items() if not k.startswith("_")} for r in ordered]
    return {
        "count": len(reports),
        "period": f"{params.days} days",
        "sorted_by": params.sort_by,
        "best_for": {
            "highest_avg_apy": label(by_apy[0]),
            "lowest_volatility": label(by_volatility[0]),
            "best_stability": label(by_stability[0]),
        },
        "pools": [
            {
                "pool_id": r["pool_id"],
                "name": label(r),
                "chain": r["chain"],
                "current_apy": r["current"]["apy"],
                "avg_apy": r["statistics"]["apy"]["average"],
                "volatility": r["statistics"]["apy"]["volatility"],
                "stability_score": r["performance"]["stability_score"],
                "apy_rank": r["performance"]["apy_rank"],
                "volatility_rank": r["performance"]["volatility_rank"],
                "tvl_avg": r["statistics"]["tvl"]["average"],
                "apy_change": r["performance"]["apy_change"],
            }
            for r in ordered
        ],
        "details": details,
    }


def yield_tools():
    return create_tool_collection([
        create_tool(
            name="get_yields",
            description=(
                "Finds and ranks current DeFi yield opportunities from DefiLlama. Filter by chain, "
                "project, symbol, stablecoin, minimum APY, maximum risk, protocol or asset."
            ),
            parameters=YieldParams,
            execute=_get_yields,
            supported_chains=SUPPORTED_CHAINS,
        ),
        create_tool(
            name="compare_yields",
            description=(
                "Compares yield opportunities for specific assets across protocols, with "
                "projected earnings when an amount and duration are given."
            ),
            parameters=CompareYieldParams,
            execute=_compare_yields,
            supported_chains=SUPPORTED_CHAINS,
        ),
        create_tool(
            name="get_yield_history",
            description="Fetches and analyzes historical APY and TVL for one DefiLlama pool.",
            parameters=YieldHistoryParams,
            execute=_get_yield_history,
            supported_chains=SUPPORTED_CHAINS,
        ),
        create_tool(
            name="compare_yield_history",
            description=(
                "Compares historical yield performance of 2-5 pools: average APY, volatility, "
                "stability score and TVL, with rankings."
            ),
            parameters=CompareYieldHistoryParams,
            execute=_compare_yield_history,
            supported_chains=SUPPORTED_CHAINS,
        ),
    ])
