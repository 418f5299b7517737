from typing import Optional

from defitools.tools.yields.constants import RISK_THRESHOLDS

CHAIN_NAMES = {
    1: "Ethereum",
    10: "Optimism",
    137: "Polygon",
    42161: "Arbitrum",
    8453: "Base",
    43114: "Avalanche",
    56: "BSC",
    250: "Fantom",
    100: "Gnosis",
    1399811149: "Solana",
    1101: "Polygon zkEVM",
    324: "zkSync Era",
}

# DefiLlama labels pools by chain name; this maps the name back to a chain id.
CHAIN_ID_MAP = {name: chain_id for chain_id, name in CHAIN_NAMES.items()}

PROJECT_FILTERS = {
    "Aave": "aave",
    "Compound": "compound",
    "Morpho": "morpho",
    "SparkLend": "spark",
    "Lido": "lido",
    "RocketPool": "rocket-pool",
}


def assess_risk(apy: float) -> str:
    if apy > RISK_THRESHOLDS["medium"]:
        return "high"
    if apy > RISK_THRESHOLDS["low"]:
        return "medium"
    return "low"


def get_chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")


def get_project_filter(protocol: str) -> Optional[str]:
    return PROJECT_FILTERS.get(protocol)


def pool_apy(pool: dict) -> float:
    """Total APY, falling back to base APY, then 0."""
    if pool.get("apy") is not None:
        return pool["apy"]
    if pool.get("apyBase") is not None:
        return pool["apyBase"]
    return 0.0


def signed_percent(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{'+' if value > 0 else ''}{value:.2f}%"


def calculate_projected_earnings(amount: float, apy: float, days: float) -> float:
    """Earnings on ``amount`` over ``days`` with the APY compounded daily."""
    daily_rate = (1 + apy / 100) ** (1 / 365) - 1
    return amount * ((1 + daily_rate) ** days - 1)
