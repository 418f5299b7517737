from dataclasses import dataclass

from defitools.chains import ARBITRUM, BASE, MAINNET, OPTIMISM, POLYGON

PROVIDER = "DefiLlama"

SUPPORTED_CHAINS = (MAINNET, OPTIMISM, ARBITRUM, BASE, POLYGON)

SUPPORTED_YIELD_PROTOCOLS = (
    "Aave",
    "Compound",
    "Morpho",
    "SparkLend",
    "Lido",
    "RocketPool",
    "DefiLlama",
)

POOLS_URL = "https://yields.llama.fi/pools"
POOL_CHART_URL = "https://yields.llama.fi/chart/{pool_id}"

# Upper APY bounds (percent) for each risk bucket; anything above "medium" is high.
RISK_THRESHOLDS = {
    "low": 4,
    "medium": 10,
}
RISK_LEVELS = {"low": 1, "medium": 2, "high": 3}


@dataclass
class YieldData:
    protocol: str
    asset: str
    symbol: str
    apy: float
    tvl: float
    chain: int
    risk: str
