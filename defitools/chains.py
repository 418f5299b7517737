"""
EVM chains the tools know how to talk to.

Only the Across fee quote reads chain state (ERC-20 ``decimals()``), so the
RPC URLs below are public endpoints used for read-only ``eth_call``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Chain:
    id: int
    name: str
    rpc_url: str


MAINNET = Chain(1, "Ethereum", "https://eth.llamarpc.com")
OPTIMISM = Chain(10, "Optimism", "https://mainnet.optimism.io")
POLYGON = Chain(137, "Polygon", "https://polygon-rpc.com")
BASE = Chain(8453, "Base", "https://mainnet.base.org")
ARBITRUM = Chain(42161, "Arbitrum", "https://arb1.arbitrum.io/rpc")

DEFAULT_CHAINS: tuple[Chain, ...] = (MAINNET, OPTIMISM, POLYGON, BASE, ARBITRUM)
