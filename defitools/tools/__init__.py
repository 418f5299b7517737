"""
Tool collection factories, one per provider.

Key-free factories take no arguments. Key-gated factories take their
credentials and raise ConfigurationError when one is missing.
"""

from defitools.tools.across import bridge_tools
from defitools.tools.coinmarketcal import market_event_tools
from defitools.tools.cryptoprices import crypto_price_tools
from defitools.tools.defillama import defillama_tools
from defitools.tools.feargreed import fear_greed_index_tools
from defitools.tools.imagegen import image_gen_tools
from defitools.tools.web import web_tools
from defitools.tools.yields import yield_tools

__all__ = [
    "bridge_tools",
    "crypto_price_tools",
    "defillama_tools",
    "fear_greed_index_tools",
    "image_gen_tools",
    "market_event_tools",
    "web_tools",
    "yield_tools",
]
