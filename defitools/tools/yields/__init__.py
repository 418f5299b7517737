from defitools.tools.yields.api import fetch_defillama_pools, fetch_pool_historical_data, fetch_protocol_data
from defitools.tools.yields.helpers import assess_risk, calculate_projected_earnings, get_chain_name
from defitools.tools.yields.tools import yield_tools

__all__ = [
    "assess_risk",
    "calculate_projected_earnings",
    "fetch_defillama_pools",
    "fetch_pool_historical_data",
    "fetch_protocol_data",
    "get_chain_name",
    "yield_tools",
]
