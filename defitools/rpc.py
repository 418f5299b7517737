"""
Minimal read-only JSON-RPC helpers for EVM chains.
"""

from decimal import Decimal, InvalidOperation

import httpx

from defitools.chains import Chain
from defitools.errors import ArgumentError, ParseError, ProviderError
from defitools.http import ensure_ok, json_body

DECIMALS_SELECTOR = "0x313ce567"  # decimals()


async def eth_call(http: httpx.AsyncClient, chain: Chain, to: str, data: str) -> str:
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "eth_call",
        "params": [{"to": to, "data": data}, "latest"],
    }
    resp = ensure_ok(await http.post(chain.rpc_url, json=payload), f"{chain.name} RPC")
    body = json_body(resp, f"{chain.name} RPC")
    if not isinstance(body, dict):
        raise ParseError(f"{chain.name} RPC returned a non-object response for eth_call to {to}")
    error = body.get("error")
    if error:
        message = error.get("message", "") if isinstance(error, dict) else str(error)
        raise ProviderError(f"{chain.name} RPC", resp.status_code, message)
    result = body.get("result")
    if not isinstance(result, str) or not result.startswith("0x"):
        raise ParseError(f"{chain.name} RPC returned no result for eth_call to {to}")
    return result


async def read_erc20_decimals(http: httpx.AsyncClient, chain: Chain, token: str) -> int:
    result = await eth_call(http, chain, token, DECIMALS_SELECTOR)
    if result == "0x":
        raise ParseError(f"{token} on {chain.name} did not return decimals (not an ERC-20?)")
    try:
        return int(result, 16)
    except ValueError as e:
        raise ParseError(f"{token} on {chain.name} returned malformed decimals {result!r}") from e


def parse_amount(amount: str) -> Decimal:
    """A positive, finite decimal amount in whole tokens."""
    try:
        value = Decimal(amount.strip())
    except InvalidOperation as e:
        raise ArgumentError(f"amount {amount!r} is not a decimal number") from e
    if not value.is_finite() or value <= 0:
        raise ArgumentError(f"amount {amount!r} must be a positive, finite number")
    return value


def parse_units(amount: str, decimals: int) -> int:
    """Scale a decimal string ("1.5") to integer base units, like ethers' parseUnits."""
    value = parse_amount(amount)
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ArgumentError(f"amount {amount!r} has more than {decimals} decimal places")
    return int(scaled)
