"""
Across Protocol bridge fee quotes.

The REST API wants the amount in the input token's base units, so unless the
caller passes ``decimals`` we read the ERC-20 ``decimals()`` on the origin
chain first.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from defitools.chains import ARBITRUM, BASE, MAINNET, OPTIMISM, POLYGON
from defitools.client import create_tool, create_tool_collection
from defitools.errors import ArgumentError
from defitools.http import ensure_ok, json_body
from defitools.rpc import parse_amount, parse_units, read_erc20_decimals

PROVIDER = "Across"
SUGGESTED_FEES_URL = "https://across.to/api/suggested-fees"
SUPPORTED_CHAINS = (MAINNET, POLYGON, ARBITRUM, OPTIMISM, BASE)

_ADDRESS = r"^0x[0-9a-fA-F]{40}$"


class AcrossQuoteParams(BaseModel):
    input_token: str = Field(pattern=_ADDRESS, description="Token contract on the origin chain")
    output_token: str = Field(pattern=_ADDRESS, description="Token contract on the destination chain")
    origin_chain_id: int = Field(description="Chain id where the input token lives")
    destination_chain_id: int = Field(description="Chain id of the destination chain")
    amount: str = Field(min_length=1, description="Amount to bridge in whole tokens, e.g. '1.5'")
    recipient: Optional[str] = Field(
        default=None, pattern=_ADDRESS, description="Recipient address on the destination chain"
    )
    decimals: Optional[int] = Field(
        default=None, ge=0, le=36, description="Input token decimals; read on-chain when omitted"
    )

    @field_validator("amount")
    @classmethod
    def _positive_finite(cls, value: str) -> str:
        try:
            parse_amount(value)
        except ArgumentError as e:
            raise ValueError(e.message) from e
        return value.strip()


async def _get_across_fee_quote(client, params: AcrossQuoteParams) -> dict:
    origin = client.filter_supported_chains(SUPPORTED_CHAINS, params.origin_chain_id)[0]

    async with client.http() as http:
        decimals = params.decimals
        if decimals is None:
            decimals = await read_erc20_decimals(http, origin, params.input_token)

        query = {
            "inputToken": params.input_token,
            "outputToken": params.output_token,
            "originChainId": params.origin_chain_id,
            "destinationChainId": params.destination_chain_id,
            "amount": str(parse_units(params.amount, decimals)),
        }
        if params.recipient:
            query["recipient"] = params.recipient

        resp = await http.get(SUGGESTED_FEES_URL, params=query)
    return json_body(ensure_ok(resp, PROVIDER), PROVIDER)


def bridge_tools():
    return create_tool_collection([
        create_tool(
            name="get_across_fee_quote",
            description=(
                "Fetches a suggested fee quote for bridging a token between chains "
                "using the Across Protocol REST API."
            ),
            parameters=AcrossQuoteParams,
            execute=_get_across_fee_quote,
            supported_chains=SUPPORTED_CHAINS,
        ),
    ])
