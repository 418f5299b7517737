"""
Response helpers shared by every provider wrapper.

Tools call ``ensure_ok`` right after each request and ``json_body`` to decode,
so a non-2xx status always becomes a ProviderError and an undecodable body
always becomes a ParseError.
"""

from typing import Any

import httpx

from defitools.errors import ParseError, ProviderError


def ensure_ok(resp: httpx.Response, provider: str) -> httpx.Response:
    if resp.is_success:
        return resp
    detail = resp.text.strip() or resp.reason_phrase
    raise ProviderError(provider, resp.status_code, detail)


def json_body(resp: httpx.Response, provider: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise ParseError(f"{provider} returned a non-JSON response") from e
