"""
Plain-text page scraping with BeautifulSoup.
"""

import re

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ProviderError

_WHITESPACE = re.compile(r"\s+")


class ScrapeParams(BaseModel):
    website: str = Field(pattern=r"^https?://", description="Absolute http(s) URL of the page")


def extract_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    root = soup.body or soup
    return _WHITESPACE.sub(" ", root.get_text(" ")).strip()


async def _scrape_web_content(client, params: ScrapeParams) -> dict:
    async with client.http() as http:
        resp = await http.get(params.website)
    if not resp.is_success:
        raise ProviderError(
            params.website, resp.status_code, f"Failed to fetch URL (status: {resp.status_code})."
        )
    return {"website": params.website, "text": extract_text(resp.text)}


def web_tools():
    return create_tool_collection([
        create_tool(
            name="scrape_web_content",
            description=(
                "Given a URL, fetch the page's HTML and return its main text content "
                "with scripts and styles removed."
            ),
            parameters=ScrapeParams,
            execute=_scrape_web_content,
        ),
    ])
