# Search execution: navigate to the result page and capture the signed
# searchList API response the page itself issues.


from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

import structlog

from scienceing_proxy.browser.protocol import AutomationClient, NetworkResponse
from scienceing_proxy.config import Settings
from scienceing_proxy.exceptions import NoApiResponseError
from scienceing_proxy.schemas import SearchData
from scienceing_proxy.scraping.transform import build_search_data

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SearchQuery:
    """One keyword search with its paging options.

    The result page ignores paging parameters; page is used as the
    currentPage fallback when the upstream payload omits it.
    """

    keyword: str
    page: int = 1
    page_size: int = 20
    time_range: str | None = None


def build_search_url(base_url: str, keyword: str) -> str:
    params = urlencode({"k": keyword, "s": 3, "searchType": "en"}, quote_via=quote)
    return f"{base_url.rstrip('/')}/result?{params}"


@asynccontextmanager
async def capture_response(
    client: AutomationClient, url_fragment: str
) -> AsyncIterator[asyncio.Future[Any]]:
    """Observe page traffic until the first JSON response matching url_fragment.

    Yields a future resolved with the decoded payload. The listener is
    removed exactly once on exit, whatever the exit path.
    """
    captured: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    async def _on_response(response: NetworkResponse) -> None:
        if captured.done() or url_fragment not in response.url:
            return
        try:
            payload = await response.json()
        except Exception:
            logger.warning("search_payload_unparseable", url=response.url, exc_info=True)
            return
        if not captured.done():
            logger.info("search_api_captured", url=response.url)
            captured.set_result(payload)

    client.add_response_listener(_on_response)
    try:
        yield captured
    finally:
        client.remove_response_listener(_on_response)
        if not captured.done():
            captured.cancel()


async def execute_search(
    client: AutomationClient, query: SearchQuery, settings: Settings
) -> SearchData:
    """Load the result page and transform the intercepted API payload.

    Raises NavigationError / NavigationTimeoutError from the client, and
    NoApiResponseError when the page never calls the search API in time.
    """
    url = build_search_url(settings.base_url, query.keyword)
    logger.info("search_navigating", keyword=query.keyword, url=url)

    async with capture_response(client, settings.search_api_path) as captured:
        await client.goto(url, timeout_s=settings.search_navigation_timeout_seconds)
        try:
            payload = await asyncio.wait_for(
                captured, timeout=settings.search_capture_timeout_seconds
            )
        except TimeoutError:
            raise NoApiResponseError(settings.search_capture_timeout_seconds) from None

    data = build_search_data(payload, query.keyword, requested_page=query.page)
    logger.info("search_parsed", keyword=query.keyword, articles=len(data.articles))
    return data
