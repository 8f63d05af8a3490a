# ─────────────────────────────────────────────────────────────────────────────
# Playwright backend for AutomationClient — one Chromium, one page
# ─────────────────────────────────────────────────────────────────────────────


from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from scienceing_proxy.browser.protocol import ResponseHandler
from scienceing_proxy.exceptions import NavigationError, NavigationTimeoutError

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

    from scienceing_proxy.config import Settings

logger = structlog.get_logger(__name__)

_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
]
_VIEWPORT = {"width": 1920, "height": 1080}


class PlaywrightAutomationClient:
    """AutomationClient backed by a single Playwright Chromium page."""

    def __init__(self, playwright: Playwright, browser: Browser, page: Page) -> None:
        self._playwright = playwright
        self._browser = browser
        self._page = page
        self._closed = False

    @classmethod
    async def launch(cls, settings: Settings) -> PlaywrightAutomationClient:
        """Start Playwright, launch Chromium and open the working page."""
        logger.info("browser_launching", headless=settings.browser_headless)
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=settings.browser_headless,
                args=_CHROMIUM_ARGS,
            )
            page = await browser.new_page(
                viewport=_VIEWPORT,
                user_agent=settings.browser_user_agent,
            )
        except BaseException:
            await playwright.stop()
            raise
        logger.info("browser_ready")
        return cls(playwright, browser, page)

    @property
    def is_ready(self) -> bool:
        return not self._closed and self._browser.is_connected()

    @property
    def current_url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout_s: float) -> None:
        """Navigate and wait for the load event; callers wait on their own signals after."""
        try:
            await self._page.goto(url, wait_until="load", timeout=timeout_s * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(url, timeout_s) from exc
        except PlaywrightError as exc:
            raise NavigationError(url, exc.message) from exc

    async def wait(self, seconds: float) -> None:
        await self._page.wait_for_timeout(seconds * 1000)

    async def wait_for_selector(self, selector: str, timeout_s: float) -> bool:
        """True once the selector is attached, False if it never shows up."""
        try:
            await self._page.wait_for_selector(
                selector, state="attached", timeout=timeout_s * 1000
            )
        except PlaywrightTimeoutError:
            return False
        return True

    async def click(self, selector: str) -> None:
        await self._page.click(selector)

    async def type_text(self, selector: str, text: str, delay_s: float = 0.0) -> None:
        await self._page.locator(selector).first.press_sequentially(text, delay=delay_s * 1000)

    def add_response_listener(self, handler: ResponseHandler) -> None:
        self._page.on("response", handler)

    def remove_response_listener(self, handler: ResponseHandler) -> None:
        self._page.remove_listener("response", handler)

    async def page_count(self) -> int:
        if not self.is_ready:
            return 0
        return sum(len(context.pages) for context in self._browser.contexts)

    async def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        logger.info("browser_closed")
