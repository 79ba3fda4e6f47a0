"""
Browser Session

Owns the Playwright browser and a single context. Pages for URL collection
and detail visits are created from that context, so cookies (including a
dismissed consent dialog) are shared between them.
"""

import asyncio
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from . import config
from .config_manager import ScraperConfig
from .events import EventSink, NullEventSink
from .exceptions import BrowserError


def should_block(resource_type: str, url: str) -> bool:
    """True for heavy resources and tracking hosts that pages never need."""
    if resource_type in config.BLOCKED_RESOURCE_TYPES:
        return True
    host = urlparse(url).hostname or ""
    return any(host == blocked or host.endswith(f".{blocked}") for blocked in config.BLOCKED_TRACKING_HOSTS)


class BrowserSession:
    """
    Async context manager around a Chromium browser.

    Usage:
        async with BrowserSession(ScraperConfig()) as session:
            page = await session.open_page(url)
    """

    def __init__(self, scraper_config: ScraperConfig = None, events: EventSink = None):
        self.config = scraper_config or ScraperConfig()
        self.events = events or NullEventSink()
        self._playwright = None
        self.browser = None
        self.context = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """
        Launch Chromium and create the shared context.

        Raises:
            BrowserError: If the browser cannot be launched
        """
        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                proxy=self.config.playwright_proxy(),
            )
            self.context = await self.browser.new_context(
                locale=config.LOCALE,
                user_agent=config.USER_AGENT,
                viewport=config.VIEWPORT,
            )
            self.context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
            self.context.set_default_timeout(self.config.navigation_timeout_ms)

            if self.config.block_resources:
                await self.context.route("**/*", self._handle_route)
        except PlaywrightError as e:
            await self.close()
            raise BrowserError(f"Failed to launch browser: {e}") from e

    async def _handle_route(self, route):
        request = route.request
        if should_block(request.resource_type, request.url):
            await route.abort()
        else:
            await route.continue_()

    async def close(self):
        """Close context, browser and Playwright. Safe to call twice."""
        for closer in (self.context, self.browser):
            if closer is None:
                continue
            try:
                await closer.close()
            except PlaywrightError:
                pass
        self.context = None
        self.browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def new_page(self):
        if self.context is None:
            raise BrowserError("Browser session is not started")
        return await self.context.new_page()

    async def dismiss_consent(self, page) -> bool:
        """Click through a cookie consent dialog if one is showing."""
        for selector in config.SELECTORS["consent_buttons"]:
            try:
                button = await page.query_selector(selector)
                if button is not None:
                    await button.click()
                    await asyncio.sleep(1.0)
                    return True
            except PlaywrightError:
                continue
        return False

    async def open_page(self, url: str, settle_delay: Optional[float] = None):
        """
        Open a new page at `url`, dismiss consent and let results render.

        Returns:
            The page. The caller closes it.
        """
        page = await self.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError:
            await page.close()
            raise
        await self.dismiss_consent(page)
        delay = self.config.search_settle_delay if settle_delay is None else settle_delay
        await asyncio.sleep(delay)
        return page
