"""
Detail Page Fetching

Visits place URLs with bounded concurrency. Each visit opens its own page,
runs the extractor under a total time budget and closes the page again.
A failed or timed-out visit is retried, then recorded as a skip; it never
takes the rest of the batch down with it.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from ..config_manager import ScraperConfig
from ..events import EventSink, NullEventSink
from ..exceptions import NavigationTimeoutError
from ..models import BusinessRecord
from .page import extract_business

Extractor = Callable[..., Awaitable[BusinessRecord]]


@dataclass
class FetchOutcome:
    """Result of visiting one place URL."""
    url: str
    record: Optional[BusinessRecord] = None
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.record is not None


class DetailFetcher:
    """
    Fetches place details through a browser session.

    Args:
        session: Object with an async new_page() (see browser.py)
        config: Concurrency, timeout and navigation settings
        events: Event sink for progress and skips
        extractor: async (page, config) -> BusinessRecord
    """

    def __init__(
        self,
        session,
        config: ScraperConfig = None,
        events: EventSink = None,
        extractor: Extractor = extract_business,
    ):
        self.session = session
        self.config = config or ScraperConfig()
        self.events = events or NullEventSink()
        self.extractor = extractor

    async def _visit(self, url: str) -> BusinessRecord:
        page = await self.session.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout_ms)
            return await self.extractor(page, self.config)
        finally:
            try:
                await page.close()
            except Exception:
                pass

    async def fetch_one(self, url: str, retries: int = 0) -> FetchOutcome:
        """Visit a URL, retrying up to `retries` more times on failure."""
        last_error = None
        attempts = 0

        for attempt in range(retries + 1):
            attempts = attempt + 1
            try:
                record = await asyncio.wait_for(self._visit(url), timeout=self.config.page_timeout)
                return FetchOutcome(url=url, record=record, attempts=attempts)
            except asyncio.TimeoutError:
                last_error = NavigationTimeoutError(
                    f"Timed out after {self.config.page_timeout:.0f}s"
                )
            except Exception as e:
                last_error = e

            if attempt < retries:
                self.events.warning(f"Retrying {url}: {last_error}", url=url)

        self.events.error(f"Skipped {url}: {last_error}", url=url)
        return FetchOutcome(url=url, error=str(last_error), attempts=attempts)

    async def fetch_batch(self, urls: Sequence[str], retries: int = 0) -> List[FetchOutcome]:
        """
        Visit every URL with at most config.max_concurrency pages open.

        Args:
            urls: Place URLs to visit
            retries: Retries per URL after the first attempt

        Returns:
            One outcome per URL, in completion order
        """
        if not urls:
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded(url):
            async with semaphore:
                return await self.fetch_one(url, retries)

        outcomes = []
        total = len(urls)
        for future in asyncio.as_completed([bounded(url) for url in urls]):
            outcome = await future
            outcomes.append(outcome)
            self.events.on_event("progress", {
                "phase": "details",
                "current": len(outcomes),
                "total": total,
                "name": outcome.record.name if outcome.ok else "",
                "url": outcome.url,
            })
        return outcomes


async def fetch_details(
    urls: Sequence[str],
    session,
    config: ScraperConfig = None,
    events: EventSink = None,
    retries: int = 0,
    extractor: Extractor = extract_business,
) -> List[FetchOutcome]:
    """Fetch a batch of place URLs. See DetailFetcher.fetch_batch."""
    fetcher = DetailFetcher(session, config, events, extractor)
    return await fetcher.fetch_batch(urls, retries)
