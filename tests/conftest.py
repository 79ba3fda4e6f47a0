"""Shared fakes: browser pages, a browser session, a geocoder and an extractor."""

import asyncio
import copy

import pytest

from gmaps_scraper.config_manager import ScraperConfig
from gmaps_scraper.extraction.collector import LISTING_LINKS_SCRIPT, PAGE_TEXT_SCRIPT, SCROLL_FEED_SCRIPT
from gmaps_scraper.geo import GeocodeResult
from gmaps_scraper.models import Address, BusinessRecord, Coordinates

END_MARKER_TEXT = "Results\nYou've reached the end of the list."


class FakeFeedPage:
    """
    A results page whose feed reveals one batch of links per scroll.

    Args:
        batches: Lists of hrefs; batch i becomes visible after i scrolls
        end_after: Show the end-of-list marker once this many scrolls happened
        grow: Whether the feed height grows while there are batches left
        has_feed: False simulates a page without a scrollable feed
    """

    def __init__(self, batches, end_after=None, grow=True, has_feed=True, fail_on_scroll=None):
        self.batches = batches
        self.end_after = end_after
        self.grow = grow
        self.has_feed = has_feed
        self.fail_on_scroll = fail_on_scroll
        self.scrolls = 0
        self.closed = False

    async def wait_for_selector(self, selector, timeout=None):
        return None

    async def evaluate(self, script, arg=None):
        if script == LISTING_LINKS_SCRIPT:
            visible = []
            for batch in self.batches[:self.scrolls + 1]:
                visible.extend(batch)
            return visible
        if script == PAGE_TEXT_SCRIPT:
            if self.end_after is not None and self.scrolls >= self.end_after:
                return END_MARKER_TEXT
            return "Results"
        if script == SCROLL_FEED_SCRIPT:
            if not self.has_feed:
                return None
            if self.fail_on_scroll is not None and self.scrolls + 1 >= self.fail_on_scroll:
                raise RuntimeError("Target crashed")
            self.scrolls += 1
            if not self.grow:
                return 1000
            return 1000 * min(self.scrolls, max(len(self.batches), 1))
        raise AssertionError(f"unexpected script: {script[:40]}")

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeDetailPage:
    def __init__(self):
        self.url = "about:blank"
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.url = url

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeSession:
    """Stands in for BrowserSession: one results page, fresh detail pages."""

    def __init__(self, candidate_urls, end_after=0):
        self.feed_page = FakeFeedPage([list(candidate_urls)], end_after=end_after)
        self.opened_urls = []
        self.detail_pages = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def open_page(self, url, settle_delay=None):
        self.opened_urls.append(url)
        return self.feed_page

    async def new_page(self):
        page = FakeDetailPage()
        self.detail_pages.append(page)
        return page


class FakeGeocoder:
    def __init__(self, result=None):
        self.result = result
        self.queries = []

    async def geocode_location(self, text):
        self.queries.append(text)
        return self.result


class FakeExtractor:
    """
    Returns a prepared record per URL.

    Args:
        records: url -> BusinessRecord
        fail_times: url -> number of leading attempts that raise
        delays: url -> seconds to sleep before answering
    """

    def __init__(self, records, fail_times=None, delays=None):
        self.records = records
        self.fail_times = dict(fail_times or {})
        self.delays = delays or {}
        self.calls = []
        self.active = 0
        self.peak = 0

    async def __call__(self, page, config=None):
        url = page.url
        self.calls.append(url)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, 0.001))
            if self.fail_times.get(url, 0) > 0:
                self.fail_times[url] -= 1
                raise RuntimeError(f"render failed for {url}")
            return copy.deepcopy(self.records[url])
        finally:
            self.active -= 1


def place_url(name):
    return f"https://www.google.com/maps/place/{name}"


def make_record(name, lat=None, lng=None, zip_code="", full_address=""):
    coords = Coordinates(lat, lng) if lat is not None and lng is not None else None
    return BusinessRecord(
        name=name,
        address=Address(full=full_address, zip_code=zip_code),
        coordinates=coords,
        google_maps_url=place_url(name),
    )


@pytest.fixture
def fast_config():
    """No sleeps, one-per-need batches."""
    return ScraperConfig(
        headless=True,
        proxy_url="",
        max_concurrency=5,
        retry_count=1,
        batch_retries=0,
        scroll_delay=0,
        search_settle_delay=0,
        detail_settle_delay=0,
        min_batch_size=1,
        batch_overfetch_factor=1.0,
        verbose=False,
    )
