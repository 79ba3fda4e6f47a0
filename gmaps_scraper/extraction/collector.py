"""
URL Collector

Collects place URLs from a Google Maps results list by scrolling the feed
until one of these holds:

    target_reached  - enough unique URLs collected
    end_of_list     - Maps shows its end-of-results marker
    stalled         - feed height unchanged for N scrolls in a row
    iteration_cap   - hard cap on iterations
    no_feed         - no scrollable results container on the page
    error           - the browser failed; keep what we have
"""

import asyncio
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import END_OF_LIST_MARKERS, FEED_WAIT_TIMEOUT_MS, SELECTORS
from ..config_manager import ScraperConfig
from ..events import EventSink, NullEventSink
from ..parsers.urls import normalize_listing_url

LISTING_LINKS_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector)).map(a => a.href)
"""

PAGE_TEXT_SCRIPT = """
() => document.body ? document.body.innerText : ''
"""

SCROLL_FEED_SCRIPT = """
(selectors) => {
    for (const selector of selectors) {
        const feed = document.querySelector(selector);
        if (feed) {
            feed.scrollTop = feed.scrollHeight;
            return feed.scrollHeight;
        }
    }
    return null;
}
"""


def collection_target(max_results: int, multiplier: float = 1.0) -> int:
    """Number of URLs to collect so that filtering still leaves max_results."""
    return max(1, math.ceil(max_results * multiplier))


@dataclass
class CollectorState:
    """Progress of one URL collection run."""
    target: int
    collected: Dict[str, None] = field(default_factory=dict)
    previous_height: Optional[int] = None
    no_progress_streak: int = 0
    iterations: int = 0
    stop_reason: Optional[str] = None

    def add(self, hrefs: Iterable[str]) -> int:
        """Add normalized URLs in order. Returns how many were new."""
        added = 0
        for href in hrefs or []:
            url = normalize_listing_url(href)
            if url and url not in self.collected:
                self.collected[url] = None
                added += 1
        return added

    def record_height(self, height: int, max_stalled: int) -> bool:
        """Track feed growth. Returns True when the feed has stalled."""
        if self.previous_height is not None and height == self.previous_height:
            self.no_progress_streak += 1
            return self.no_progress_streak >= max_stalled
        self.no_progress_streak = 0
        self.previous_height = height
        return False

    @property
    def target_reached(self) -> bool:
        return len(self.collected) >= self.target

    def urls(self) -> Tuple[str, ...]:
        return tuple(self.collected)[:self.target]


class UrlCollector:
    """
    Scroll-paginates a results feed that is already open in `page`.

    Args:
        page: Browser page showing a Maps search
        target: Number of unique URLs wanted
        config: Collector limits and delays
        events: Event sink for progress output
    """

    def __init__(self, page, target: int, config: ScraperConfig = None, events: EventSink = None):
        self.page = page
        self.config = config or ScraperConfig()
        self.events = events or NullEventSink()
        self.state = CollectorState(target=target)

    async def _wait_for_feed(self):
        try:
            await self.page.wait_for_selector(SELECTORS["feed"], timeout=FEED_WAIT_TIMEOUT_MS)
        except Exception:
            # Single-result searches open a place page directly, no feed
            pass

    async def _read_links(self) -> List[str]:
        return await self.page.evaluate(LISTING_LINKS_SCRIPT, SELECTORS["listing_link"]) or []

    async def _at_end_of_list(self) -> bool:
        text = await self.page.evaluate(PAGE_TEXT_SCRIPT) or ""
        return any(marker in text for marker in END_OF_LIST_MARKERS)

    async def _scroll_feed(self) -> Optional[int]:
        return await self.page.evaluate(SCROLL_FEED_SCRIPT, list(SELECTORS["feed_fallbacks"]))

    async def run(self) -> CollectorState:
        """Collect until a stop condition holds. Never raises for browser failures."""
        state = self.state
        cfg = self.config

        try:
            await self._wait_for_feed()

            while state.iterations < cfg.max_scroll_attempts:
                state.iterations += 1

                added = state.add(await self._read_links())
                if added:
                    self.events.on_event("progress", {
                        "phase": "collecting",
                        "current": len(state.collected),
                        "total": state.target,
                    })

                if state.target_reached:
                    state.stop_reason = "target_reached"
                    break

                if await self._at_end_of_list():
                    state.stop_reason = "end_of_list"
                    break

                height = await self._scroll_feed()
                if height is None:
                    state.stop_reason = "no_feed"
                    break

                await asyncio.sleep(cfg.scroll_delay)

                if state.record_height(height, cfg.max_stalled_scrolls):
                    state.stop_reason = "stalled"
                    break
            else:
                state.stop_reason = "iteration_cap"

        except Exception as e:
            state.stop_reason = "error"
            self.events.warning(f"URL collection stopped early: {e}")

        self.events.info(
            f"Collected {len(state.urls())} URLs "
            f"({state.stop_reason}, {state.iterations} iterations)"
        )
        return state


async def collect_listing_urls(
    page,
    target: int,
    config: ScraperConfig = None,
    events: EventSink = None,
) -> Tuple[str, ...]:
    """
    Collect up to `target` unique place URLs from an open results page.

    Returns:
        Normalized URLs in discovery order
    """
    state = await UrlCollector(page, target, config, events).run()
    return state.urls()
