"""
Google Maps Business Scraper

A Python library for extracting business listings from the Google Maps web
interface with a headless browser.

Quick start (library usage):
    import asyncio
    from gmaps_scraper import MapsScraper, ScraperConfig

    scraper = MapsScraper(ScraperConfig(max_concurrency=5))
    result = asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=20))
    for biz in result:
        print(biz.name, biz.address.full)

Export:
    from gmaps_scraper import export_results
    export_results(result.records, "both")
"""

from .config import OUTPUT_SCHEMA
from .config_manager import ScraperConfig
from .exceptions import (
    GMapsScraperError,
    ConfigurationError,
    GeocodeError,
    BrowserError,
    PageUnavailableError,
    NavigationTimeoutError,
)
from .models import Address, BusinessRecord, Coordinates, SearchRequest, SearchType
from .export import export_results, export_to_csv, export_to_json

__version__ = "1.0.0"
__all__ = [
    "MapsScraper",
    "SearchResult",
    "SearchState",
    "ScraperConfig",
    "SearchRequest",
    "SearchType",
    "BusinessRecord",
    "Address",
    "Coordinates",
    "export_results",
    "export_to_json",
    "export_to_csv",
    "OUTPUT_SCHEMA",
    "GMapsScraperError",
    "ConfigurationError",
    "GeocodeError",
    "BrowserError",
    "PageUnavailableError",
    "NavigationTimeoutError",
]


def __getattr__(name):
    """Lazy imports for the orchestrator.

    MapsScraper pulls in Playwright and httpx. Deferring it keeps
    `import gmaps_scraper` cheap for code that only parses or exports.
    """
    if name in ("MapsScraper", "SearchResult", "SearchState"):
        from . import scraper
        return getattr(scraper, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
