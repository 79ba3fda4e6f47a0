"""
Search Orchestrator

Runs a search end to end:

    IDLE -> RESOLVING -> COLLECTING_URLS -> FETCHING_BATCH -> FILTERING
         -> CONVERGED | EXHAUSTED -> DONE

Location searches make a single pass: collect max_results URLs, fetch them
all. Zipcode and radius searches over-collect candidates, then fetch and
filter them in batches until enough records are accepted (CONVERGED) or
the candidates run out (EXHAUSTED).
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from . import config
from .browser import BrowserSession
from .config_manager import ScraperConfig
from .exceptions import BrowserError
from .events import ConsoleEventSink, EventSink
from .extraction.collector import CollectorState, UrlCollector, collection_target
from .extraction.details import DetailFetcher, Extractor, FetchOutcome
from .extraction.filters import POSTAL_SUBSTRING, distance_from, postal_match_kind, within_radius
from .extraction.page import extract_business
from .extraction.search import build_search_url
from .geo import NominatimGeocoder
from .models import BusinessRecord, SearchRequest, SearchType


class SearchState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    COLLECTING_URLS = "collecting_urls"
    FETCHING_BATCH = "fetching_batch"
    FILTERING = "filtering"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    DONE = "done"


@dataclass
class SearchResult:
    """Records from one search plus how the search went."""
    request: SearchRequest
    records: List[BusinessRecord] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)
    final_state: SearchState = SearchState.EXHAUSTED

    @property
    def count(self) -> int:
        return len(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[BusinessRecord]:
        return iter(self.records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "count": self.count,
            "state": self.final_state.value,
            "statistics": dict(self.statistics),
            "results": [record.to_dict() for record in self.records],
        }


def batch_size(need: int, remaining: int, min_batch_size: int, overfetch_factor: float) -> int:
    """Candidates to fetch next: enough to cover what is still needed, with headroom."""
    return min(remaining, max(min_batch_size, math.ceil(need * overfetch_factor)))


class MapsScraper:
    """
    Google Maps business scraper.

    Args:
        scraper_config: Tunables (ScraperConfig() when omitted)
        events: Where progress goes (console when omitted)
        session_factory: () -> async context manager yielding a browser session
        geocoder: Object with async geocode_location(text) -> GeocodeResult | None
        extractor: async (page, config) -> BusinessRecord for detail pages

    Example:
        scraper = MapsScraper()
        result = asyncio.run(scraper.search_by_radius("coffee", 40.7128, -74.0060, 1000))
    """

    def __init__(
        self,
        scraper_config: ScraperConfig = None,
        events: EventSink = None,
        session_factory: Callable[[], Any] = None,
        geocoder=None,
        extractor: Extractor = extract_business,
    ):
        self.config = scraper_config or ScraperConfig()
        self.events = events or ConsoleEventSink(verbose=self.config.verbose)
        self.session_factory = session_factory or (lambda: BrowserSession(self.config, self.events))
        self.geocoder = geocoder or NominatimGeocoder(events=self.events)
        self.extractor = extractor
        self.state = SearchState.IDLE

    def _set_state(self, state: SearchState, **extra):
        self.state = state
        self.events.on_event("state", {"state": state.value, **extra})

    # =========================================================================
    # Public API
    # =========================================================================

    async def search(self, request: SearchRequest) -> SearchResult:
        """
        Run a search.

        Args:
            request: What and where to search

        Returns:
            SearchResult with at most request.max_results records

        Raises:
            ConfigurationError: If the request is invalid (before any work)
        """
        request.validate()

        start_time = time.time()
        statistics = {
            "candidates": 0,
            "inspected": 0,
            "skipped": 0,
            "accepted": 0,
            "rejected": 0,
            "batches": 0,
        }
        if request.search_type is SearchType.ZIPCODE:
            statistics["postal_substring_matches"] = 0
        elif request.search_type is SearchType.RADIUS:
            statistics["outside_radius"] = 0
            statistics["unlocatable"] = 0

        self.state = SearchState.IDLE
        self.events.info("=" * 70)
        self.events.info(f"SEARCHING: {request.describe()}")
        self.events.info("=" * 70)

        self._set_state(SearchState.RESOLVING)
        search_url = await self._resolve(request)
        self.events.info(f"Search URL: {search_url}")

        try:
            async with self.session_factory() as session:
                self._set_state(SearchState.COLLECTING_URLS)
                candidates, collector_state = await self._collect_urls(session, search_url, request)
                statistics["candidates"] = len(candidates)
                if collector_state is not None:
                    statistics["collector_stop_reason"] = collector_state.stop_reason
                    statistics["collector_iterations"] = collector_state.iterations

                fetcher = DetailFetcher(session, self.config, self.events, self.extractor)

                if not candidates:
                    self.events.warning("No businesses found for this search")
                    records, final_state = [], SearchState.EXHAUSTED
                elif request.search_type is SearchType.LOCATION:
                    records, final_state = await self._single_pass(fetcher, candidates, request, statistics)
                else:
                    records, final_state = await self._converge(fetcher, candidates, request, statistics)
        except BrowserError as e:
            self.events.error(f"Browser unavailable: {e}")
            statistics["error"] = str(e)
            records, final_state = [], SearchState.EXHAUSTED

        self._set_state(final_state)

        records = records[:request.max_results]
        statistics["accepted"] = len(records)
        statistics["elapsed_seconds"] = round(time.time() - start_time, 1)

        self._set_state(SearchState.DONE)
        self.events.on_event("complete", {"count": len(records)})

        return SearchResult(request=request, records=records, statistics=statistics, final_state=final_state)

    async def search_by_location(self, query: str, location: str,
                                 max_results: int = config.DEFAULT_MAX_RESULTS) -> SearchResult:
        return await self.search(SearchRequest.by_location(query, location, max_results))

    async def search_by_zipcode(self, query: str, zip_code: str, state: Optional[str] = None,
                                country_name: Optional[str] = None,
                                max_results: int = config.DEFAULT_MAX_RESULTS) -> SearchResult:
        return await self.search(SearchRequest.by_zipcode(query, zip_code, state, country_name, max_results))

    async def search_by_radius(self, query: str, latitude: float, longitude: float,
                               radius_meters: int = config.DEFAULT_RADIUS_METERS,
                               max_results: int = config.DEFAULT_MAX_RESULTS) -> SearchResult:
        return await self.search(SearchRequest.by_radius(query, latitude, longitude, radius_meters, max_results))

    # =========================================================================
    # Phases
    # =========================================================================

    async def _resolve(self, request: SearchRequest) -> str:
        """Geocode where needed and build the starting URL."""
        center = None

        if request.search_type is SearchType.LOCATION:
            result = await self.geocoder.geocode_location(request.geocode_query())
            if result is not None:
                center = (result.latitude, result.longitude)
                self.events.info(f"[OK] Geocoded to {result.latitude:.4f}, {result.longitude:.4f}")

        elif request.search_type is SearchType.ZIPCODE:
            result = await self.geocoder.geocode_location(request.geocode_query())
            if result is not None:
                self.events.info(f"Detected location: {result.display_name}")

        return build_search_url(request, center, self.config.location_radius_meters)

    def _target(self, request: SearchRequest) -> int:
        if request.search_type is SearchType.ZIPCODE:
            return collection_target(request.max_results, self.config.zipcode_target_multiplier)
        if request.search_type is SearchType.RADIUS:
            return collection_target(request.max_results, self.config.radius_target_multiplier)
        return collection_target(request.max_results)

    async def _collect_urls(self, session, search_url: str,
                            request: SearchRequest) -> Tuple[Tuple[str, ...], Optional[CollectorState]]:
        target = self._target(request)
        self.events.info(f"Collecting up to {target} place URLs...")

        try:
            page = await session.open_page(search_url)
        except Exception as e:
            self.events.error(f"Could not open search page: {e}")
            return (), None

        try:
            state = await UrlCollector(page, target, self.config, self.events).run()
        finally:
            try:
                await page.close()
            except Exception:
                pass

        return state.urls(), state

    async def _single_pass(self, fetcher: DetailFetcher, candidates: Sequence[str],
                           request: SearchRequest, statistics: Dict[str, Any]):
        self._set_state(SearchState.FETCHING_BATCH, size=len(candidates))
        outcomes = await fetcher.fetch_batch(candidates, retries=self.config.retry_count)
        statistics["batches"] = 1

        records = self._successful(outcomes, statistics)
        final_state = SearchState.CONVERGED if len(records) >= request.max_results else SearchState.EXHAUSTED
        return records, final_state

    async def _converge(self, fetcher: DetailFetcher, candidates: Sequence[str],
                        request: SearchRequest, statistics: Dict[str, Any]):
        candidates = tuple(candidates)
        accepted: List[BusinessRecord] = []
        position = 0

        while True:
            need = request.max_results - len(accepted)
            if need <= 0:
                return accepted, SearchState.CONVERGED

            remaining = len(candidates) - position
            if remaining <= 0:
                return accepted, SearchState.EXHAUSTED

            size = batch_size(need, remaining, self.config.min_batch_size, self.config.batch_overfetch_factor)
            batch = candidates[position:position + size]
            position += size
            statistics["batches"] += 1

            self._set_state(SearchState.FETCHING_BATCH, size=len(batch), need=need)
            outcomes = await fetcher.fetch_batch(batch, retries=self.config.batch_retries)

            self._set_state(SearchState.FILTERING)
            for record in self._successful(outcomes, statistics):
                if self._accept(request, record, statistics):
                    accepted.append(record)
                else:
                    statistics["rejected"] += 1

            self.events.info(f"Accepted {len(accepted)}/{request.max_results} "
                             f"({position}/{len(candidates)} candidates inspected)")

    def _successful(self, outcomes: Sequence[FetchOutcome], statistics: Dict[str, Any]) -> List[BusinessRecord]:
        records = []
        for outcome in outcomes:
            statistics["inspected"] += 1
            if outcome.ok:
                records.append(outcome.record)
            else:
                statistics["skipped"] += 1
        return records

    def _accept(self, request: SearchRequest, record: BusinessRecord, statistics: Dict[str, Any]) -> bool:
        if request.search_type is SearchType.ZIPCODE:
            kind = postal_match_kind(record, request.zip_code)
            if kind == POSTAL_SUBSTRING:
                statistics["postal_substring_matches"] += 1
            return kind is not None

        if request.search_type is SearchType.RADIUS:
            if within_radius(record, request.latitude, request.longitude, request.radius_meters):
                return True
            if distance_from(record, request.latitude, request.longitude) is None:
                statistics["unlocatable"] += 1
            else:
                statistics["outside_radius"] += 1
            return False

        return True
