"""
Extraction module for collecting businesses from Google Maps pages.

- search.py: Search URL construction per search mode
- collector.py: Scroll-paginated collection of place URLs
- page.py: Place page snapshot and record extraction
- details.py: Bounded-concurrency detail fetching with timeout/retry
- filters.py: Postal-code and radius acceptance
"""

from .search import build_search_url, build_coordinate_search_url, build_text_search_url
from .collector import UrlCollector, CollectorState, collect_listing_urls, collection_target
from .page import extract_business, take_snapshot
from .details import DetailFetcher, FetchOutcome, fetch_details
from .filters import postal_match_kind, matches_postal_code, within_radius, distance_from
