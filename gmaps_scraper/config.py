"""
Default configuration for Google Maps Business Scraper.

Module-level defaults used by the library, CLI and server. Every runtime
tunable can be overridden with a GMAPS_* environment variable or through
ScraperConfig (see config_manager.py).
"""

import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Proxy Configuration (optional, used by the browser and the geocoder)
PROXY_HOST = os.environ.get("GMAPS_PROXY_HOST", "")
PROXY_USER = os.environ.get("GMAPS_PROXY_USER", "")
PROXY_PASS = os.environ.get("GMAPS_PROXY_PASS", "")


def get_proxy_url():
    """Get proxy URL. Returns single URL string, or None when not configured."""
    if PROXY_HOST and PROXY_USER and PROXY_PASS:
        return f"http://{PROXY_USER}:{PROXY_PASS}@{PROXY_HOST}"
    if PROXY_HOST:
        return f"http://{PROXY_HOST}"
    return None


# Browser
HEADLESS = _env_bool("GMAPS_HEADLESS", True)
NAVIGATION_TIMEOUT_MS = _env_int("GMAPS_TIMEOUT", 30000)
LOCALE = "en-US"
VIEWPORT = {"width": 1366, "height": 900}
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
)
BLOCK_RESOURCES = _env_bool("GMAPS_BLOCK_RESOURCES", True)
BLOCKED_RESOURCE_TYPES = ("image", "media", "font", "stylesheet")
BLOCKED_TRACKING_HOSTS = (
    "google-analytics.com",
    "googletagmanager.com",
    "doubleclick.net",
    "googleadservices.com",
    "googlesyndication.com",
    "adservice.google.com",
    "facebook.net",
    "hotjar.com",
)

# Search Parameters
DEFAULT_MAX_RESULTS = _env_int("GMAPS_MAX_RESULTS", 100)
DEFAULT_CLI_MAX_RESULTS = 50
DEFAULT_RADIUS_METERS = 1000
LOCATION_SEARCH_RADIUS_METERS = 10000
MAPS_SEARCH_BASE_URL = "https://www.google.com/maps/search/"

# Parallel Processing
DEFAULT_MAX_CONCURRENCY = _env_int("GMAPS_MAX_CONCURRENCY", 5)
MAX_CONCURRENCY_LIMIT = 20
DEFAULT_RETRY_COUNT = _env_int("GMAPS_RETRY_COUNT", 1)
BATCH_RETRIES = 0
PAGE_TIMEOUT_SECONDS = 60.0

# URL Collection
MAX_SCROLL_ATTEMPTS = 100
MAX_STALLED_SCROLLS = 3
SCROLL_DELAY = 0.8
SEARCH_SETTLE_DELAY = 3.0
FEED_WAIT_TIMEOUT_MS = 5000
ZIPCODE_TARGET_MULTIPLIER = 3.0
RADIUS_TARGET_MULTIPLIER = 2.5
END_OF_LIST_MARKERS = (
    "You've reached the end of the list",
    "No more results",
)

# Convergence batches (postal / radius modes)
MIN_BATCH_SIZE = 5
BATCH_OVERFETCH_FACTOR = 1.5

# Detail pages
MAIN_WAIT_TIMEOUT_MS = 10000
DETAIL_SETTLE_DELAY = 0.5
HOURS_EXPAND_DELAY = 0.3

# Output
RESULTS_DIR = os.environ.get("GMAPS_RESULTS_DIR", "results")
RESULTS_FILE_PREFIX = "google_maps_results"

# DOM selectors
SELECTORS = {
    "main": '[role="main"]',
    "feed": 'div[role="feed"]',
    "feed_fallbacks": ('div[role="feed"]', 'div[role="main"]', 'div.PbZDve'),
    "listing_link": 'a[href*="/maps/place/"]',
    "name": 'h1.DUwDvf',
    "category": 'button[jsaction*="category"]',
    "rating_secondary": 'div.F7nice span[aria-hidden="true"]',
    "address": 'button[data-item-id="address"]',
    "phone": 'button[data-item-id*="phone"]',
    "website": 'a[data-item-id="authority"]',
    "hours_button": 'button[aria-label*="Hours"], button[data-item-id*="hours"]',
    "meta_latitude": 'meta[itemprop="latitude"]',
    "meta_longitude": 'meta[itemprop="longitude"]',
    "consent_buttons": (
        'button[aria-label*="Accept all"]',
        'button:has-text("Accept all")',
        'button:has-text("I agree")',
    ),
}

DAYS_OF_WEEK = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)

CATEGORY_KEYWORDS = ("restaurant", "shop", "store", "service", "Pizza", "Hotel")

AMENITY_VOCABULARY = (
    "LGBTQ+ friendly",
    "Wheelchair accessible",
    "Dine-in",
    "Takeaway",
    "Delivery",
    "Outdoor seating",
    "Free WiFi",
    "Parking",
)

SERVICE_GROUP_TERMS = ("dine-in", "takeaway", "delivery")

# CSV Output Columns
CSV_HEADERS = [
    "Business Name",
    "Business Type",
    "Phone",
    "WhatsApp",
    "Email",
    "Website",
    "Full Address",
    "Street",
    "City",
    "State",
    "ZIP Code",
    "Country",
    "Latitude",
    "Longitude",
    "Rating",
    "Reviews Count",
    "Total Reviews",
    "Price Level",
    "Description",
    "Opening Hours",
    "Plus Code",
    "Place ID",
    "Google Maps URL",
    "Image URL",
    "Distance From Center (m)",
    "Amenities",
    "Scraped At",
]

# Output Schema
OUTPUT_SCHEMA = {
    "name": "string",
    "type": "string",
    "phone": "string",
    "whatsapp": "string",
    "email": "string",
    "website": "string",
    "address": "dict",
    "coordinates": "dict",
    "openingHours": "list[dict]",
    "rating": "float",
    "reviewsCount": "integer",
    "totalReviews": "integer",
    "priceLevel": "string",
    "description": "string",
    "imageUrl": "string",
    "googleMapsUrl": "string",
    "placeId": "string",
    "plusCode": "string",
    "amenities": "list[string]",
    "distanceFromCenter": "integer",
    "scrapedAt": "string",
}
