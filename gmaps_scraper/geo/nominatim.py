"""
Nominatim API Integration

Resolves free-text locations to coordinates with the OpenStreetMap
Nominatim API. Failures degrade to None so callers can fall back to a
text search.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import get_proxy_url
from ..events import EventSink, NullEventSink
from ..exceptions import GeocodeError

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "GoogleMapsScraper/1.0"


@dataclass
class GeocodeResult:
    """First Nominatim match for a location query."""
    latitude: float
    longitude: float
    display_name: str = ""


async def geocode_or_raise(
    location_name: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
) -> GeocodeResult:
    """
    Look up a location with Nominatim.

    Args:
        location_name: Free-text location (e.g., "Miami, FL" or "90401, USA")
        client: Optional shared client (a short-lived one is created otherwise)
        timeout: Request timeout in seconds

    Returns:
        GeocodeResult for the first match

    Raises:
        GeocodeError: On HTTP/network failure or when nothing matches
    """
    params = {
        "q": location_name,
        "format": "json",
        "limit": 1,
    }
    headers = {"User-Agent": USER_AGENT}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, proxy=get_proxy_url()) as own_client:
                response = await own_client.get(NOMINATIM_SEARCH_URL, params=params, headers=headers)
        else:
            response = await client.get(NOMINATIM_SEARCH_URL, params=params, headers=headers)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise GeocodeError(f"Geocoding failed for '{location_name}': {e}") from e

    if not isinstance(data, list):
        raise GeocodeError(f"Unexpected geocoder response for '{location_name}': {data!r}")
    if not data:
        raise GeocodeError(f"No results found for: {location_name}")

    result = data[0]
    try:
        return GeocodeResult(
            latitude=float(result["lat"]),
            longitude=float(result["lon"]),
            display_name=result.get("display_name", ""),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GeocodeError(f"Malformed geocoder result for '{location_name}': {e}") from e


class NominatimGeocoder:
    """Geocoder adapter used by the scraper. Never raises; returns None on failure."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, events: EventSink = None, timeout: float = 30.0):
        self.client = client
        self.events = events or NullEventSink()
        self.timeout = timeout

    async def geocode_location(self, location_name: str) -> Optional[GeocodeResult]:
        if not location_name or not location_name.strip():
            return None
        try:
            return await geocode_or_raise(location_name, client=self.client, timeout=self.timeout)
        except GeocodeError as e:
            self.events.warning(f"{e}; using text search")
            return None
