"""
Google Maps URL Parsers

Place URLs carry the data we need outside the DOM:
    https://www.google.com/maps/place/Blue+Bottle/@37.422,-122.084,17z/data=!4m6!3m5!1s0x808f...:0x1a2b...!8m2!3d37.42!4d-122.08

- @lat,lon        map center (coordinates of the place on a detail page)
- !1s<token>!     feature id, used as the place id
- 0x...:0x...     hex feature pair, fallback place id
"""

import re
from typing import Optional
from urllib.parse import urlparse

from ..models import Coordinates

COORDS_PATTERN = re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")
PLACE_COORDS_PATTERN = re.compile(r"place/[^/]+/@(-?\d+\.\d+),(-?\d+\.\d+)")
PLACE_ID_PATTERN = re.compile(r"!1s([^!]+)")
HEX_PAIR_PATTERN = re.compile(r"place/[^/]+/.*?0x[0-9a-f]+:(0x[0-9a-f]+)", re.IGNORECASE)


def _to_coordinates(match) -> Optional[Coordinates]:
    try:
        lat = float(match.group(1))
        lon = float(match.group(2))
    except (TypeError, ValueError):
        return None
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        return None
    return Coordinates(latitude=lat, longitude=lon)


def extract_coordinates_from_url(url: Optional[str]) -> Optional[Coordinates]:
    """
    Read the @lat,lon segment of a Maps URL.

    Args:
        url: Any Google Maps URL

    Returns:
        Coordinates, or None when the URL has no @lat,lon segment
    """
    if not url:
        return None

    match = COORDS_PATTERN.search(url)
    if match:
        return _to_coordinates(match)

    match = PLACE_COORDS_PATTERN.search(url)
    if match:
        return _to_coordinates(match)

    return None


def extract_place_id(url: Optional[str]) -> str:
    """Best-effort place id from a place URL, "" when none is present."""
    if not url:
        return ""

    match = PLACE_ID_PATTERN.search(url)
    if match:
        return match.group(1)

    match = HEX_PAIR_PATTERN.search(url)
    if match:
        return match.group(1)

    return ""


def normalize_listing_url(href: Optional[str]) -> Optional[str]:
    """Reduce a listing link to origin + path. None for non-place links."""
    if not href or "/maps/place/" not in href:
        return None
    try:
        parsed = urlparse(href)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    if "/maps/place/" not in parsed.path:
        return None
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
