"""
Search URL Construction

Builds the Google Maps search URL the URL collector starts from.
Coordinate-anchored searches center the map on a point; text searches
let Maps resolve the place itself.
"""

from typing import Optional
from urllib.parse import quote

from ..config import LOCATION_SEARCH_RADIUS_METERS, MAPS_SEARCH_BASE_URL
from ..geo import zoom_from_radius
from ..models import SearchRequest, SearchType


def _encode(text: str) -> str:
    return quote(text.strip()).replace('%20', '+')


def build_coordinate_search_url(query: str, lat: float, lng: float, radius_meters: float) -> str:
    """
    Build a search URL centered on a point.

    Args:
        query: What to search for (e.g., "coffee")
        lat: Center latitude
        lng: Center longitude
        radius_meters: Radius the viewport should roughly cover

    Returns:
        URL of the form .../maps/search/<query>/@lat,lng,<zoom>z
    """
    zoom = zoom_from_radius(radius_meters)
    return f"{MAPS_SEARCH_BASE_URL}{_encode(query)}/@{lat},{lng},{zoom}z"


def build_text_search_url(query: str, where: str) -> str:
    """Build a search URL for "<query> in <where>"."""
    return f"{MAPS_SEARCH_BASE_URL}{_encode(f'{query} in {where}')}"


def build_search_url(
    request: SearchRequest,
    center: Optional[tuple] = None,
    location_radius_meters: int = LOCATION_SEARCH_RADIUS_METERS,
) -> str:
    """
    Build the starting URL for a search request.

    Args:
        request: The search request
        center: (lat, lng) from the geocoder, used by location searches
        location_radius_meters: Radius used to anchor location searches

    Returns:
        Google Maps search URL
    """
    if request.search_type is SearchType.RADIUS:
        return build_coordinate_search_url(
            request.query, request.latitude, request.longitude, request.radius_meters,
        )

    if request.search_type is SearchType.ZIPCODE:
        return build_text_search_url(request.query, request.zip_code)

    if center is not None:
        lat, lng = center
        return build_coordinate_search_url(request.query, lat, lng, location_radius_meters)

    return build_text_search_url(request.query, request.location)
