"""
Distance Calculations

Great-circle distance between coordinates and radius-to-zoom mapping for
coordinate-anchored Google Maps URLs.
"""

import math

EARTH_RADIUS_METERS = 6371e3

# (max radius in meters, zoom level), checked in order
_ZOOM_STEPS = (
    (500, 16),
    (1000, 15),
    (2000, 14),
    (5000, 13),
    (10000, 12),
)


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance between two points.

    Args:
        lat1: Latitude of the first point
        lon1: Longitude of the first point
        lat2: Latitude of the second point
        lon2: Longitude of the second point

    Returns:
        Distance in meters (unrounded)
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def zoom_from_radius(radius_meters: float) -> int:
    """Map zoom level whose viewport roughly covers the given radius."""
    for max_radius, zoom in _ZOOM_STEPS:
        if radius_meters <= max_radius:
            return zoom
    return 11
