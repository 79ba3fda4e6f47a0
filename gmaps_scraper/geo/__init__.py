"""
Geographic utilities module.

- distance.py: Haversine distance and radius-to-zoom mapping
- nominatim.py: Location geocoding via OpenStreetMap Nominatim API
"""

from .distance import calculate_distance, zoom_from_radius, EARTH_RADIUS_METERS
from .nominatim import GeocodeResult, NominatimGeocoder, geocode_or_raise
