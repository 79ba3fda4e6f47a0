"""
Parsers module for normalizing Google Maps page data.

- address.py: Address splitting, phone and email cleanup
- urls.py: Coordinates, place ids and listing URLs from Maps URLs
- hours.py: Opening hours from labels, section text and status
- place.py: Field strategy table turning a page snapshot into a BusinessRecord
"""

from .address import parse_address, format_phone_number, extract_email
from .urls import extract_coordinates_from_url, extract_place_id, normalize_listing_url
from .hours import parse_opening_hours, parse_copy_hours_labels, parse_hours_text, parse_hours_status
from .place import FIELD_STRATEGIES, resolve_field, accumulate_field, build_business_record
