"""
Result Filters

Acceptance predicates for postal-code and radius searches.
"""

from typing import Optional

from ..geo import calculate_distance
from ..models import BusinessRecord

POSTAL_EXACT = "exact"
POSTAL_EXTENDED = "extended"
POSTAL_SUBSTRING = "substring"


def postal_match_kind(record: BusinessRecord, zip_code: str) -> Optional[str]:
    """
    How a record's address matches a postal code.

    Args:
        record: Extracted business
        zip_code: Target postal code (e.g., "90401")

    Returns:
        "exact" when the parsed ZIP equals the target,
        "extended" when the parsed ZIP is the target plus a -XXXX suffix,
        "substring" when the target only appears somewhere in the full address,
        None when it does not match
    """
    zip_code = (zip_code or "").strip()
    if not zip_code:
        return None

    parsed = record.address.zip_code
    if parsed == zip_code:
        return POSTAL_EXACT
    if parsed.startswith(f"{zip_code}-"):
        return POSTAL_EXTENDED
    if zip_code in (record.address.full or ""):
        return POSTAL_SUBSTRING
    return None


def matches_postal_code(record: BusinessRecord, zip_code: str) -> bool:
    return postal_match_kind(record, zip_code) is not None


def distance_from(record: BusinessRecord, lat: float, lng: float) -> Optional[float]:
    """Meters from (lat, lng) to the record, None when it has no coordinates."""
    if record.coordinates is None:
        return None
    return calculate_distance(lat, lng, record.coordinates.latitude, record.coordinates.longitude)


def within_radius(record: BusinessRecord, lat: float, lng: float, radius_meters: float) -> bool:
    """
    Accept a record whose coordinates lie within the radius (inclusive).

    Sets record.distance_from_center (rounded meters) on acceptance.
    Records without coordinates are rejected.
    """
    distance = distance_from(record, lat, lng)
    if distance is None or distance > radius_meters:
        return False
    record.distance_from_center = int(round(distance))
    return True
