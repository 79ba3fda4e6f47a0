"""
Place Page Field Extraction

Builds a BusinessRecord from a DOM snapshot of a Google Maps place page
(see extraction/page.py for how the snapshot is taken).

Each field has an ordered list of strategies. A strategy is a plain
function snapshot -> value or None. The first strategy returning a
non-empty value wins; later strategies are not consulted and values are
never merged across strategies. Amenities are the exception: every source
contributes.

Snapshot keys:
    url, body_text, h1_primary, h1_any, category_text, button_texts,
    star_labels, rating_text, review_labels, reviews_button_label,
    priced_labels, address_labels, address_button, phone_labels,
    phone_button, website_links, authority_link, plus_code_labels,
    copy_hours_labels, hours_section_text, hours_label, image_sources,
    about_text, known_for_label, group_labels, whatsapp_hrefs,
    mailto_hrefs, meta_latitude, meta_longitude
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from ..config import AMENITY_VOCABULARY, CATEGORY_KEYWORDS, SERVICE_GROUP_TERMS
from ..models import BusinessRecord, Coordinates
from .address import extract_email, format_phone_number, parse_address
from .hours import parse_copy_hours_labels, parse_hours_status, parse_hours_text, parse_opening_hours
from .urls import extract_coordinates_from_url, extract_place_id

Snapshot = Dict[str, Any]
Strategy = Callable[[Snapshot], Any]

STARS_PATTERN = re.compile(r"(\d+\.?\d*)\s*stars?", re.IGNORECASE)
LEADING_NUMBER = re.compile(r"(\d+\.?\d*)")
REVIEWS_PATTERN = re.compile(r"(\d+(?:,\d+)*)\s*reviews?", re.IGNORECASE)
PAREN_COUNT_PATTERN = re.compile(r"\((\d{1,3}(?:,\d{3})*)\)")
PRICE_RUN_PATTERN = re.compile(r"(\${1,4})(?=\s|·|$)")
WHATSAPP_DIGITS = re.compile(r"\d{6,}")


def _text(snapshot: Snapshot, key: str) -> Optional[str]:
    value = snapshot.get(key)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _items(snapshot: Snapshot, key: str) -> List[Any]:
    value = snapshot.get(key)
    return value if isinstance(value, list) else []


def _strip_prefix(label: Optional[str], prefix: str) -> Optional[str]:
    if not label:
        return None
    if label.startswith(prefix):
        label = label[len(prefix):]
    return label.strip() or None


def _first_prefixed(snapshot: Snapshot, key: str, prefix: str) -> Optional[str]:
    for label in _items(snapshot, key):
        if isinstance(label, str):
            return _strip_prefix(label, prefix)
    return None


def _control_value(snapshot: Snapshot, key: str, prefix: str) -> Optional[str]:
    control = snapshot.get(key)
    if not isinstance(control, dict):
        return None
    return _strip_prefix(control.get("label"), prefix) or _strip_prefix(control.get("text"), "")


def _to_int(digits: str) -> Optional[int]:
    try:
        return int(digits.replace(",", ""))
    except (AttributeError, ValueError):
        return None


def _rating(value: str) -> Optional[float]:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return rating if 0 <= rating <= 5 else None


# =============================================================================
# Strategies
# =============================================================================

def name_from_primary_heading(s):
    return _text(s, "h1_primary")


def name_from_any_heading(s):
    return _text(s, "h1_any")


def type_from_category_control(s):
    return _text(s, "category_text")


def type_from_button_keywords(s):
    for text in _items(s, "button_texts"):
        if not isinstance(text, str):
            continue
        text = text.strip()
        if text and any(keyword in text for keyword in CATEGORY_KEYWORDS):
            return text
    return None


def rating_from_star_labels(s):
    for label in _items(s, "star_labels"):
        match = STARS_PATTERN.search(label or "")
        if match:
            return _rating(match.group(1))
    return None


def rating_from_secondary_text(s):
    match = LEADING_NUMBER.search(_text(s, "rating_text") or "")
    return _rating(match.group(1)) if match else None


def reviews_from_labels(s):
    for label in _items(s, "review_labels"):
        match = REVIEWS_PATTERN.search(label or "")
        if match:
            return _to_int(match.group(1))
    return None


def reviews_from_page_text(s):
    match = PAREN_COUNT_PATTERN.search(s.get("body_text") or "")
    return _to_int(match.group(1)) if match else None


def reviews_from_button(s):
    match = REVIEWS_PATTERN.search(_text(s, "reviews_button_label") or "")
    return _to_int(match.group(1)) if match else None


def price_from_priced_label(s):
    for label in _items(s, "priced_labels"):
        if isinstance(label, str) and label.strip():
            return label.strip()
    return None


def price_from_dollar_run(s):
    match = PRICE_RUN_PATTERN.search(s.get("body_text") or "")
    return match.group(1) if match else None


def address_from_labels(s):
    return _first_prefixed(s, "address_labels", "Address: ")


def address_from_control(s):
    return _control_value(s, "address_button", "Address: ")


def phone_from_labels(s):
    return _first_prefixed(s, "phone_labels", "Phone: ")


def phone_from_control(s):
    return _control_value(s, "phone_button", "Phone: ")


def website_from_labelled_link(s):
    for href in _items(s, "website_links"):
        if isinstance(href, str) and href.strip():
            return href.strip()
    return None


def website_from_authority_link(s):
    return _text(s, "authority_link")


def plus_code_from_labels(s):
    return _first_prefixed(s, "plus_code_labels", "Plus code: ")


def hours_from_copy_buttons(s):
    return parse_copy_hours_labels(_items(s, "copy_hours_labels")) or None


def hours_from_section_text(s):
    return parse_hours_text(s.get("hours_section_text")) or None


def hours_from_status_label(s):
    return parse_hours_status(s.get("hours_label")) or None


def image_from_content_host(s):
    for src in _items(s, "image_sources"):
        if not isinstance(src, str):
            continue
        host = urlparse(src).netloc
        if "googleusercontent.com" in host:
            return src
    return None


def description_from_about(s):
    return _text(s, "about_text")


def description_from_known_for(s):
    label = _text(s, "known_for_label")
    if not label:
        return None
    return label.split("·")[0].strip() or None


def whatsapp_from_links(s):
    for href in _items(s, "whatsapp_hrefs"):
        if not isinstance(href, str) or ("wa.me" not in href and "whatsapp" not in href):
            continue
        match = WHATSAPP_DIGITS.search(href)
        if match:
            return f"+{match.group(0)}"
    return None


def email_from_mailto(s):
    for href in _items(s, "mailto_hrefs"):
        email = extract_email(href)
        if email:
            return email
    return None


def coordinates_from_url(s):
    return extract_coordinates_from_url(s.get("url"))


def coordinates_from_metadata(s):
    lat, lon = s.get("meta_latitude"), s.get("meta_longitude")
    if not lat or not lon:
        return None
    try:
        return Coordinates(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError):
        return None


def place_id_from_url(s):
    return extract_place_id(s.get("url")) or None


def amenities_from_vocabulary(s) -> List[str]:
    text = s.get("body_text") or ""
    return [pattern for pattern in AMENITY_VOCABULARY if pattern in text]


def amenities_from_service_groups(s) -> List[str]:
    found = []
    for label in _items(s, "group_labels"):
        if isinstance(label, str) and any(term in label for term in SERVICE_GROUP_TERMS):
            found.append(label)
    return found


# field -> ordered strategies, first non-empty wins
FIELD_STRATEGIES: Dict[str, Sequence[Strategy]] = {
    "name": (name_from_primary_heading, name_from_any_heading),
    "type": (type_from_category_control, type_from_button_keywords),
    "rating": (rating_from_star_labels, rating_from_secondary_text),
    "reviews_count": (reviews_from_labels, reviews_from_page_text, reviews_from_button),
    "price_level": (price_from_priced_label, price_from_dollar_run),
    "address": (address_from_labels, address_from_control),
    "phone": (phone_from_labels, phone_from_control),
    "website": (website_from_labelled_link, website_from_authority_link),
    "plus_code": (plus_code_from_labels,),
    "opening_hours": (hours_from_copy_buttons, hours_from_section_text, hours_from_status_label),
    "image_url": (image_from_content_host,),
    "description": (description_from_about, description_from_known_for),
    "whatsapp": (whatsapp_from_links,),
    "email": (email_from_mailto,),
    "coordinates": (coordinates_from_url, coordinates_from_metadata),
    "place_id": (place_id_from_url,),
}

# field -> strategies whose results are all kept
ACCUMULATING_STRATEGIES: Dict[str, Sequence[Strategy]] = {
    "amenities": (amenities_from_vocabulary, amenities_from_service_groups),
}


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def resolve_field(field: str, snapshot: Snapshot, strategies: Dict[str, Sequence[Strategy]] = None) -> Any:
    """
    Run a field's strategies in order and return the first non-empty value.

    A strategy that trips over a malformed snapshot counts as empty.
    Returns None when every strategy comes up empty.
    """
    table = strategies if strategies is not None else FIELD_STRATEGIES
    for strategy in table.get(field, ()):
        try:
            value = strategy(snapshot)
        except (AttributeError, KeyError, TypeError, ValueError):
            continue
        if not _is_empty(value):
            return value
    return None


def accumulate_field(field: str, snapshot: Snapshot) -> List[str]:
    """Union of every source for an accumulating field, first-seen order."""
    seen = {}
    for strategy in ACCUMULATING_STRATEGIES.get(field, ()):
        try:
            values = strategy(snapshot) or []
        except (AttributeError, KeyError, TypeError, ValueError):
            continue
        for value in values:
            seen.setdefault(value, None)
    return list(seen)


def build_business_record(snapshot: Snapshot, scraped_at: Optional[str] = None) -> BusinessRecord:
    """
    Build a normalized BusinessRecord from a place page snapshot.

    Args:
        snapshot: Raw DOM values (see module docstring)
        scraped_at: ISO-8601 timestamp; defaults to now (UTC)

    Returns:
        BusinessRecord, possibly with empty fields
    """
    def get(field, default):
        value = resolve_field(field, snapshot)
        return default if value is None else value

    url = snapshot.get("url") or ""
    reviews = get("reviews_count", 0)

    return BusinessRecord(
        name=get("name", ""),
        type=get("type", ""),
        phone=format_phone_number(get("phone", "")),
        whatsapp=get("whatsapp", ""),
        email=get("email", ""),
        website=get("website", ""),
        address=parse_address(get("address", "")),
        coordinates=resolve_field("coordinates", snapshot),
        opening_hours=parse_opening_hours(get("opening_hours", [])),
        rating=resolve_field("rating", snapshot),
        reviews_count=reviews,
        total_reviews=reviews,
        price_level=get("price_level", ""),
        description=get("description", ""),
        image_url=get("image_url", ""),
        google_maps_url=url,
        place_id=get("place_id", ""),
        plus_code=get("plus_code", ""),
        amenities=accumulate_field("amenities", snapshot),
        scraped_at=scraped_at or datetime.now(timezone.utc).isoformat(),
    )
