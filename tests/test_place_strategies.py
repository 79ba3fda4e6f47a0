"""Tests for the place page field strategy table."""

import pytest

from gmaps_scraper.models import Coordinates
from gmaps_scraper.parsers.place import (
    FIELD_STRATEGIES,
    accumulate_field,
    build_business_record,
    resolve_field,
)

PLACE_URL = "https://www.google.com/maps/place/Blue+Bottle/@37.422,-122.084,17z/data=!3m1!1s0x808f:0x1a2b!8m2"


def test_name_prefers_primary_heading():
    assert resolve_field("name", {"h1_primary": "Blue Bottle", "h1_any": "Other"}) == "Blue Bottle"
    assert resolve_field("name", {"h1_primary": "  ", "h1_any": "Fallback Cafe"}) == "Fallback Cafe"
    assert resolve_field("name", {}) is None


def test_type_from_category_then_button_keywords():
    assert resolve_field("type", {"category_text": "Coffee shop"}) == "Coffee shop"
    snapshot = {"button_texts": ["Directions", "Save", "Pizza restaurant"]}
    assert resolve_field("type", snapshot) == "Pizza restaurant"


def test_rating_from_stars_then_secondary_text():
    assert resolve_field("rating", {"star_labels": ["4.5 stars"]}) == 4.5
    assert resolve_field("rating", {"star_labels": [], "rating_text": "4.3"}) == 4.3
    assert resolve_field("rating", {"rating_text": "no rating"}) is None


def test_reviews_count_strategies_in_order():
    assert resolve_field("reviews_count", {"review_labels": ["1,234 reviews"]}) == 1234
    assert resolve_field("reviews_count", {"body_text": "Blue Bottle 4.5 (2,345) Coffee"}) == 2345
    assert resolve_field("reviews_count", {"reviews_button_label": "87 reviews"}) == 87


def test_price_level_from_label_then_dollar_run():
    assert resolve_field("price_level", {"priced_labels": ["Moderately priced"]}) == "Moderately priced"
    assert resolve_field("price_level", {"body_text": "Coffee shop · $$ · Open"}) == "$$"
    assert resolve_field("price_level", {"body_text": "Costs $5"}) is None


def test_first_non_empty_strategy_wins_without_merging():
    snapshot = {
        "address_labels": ["Address: 1 Main St, Springfield, IL 62704, USA"],
        "address_button": {"label": "Address: 9 Other Rd", "text": "9 Other Rd"},
    }
    assert resolve_field("address", snapshot) == "1 Main St, Springfield, IL 62704, USA"


def test_address_from_control_label_or_text():
    assert resolve_field("address", {"address_button": {"label": "Address: 9 Other Rd", "text": ""}}) == "9 Other Rd"
    assert resolve_field("address", {"address_button": {"label": "", "text": "9 Other Rd"}}) == "9 Other Rd"


def test_phone_and_website():
    assert resolve_field("phone", {"phone_button": {"label": "Phone: +1 555-123-4567", "text": ""}}) == "+1 555-123-4567"
    assert resolve_field("website", {"website_links": [], "authority_link": "https://bluebottle.com/"}) == "https://bluebottle.com/"


def test_plus_code():
    assert resolve_field("plus_code", {"plus_code_labels": ["Plus code: CW4F+2M Austin"]}) == "CW4F+2M Austin"


def test_opening_hours_strategies():
    copy_labels = {"copy_hours_labels": ["Monday, 9 AM to 5 PM, Copy open hours"]}
    assert resolve_field("opening_hours", copy_labels) == [{"day": "Monday", "hours": "9 AM–5 PM"}]

    section = {"hours_section_text": "Monday9 AM–5 PM"}
    assert resolve_field("opening_hours", section) == [{"day": "Monday", "hours": "9 AM–5 PM"}]

    status = {"hours_label": "Hours Open · Closes 5 PM Show open hours for the week"}
    assert resolve_field("opening_hours", status) == [{"day": "Current", "hours": "Open · Closes 5 PM"}]


def test_image_requires_content_host():
    snapshot = {"image_sources": ["https://maps.gstatic.com/icon.png", "https://lh5.googleusercontent.com/p/abc=w400"]}
    assert resolve_field("image_url", snapshot) == "https://lh5.googleusercontent.com/p/abc=w400"


def test_description_from_about_then_known_for():
    assert resolve_field("description", {"about_text": "Roastery and cafe"}) == "Roastery and cafe"
    assert resolve_field("description", {"known_for_label": "Known for pour-over · Cozy"}) == "Known for pour-over"


def test_whatsapp_and_email():
    assert resolve_field("whatsapp", {"whatsapp_hrefs": ["https://wa.me/15551234567"]}) == "+15551234567"
    assert resolve_field("email", {"mailto_hrefs": ["mailto:hello@bluebottle.com"]}) == "hello@bluebottle.com"


def test_coordinates_from_url_then_metadata_as_a_pair():
    assert resolve_field("coordinates", {"url": PLACE_URL}) == Coordinates(37.422, -122.084)

    snapshot = {"url": "https://www.google.com/maps/place/X", "meta_latitude": "40.1", "meta_longitude": "-75.2"}
    assert resolve_field("coordinates", snapshot) == Coordinates(40.1, -75.2)

    half = {"url": "https://www.google.com/maps/place/X", "meta_latitude": "40.1", "meta_longitude": None}
    assert resolve_field("coordinates", half) is None


def test_amenities_accumulate_across_sources():
    snapshot = {
        "body_text": "Dine-in · Takeaway · Delivery",
        "group_labels": ["Serves dine-in", "Serves dine-in", "Accessibility"],
    }
    assert accumulate_field("amenities", snapshot) == ["Dine-in", "Takeaway", "Delivery", "Serves dine-in"]


def test_failing_strategy_counts_as_empty():
    def broken(snapshot):
        raise TypeError("bad snapshot")

    table = {"name": (broken, lambda s: "Recovered")}
    assert resolve_field("name", {}, strategies=table) == "Recovered"


def test_every_field_has_strategies():
    for field_name, strategies in FIELD_STRATEGIES.items():
        assert strategies, field_name


def test_build_business_record_full_snapshot():
    snapshot = {
        "url": PLACE_URL,
        "h1_primary": "Blue Bottle",
        "category_text": "Coffee shop",
        "star_labels": ["4.6 stars"],
        "review_labels": ["1,204 reviews"],
        "address_labels": ["Address: 1 Main St, Springfield, IL 62704, USA"],
        "phone_labels": ["Phone: +1 (555) 123-4567"],
        "website_links": ["https://bluebottle.com/"],
        "body_text": "Blue Bottle · $$ · Dine-in",
        "mailto_hrefs": [],
    }
    record = build_business_record(snapshot, scraped_at="2024-05-01T12:00:00+00:00")

    assert record.name == "Blue Bottle"
    assert record.type == "Coffee shop"
    assert record.rating == 4.6
    assert record.reviews_count == 1204
    assert record.total_reviews == 1204
    assert record.price_level == "$$"
    assert record.phone == "+15551234567"
    assert record.address.city == "Springfield"
    assert record.address.zip_code == "62704"
    assert record.coordinates == Coordinates(37.422, -122.084)
    assert record.place_id == "0x808f:0x1a2b"
    assert record.google_maps_url == PLACE_URL
    assert record.amenities == ["Dine-in"]
    assert record.email == ""
    assert record.scraped_at == "2024-05-01T12:00:00+00:00"


def test_build_business_record_empty_snapshot():
    record = build_business_record({})

    assert record.name == ""
    assert record.rating is None
    assert record.reviews_count == 0
    assert record.coordinates is None
    assert record.opening_hours == []
    assert record.scraped_at


@pytest.mark.parametrize("snapshot", [
    {"star_labels": "4.5 stars", "button_texts": [None, 5]},
    {"address_button": "not a dict", "image_sources": [None, 3]},
    {"review_labels": [None], "whatsapp_hrefs": [None]},
])
def test_build_business_record_tolerates_malformed_snapshot(snapshot):
    record = build_business_record(snapshot)
    assert record.name == ""
