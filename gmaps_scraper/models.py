"""
Data models for scraped businesses and search requests.

BusinessRecord serializes with the camelCase keys used by the JSON export
and the HTTP API:

    name, type, phone, whatsapp, email, website,
    address{full, street, city, state, zipCode, country},
    coordinates{latitude, longitude}, openingHours, rating,
    reviewsCount, totalReviews, priceLevel, description, imageUrl,
    googleMapsUrl, placeId, plusCode, amenities, distanceFromCenter,
    scrapedAt
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from . import config
from .exceptions import ConfigurationError

# {"day": "Monday", "hours": "9 AM–5 PM"} or {"raw": "..."}
HoursEntry = Dict[str, str]


@dataclass
class Address:
    """Address split into parts. Unparsed parts are empty strings."""
    full: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "full": self.full,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair. Never half-populated."""
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass
class BusinessRecord:
    """One business extracted from a Google Maps place page."""

    name: str = ""
    type: str = ""
    phone: str = ""
    whatsapp: str = ""
    email: str = ""
    website: str = ""
    address: Address = field(default_factory=Address)
    coordinates: Optional[Coordinates] = None
    opening_hours: List[HoursEntry] = field(default_factory=list)
    rating: Optional[float] = None
    reviews_count: int = 0
    total_reviews: int = 0
    price_level: str = ""
    description: str = ""
    image_url: str = ""
    google_maps_url: str = ""
    place_id: str = ""
    plus_code: str = ""
    amenities: List[str] = field(default_factory=list)
    distance_from_center: Optional[int] = None
    scraped_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys. distanceFromCenter only when set."""
        coords = self.coordinates.to_dict() if self.coordinates else {"latitude": None, "longitude": None}
        data = {
            "name": self.name or "",
            "type": self.type,
            "phone": self.phone,
            "whatsapp": self.whatsapp,
            "email": self.email,
            "website": self.website,
            "address": self.address.to_dict(),
            "coordinates": coords,
            "openingHours": [dict(entry) for entry in self.opening_hours],
            "rating": self.rating,
            "reviewsCount": self.reviews_count,
            "totalReviews": self.total_reviews,
            "priceLevel": self.price_level,
            "description": self.description,
            "imageUrl": self.image_url,
            "googleMapsUrl": self.google_maps_url,
            "placeId": self.place_id,
            "plusCode": self.plus_code,
            "amenities": list(self.amenities),
            "scrapedAt": self.scraped_at,
        }
        if self.distance_from_center is not None:
            data["distanceFromCenter"] = self.distance_from_center
        return data


class SearchType(str, Enum):
    LOCATION = "location"
    ZIPCODE = "zipcode"
    RADIUS = "radius"


@dataclass
class SearchRequest:
    """A search invocation. Which fields are required depends on search_type."""

    search_type: SearchType
    query: str
    max_results: int = config.DEFAULT_MAX_RESULTS
    location: Optional[str] = None
    zip_code: Optional[str] = None
    state: Optional[str] = None
    country_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.search_type, SearchType):
            try:
                self.search_type = SearchType(self.search_type)
            except ValueError:
                raise ConfigurationError(f"Invalid search type: {self.search_type}")

    @classmethod
    def by_location(cls, query: str, location: str, max_results: int = config.DEFAULT_MAX_RESULTS) -> "SearchRequest":
        return cls(SearchType.LOCATION, query, max_results, location=location)

    @classmethod
    def by_zipcode(
        cls,
        query: str,
        zip_code: str,
        state: Optional[str] = None,
        country_name: Optional[str] = None,
        max_results: int = config.DEFAULT_MAX_RESULTS,
    ) -> "SearchRequest":
        return cls(SearchType.ZIPCODE, query, max_results, zip_code=zip_code, state=state, country_name=country_name)

    @classmethod
    def by_radius(
        cls,
        query: str,
        latitude: float,
        longitude: float,
        radius_meters: int = config.DEFAULT_RADIUS_METERS,
        max_results: int = config.DEFAULT_MAX_RESULTS,
    ) -> "SearchRequest":
        return cls(
            SearchType.RADIUS, query, max_results,
            latitude=latitude, longitude=longitude, radius_meters=radius_meters,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_max_results: int = config.DEFAULT_CLI_MAX_RESULTS) -> "SearchRequest":
        """Build a request from the wire shape used by the HTTP API.

        Raises:
            ConfigurationError: If the search type is unknown or a number is malformed.
        """
        raw_type = data.get("searchType") or data.get("search_type") or "location"
        try:
            search_type = SearchType(raw_type)
        except ValueError:
            raise ConfigurationError(f"Invalid search type: {raw_type}")

        def _number(key: str, cast):
            value = data.get(key)
            if value is None or value == "":
                return None
            try:
                return cast(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid value for {key}: {value!r}")

        max_results = _number("maxResults", int)
        request = cls(
            search_type=search_type,
            query=(data.get("query") or "").strip(),
            max_results=max_results if max_results is not None else default_max_results,
            location=data.get("location"),
            zip_code=data.get("zipCode"),
            state=data.get("state"),
            country_name=data.get("countryName"),
            latitude=_number("latitude", float),
            longitude=_number("longitude", float),
            radius_meters=_number("radiusMeters", int),
        )
        if search_type is SearchType.RADIUS and request.radius_meters is None:
            request.radius_meters = config.DEFAULT_RADIUS_METERS
        return request

    def validate(self):
        """Reject an unusable request before any work begins.

        Raises:
            ConfigurationError: On a missing query or missing mode-specific fields.
        """
        if not self.query or not self.query.strip():
            raise ConfigurationError("Query is required")
        if not isinstance(self.max_results, int) or self.max_results < 1:
            raise ConfigurationError("max_results must be a positive integer")

        if self.search_type is SearchType.LOCATION:
            if not self.location or not self.location.strip():
                raise ConfigurationError("Location is required for a location search")
        elif self.search_type is SearchType.ZIPCODE:
            if not self.zip_code or not self.zip_code.strip():
                raise ConfigurationError("ZIP code is required for a zipcode search")
        elif self.search_type is SearchType.RADIUS:
            if self.latitude is None or self.longitude is None:
                raise ConfigurationError("Latitude and longitude are required for a radius search")
            if not -90 <= self.latitude <= 90 or not -180 <= self.longitude <= 180:
                raise ConfigurationError("Coordinates out of range")
            if self.radius_meters is None or self.radius_meters <= 0:
                raise ConfigurationError("radius_meters must be positive")

    def geocode_query(self) -> Optional[str]:
        """Text handed to the geocoder, or None when the mode needs no lookup."""
        if self.search_type is SearchType.LOCATION:
            return self.location
        if self.search_type is SearchType.ZIPCODE:
            text = self.zip_code
            if self.state:
                text = f"{text}, {self.state}"
            if self.country_name:
                text = f"{text}, {self.country_name}"
            return text
        return None

    def describe(self) -> str:
        if self.search_type is SearchType.LOCATION:
            return f'"{self.query}" in "{self.location}"'
        if self.search_type is SearchType.ZIPCODE:
            return f'"{self.query}" in ZIP code "{self.zip_code}"'
        return (f'"{self.query}" within {self.radius_meters}m of '
                f'[{self.latitude}, {self.longitude}]')

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "searchType": self.search_type.value,
            "query": self.query,
            "maxResults": self.max_results,
        }
        optional = {
            "location": self.location,
            "zipCode": self.zip_code,
            "state": self.state,
            "countryName": self.country_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radiusMeters": self.radius_meters,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data
