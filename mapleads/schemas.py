"""
Maps Lead Extractor - Pydantic Data Schemas

Core data models for listing records. RawRecord is whatever the detail panel
showed at extraction time; BusinessRecord is the validated unit handed to the
sinks. Serialized with ``by_alias=True`` the records use the camelCase field
names the dataset/CSV consumers expect (businessName, mapsUrl, ...).
"""

import re
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class EmailSource(str, Enum):
    """Where a record's emails came from."""
    WEBSITE = "website"
    GOOGLE_PROFILE = "google_profile"
    NOT_FOUND = "not_found"


class RawRecord(BaseModel):
    """
    Fields as read from one detail panel.

    Every value is optional and untrusted; the Validator turns it into a
    BusinessRecord or rejects it.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[str] = None
    review_count: Optional[str] = None
    category: Optional[str] = None
    price_level: Optional[str] = None
    price_range: Optional[str] = None
    maps_url: Optional[str] = None
    business_hours: Optional[Dict[str, Any]] = None
    emails: List[str] = Field(default_factory=list)
    email_source: Optional[EmailSource] = None


class BusinessRecord(BaseModel):
    """
    Validated business listing.

    Identity for dedup is ``maps_url``. The Email Discovery Engine assigns
    ``emails``/``email_source`` once after the walk; assignments are
    re-validated.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    business_name: str = Field(..., description="Business name from the detail heading")
    address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0
    category: Optional[str] = None
    price_level: Optional[str] = None
    price_range: Optional[str] = None
    maps_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    business_hours: Optional[Dict[str, str]] = None
    emails: List[str] = Field(default_factory=list)
    email_source: EmailSource = EmailSource.NOT_FOUND

    @field_validator("business_name")
    @classmethod
    def validate_business_name(cls, v):
        if not v or not v.strip():
            raise ValueError("business_name cannot be empty")
        return v.strip()

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if v is not None and not (0 <= v <= 5):
            raise ValueError("rating must be within [0, 5]")
        return v

    @field_validator("review_count")
    @classmethod
    def validate_review_count(cls, v):
        if v < 0:
            raise ValueError("review_count must be non-negative")
        return v

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(cls, v):
        if v is None:
            return v
        unknown = [day for day in v if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown weekday keys: {unknown}")
        return v or None

    @model_validator(mode="after")
    def validate_coordinates(self):
        lat, lng = self.latitude, self.longitude
        if (lat is None) != (lng is None):
            raise ValueError("latitude and longitude must be both set or both null")
        if lat is not None and not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise ValueError("coordinates out of range")
        return self

    def to_export_dict(self) -> Dict[str, Any]:
        """camelCase dict with enum values, as consumed by the sinks."""
        return self.model_dump(by_alias=True, mode="json")


class FilterCriteria(BaseModel):
    """User inclusion thresholds. Zero or empty disables a filter."""
    min_rating: float = Field(default=0, ge=0, le=5)
    min_reviews: int = Field(default=0, ge=0)
    price_levels: List[str] = Field(default_factory=list)
    min_price: int = Field(default=0, ge=0)
    max_price: int = Field(default=0, ge=0)


class EmailBlacklist(BaseModel):
    """Placeholder/system addresses to drop: blocked domains and regex patterns."""
    model_config = ConfigDict(frozen=True)

    domains: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list)

    @field_validator("domains")
    @classmethod
    def normalize_domains(cls, v):
        return [d.strip().lower() for d in v if d and d.strip()]

    @field_validator("patterns")
    @classmethod
    def validate_patterns(cls, v):
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid blacklist pattern {pattern!r}: {e}")
        return v

    @cached_property
    def compiled_patterns(self) -> List[Pattern[str]]:
        return [re.compile(p) for p in self.patterns]

    def blocks(self, email: str) -> bool:
        # Domains match the host part exactly or as a parent domain
        host = email.rpartition("@")[2].lower()
        if any(host == domain or host.endswith("." + domain) for domain in self.domains):
            return True
        return any(p.search(email) for p in self.compiled_patterns)
