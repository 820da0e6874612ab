"""
Validation and filtering of extracted listings.

The Validator owns its email blacklist (passed in, never read from module
state) and turns RawRecords into BusinessRecords. ``meets_criteria`` applies
the user's inclusion thresholds.

Price filters only exclude records that actually carry price data and fail to
match: price tier and price range are sparse on Maps, and a missing value is
not evidence that the business is out of range.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union
from urllib.parse import urlsplit, urlunsplit

from ..schemas import BusinessRecord, EmailBlacklist, EmailSource, FilterCriteria, RawRecord
from .parsing import (
    DEFAULT_COUNTRY,
    clean_price_range,
    clean_string,
    parse_address,
    parse_coordinates,
    parse_price_numbers,
    parse_rating,
    parse_review_count,
    validate_business_hours,
)


EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
EMAIL_SCAN_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

PRIORITY_PREFIXES = ("info", "contact", "hello", "sales", "support", "admin")


def clean_phone(phone: Optional[str]) -> Optional[str]:
    """Keep digits and '+'; a bare 10-digit number becomes +1XXXXXXXXXX."""
    if not phone:
        return None
    cleaned = re.sub(r"[^\d+]", "", phone)
    if not cleaned.startswith("+") and len(cleaned) == 10:
        cleaned = "+1" + cleaned
    return cleaned or None


def validate_url(url: Optional[str]) -> Optional[str]:
    """Absolute http(s) URL with lowercased scheme/host, or None."""
    if not url or not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    scheme = (parts.scheme or "").lower()
    if scheme not in ("http", "https") or not parts.netloc:
        return None
    path = parts.path or "/"
    return urlunsplit((scheme, parts.netloc.lower(), path, parts.query, parts.fragment))


def prioritize_emails(emails: Iterable[str]) -> Optional[str]:
    """Pick the most business-like address (info@, contact@, ... first)."""
    emails = list(emails or [])
    if not emails:
        return None

    def score(email: str) -> int:
        local = email.split("@")[0].lower()
        for i, prefix in enumerate(PRIORITY_PREFIXES):
            if prefix in local:
                return i
        return len(PRIORITY_PREFIXES)

    return sorted(emails, key=score)[0]


class Validator:
    """Normalizes raw listings and screens emails against a blacklist."""

    def __init__(self, blacklist: Optional[EmailBlacklist] = None, *, default_country: str = DEFAULT_COUNTRY):
        self.blacklist = blacklist or EmailBlacklist()
        self.default_country = default_country

    def validate_email(self, email: Optional[str]) -> Optional[str]:
        if not email or not isinstance(email, str):
            return None
        candidate = email.strip().lower()
        if self.blacklist.blocks(candidate):
            return None
        return candidate if EMAIL_RE.match(candidate) else None

    def validate_emails(self, emails: Iterable[str]) -> List[str]:
        """Validated, deduplicated, in first-seen order."""
        out: List[str] = []
        for email in emails or []:
            valid = self.validate_email(email)
            if valid and valid not in out:
                out.append(valid)
        return out

    def extract_emails_from_html(self, html: Optional[str]) -> List[str]:
        if not html:
            return []
        return self.validate_emails(EMAIL_SCAN_RE.findall(html))

    def validate(self, raw: Union[RawRecord, BusinessRecord]) -> Optional[BusinessRecord]:
        """BusinessRecord for ``raw``, or None when the name is missing.

        Accepts its own output too: re-validating a BusinessRecord returns an
        equal record.
        """
        if isinstance(raw, BusinessRecord):
            raw = self._as_raw(raw)
        name = clean_string(raw.business_name)
        if not name:
            return None

        maps_url = validate_url(raw.maps_url)
        latitude, longitude = parse_coordinates(maps_url)
        address = clean_string(raw.address)
        parts = parse_address(address, default_country=self.default_country)
        emails = self.validate_emails(raw.emails)
        email_source = raw.email_source or EmailSource.NOT_FOUND
        if not emails and email_source == EmailSource.GOOGLE_PROFILE:
            email_source = EmailSource.NOT_FOUND

        return BusinessRecord(
            business_name=name,
            address=address,
            street=parts["street"],
            city=parts["city"],
            state=parts["state"],
            zip=parts["zip"],
            country=parts["country"],
            phone=clean_phone(raw.phone),
            website=validate_url(raw.website),
            rating=parse_rating(raw.rating),
            review_count=parse_review_count(raw.review_count),
            category=clean_string(raw.category),
            price_level=clean_string(raw.price_level),
            price_range=clean_price_range(raw.price_range),
            maps_url=maps_url,
            latitude=latitude,
            longitude=longitude,
            business_hours=validate_business_hours(raw.business_hours),
            emails=emails,
            email_source=email_source,
        )

    @staticmethod
    def _as_raw(record: BusinessRecord) -> RawRecord:
        return RawRecord(
            business_name=record.business_name,
            address=record.address,
            phone=record.phone,
            website=record.website,
            rating=None if record.rating is None else str(record.rating),
            review_count=str(record.review_count),
            category=record.category,
            price_level=record.price_level,
            price_range=record.price_range,
            maps_url=record.maps_url,
            business_hours=record.business_hours,
            emails=list(record.emails),
            email_source=record.email_source,
        )


def meets_criteria(record: BusinessRecord, criteria: Optional[FilterCriteria]) -> bool:
    """Whether ``record`` passes every configured threshold.

    Records lacking a rating, a review count (0) or price data pass the
    corresponding filter.
    """
    if criteria is None:
        return True

    if criteria.min_rating > 0 and record.rating:
        if record.rating < criteria.min_rating:
            return False

    if criteria.min_reviews > 0 and record.review_count:
        if record.review_count < criteria.min_reviews:
            return False

    if criteria.price_levels and record.price_level:
        if record.price_level not in criteria.price_levels:
            return False

    if (criteria.min_price > 0 or criteria.max_price > 0) and record.price_range:
        numbers = parse_price_numbers(record.price_range)
        if numbers:
            # "$50–100" and "$100+" both start at their first number
            lower = numbers[0]
            if criteria.min_price > 0 and lower < criteria.min_price:
                return False
            if criteria.max_price > 0:
                open_ended = "+" in record.price_range
                # Any overlap with the allowed band passes; only a lower bound
                # above the cap excludes.
                if (open_ended or len(numbers) == 2) and lower > criteria.max_price:
                    return False

    return True
