"""
Pure parsers from raw panel text to typed values.

No I/O. Malformed input never raises: the field just comes back null (or the
documented default).
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..schemas import WEEKDAYS


DEFAULT_COUNTRY = "United States"

STATE_ZIP_RE = re.compile(r"([A-Z]{2})\s*(\d{5}(-\d{4})?)?")
RATING_RE = re.compile(r"(\d+\.?\d*)")
REVIEW_COUNT_RE = re.compile(r"([\d,]+)")
AT_COORDS_RE = re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")
DATA_COORDS_RE = re.compile(r"!3d(-?\d+\.\d+)!4d(-?\d+\.\d+)")
# aria-label of the per-day controls in the disclosed schedule:
# "Monday, 9:00 AM to 5:00 PM, Copy open hours"
HOURS_LABEL_RE = re.compile(
    r"^(Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday),\s*(.+?),\s*Copy open hours",
    re.IGNORECASE,
)
WHITESPACE_RE = re.compile(r"\s+")


def clean_string(value: Any) -> Optional[str]:
    """Trim and collapse internal whitespace; empty or non-string -> None."""
    if not value or not isinstance(value, str):
        return None
    return WHITESPACE_RE.sub(" ", value.strip()) or None


def parse_address(full_address: Optional[str], default_country: str = DEFAULT_COUNTRY) -> Dict[str, Optional[str]]:
    """Split "123 Main St, Brooklyn, NY 11201, United States" into parts.

    A single-part address yields no street/city; country falls back to
    ``default_country`` whenever fewer than four parts are present.
    """
    street = city = state = zip_code = country = None
    if full_address:
        parts = [p.strip() for p in full_address.split(",")]
        if len(parts) >= 2:
            street = parts[0] or None
            city = parts[1] or None
            if len(parts) >= 3:
                m = STATE_ZIP_RE.search(parts[2])
                if m:
                    state = m.group(1)
                    zip_code = m.group(2)
                else:
                    state = parts[2] or None
            if len(parts) >= 4:
                country = parts[-1] or None
    return {
        "street": clean_string(street),
        "city": clean_string(city),
        "state": clean_string(state),
        "zip": clean_string(zip_code),
        "country": clean_string(country) or default_country,
    }


def _in_bounds(lat: float, lng: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lng <= 180


def parse_coordinates(url: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """(latitude, longitude) from a maps URL, or (None, None).

    The ``@lat,lng`` viewport form wins; the ``!3dLAT!4dLNG`` place-data form
    is the fallback. Out-of-range pairs are discarded.
    """
    if not url:
        return None, None
    for pattern in (AT_COORDS_RE, DATA_COORDS_RE):
        m = pattern.search(url)
        if m:
            lat, lng = float(m.group(1)), float(m.group(2))
            if _in_bounds(lat, lng):
                return lat, lng
    return None, None


def parse_rating(text: Any) -> Optional[float]:
    if text is None or isinstance(text, bool):
        return None
    m = RATING_RE.search(str(text))
    if not m:
        return None
    rating = float(m.group(1))
    return rating if 0 <= rating <= 5 else None


def parse_review_count(text: Any) -> int:
    """First digit group with thousands separators stripped; 0 when absent."""
    if text is None or isinstance(text, bool):
        return 0
    m = REVIEW_COUNT_RE.search(str(text))
    if not m:
        return 0
    digits = m.group(1).replace(",", "")
    try:
        return int(digits)
    except ValueError:
        return 0


def validate_business_hours(hours: Any) -> Optional[Dict[str, str]]:
    """Keep canonical weekday keys with non-empty string values; empty -> None."""
    if not hours or not isinstance(hours, Mapping):
        return None
    validated: Dict[str, str] = {}
    for day, time_range in hours.items():
        if day in WEEKDAYS and isinstance(time_range, str) and time_range.strip():
            validated[day] = time_range.strip()
    return validated or None


def first_per_weekday(pairs: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Collapse (day, range) pairs, keeping the first range seen for each day.

    Later pairs for the same day come from secondary schedules (kitchen,
    happy hour, ...) and are dropped.
    """
    hours: Dict[str, str] = {}
    for day, time_range in pairs:
        day = (day or "").strip().capitalize()
        time_range = (time_range or "").strip()
        if day not in WEEKDAYS or not time_range or day in hours:
            continue
        hours[day] = time_range
    return hours


def parse_hours_labels(labels: Iterable[Optional[str]]) -> Optional[Dict[str, str]]:
    """Parse "Copy open hours" aria-labels into a weekday -> range mapping."""
    pairs = []
    for label in labels:
        if not label:
            continue
        m = HOURS_LABEL_RE.match(label.strip())
        if m:
            pairs.append((m.group(1), m.group(2)))
    return first_per_weekday(pairs) or None


def parse_price_numbers(price_range: Optional[str]) -> list[int]:
    """All digit groups of a price range: "$50–100" -> [50, 100]."""
    if not price_range:
        return []
    return [int(n) for n in re.findall(r"\d+", price_range)]


def clean_price_range(text: Optional[str]) -> Optional[str]:
    """Strip the leading middle-dot separator Maps renders before price ranges."""
    text = clean_string(text)
    if not text:
        return None
    return re.sub(r"^·\s*", "", text) or None
