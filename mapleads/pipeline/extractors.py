from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import unquote

from playwright.sync_api import ElementHandle, Page

from ..schemas import EmailSource, RawRecord
from .parsing import first_per_weekday, parse_hours_labels
from .selectors import (
    DETAIL_READY_JS,
    FIELD_STRATEGIES,
    HOURS_TABLE_JS,
    SELECTORS,
    SIDEBAR_HEADINGS,
)
from .strategies import Strategy, first_match


HOUR_TIME_RE = re.compile(r"\d+\s*(am|pm)", re.IGNORECASE)


def _is_hours_control_text(text: Optional[str]) -> bool:
    low = (text or "").lower()
    if not low:
        return False
    if "see more hours" in low or "hours" in low:
        return True
    return ("open" in low or "close" in low) and HOUR_TIME_RE.search(low) is not None


def sanitize_mailto(href: Optional[str]) -> Optional[str]:
    """Address part of a mailto: href (query dropped, percent-decoded, lowercased)."""
    if not href or not href.lower().startswith("mailto:"):
        return None
    addr = unquote(href[len("mailto:"):].split("?")[0]).strip().lower()
    return addr or None


class FieldExtractor:
    """Reads one listing's detail panel into a RawRecord.

    Every field is looked up through an ordered tuple of strategies (see
    ``selectors.FIELD_STRATEGIES``); the first non-empty result wins and
    missing elements simply leave the field empty. The only field whose
    absence rejects the card is the business name.
    """

    def __init__(
        self,
        page: Page,
        *,
        strategies: Optional[Mapping[str, Sequence[Strategy]]] = None,
        detail_timeout_ms: int = 3000,
        hours_settle_ms: int = 2500,
        extract_hours: bool = True,
    ) -> None:
        self.page = page
        self.strategies: Mapping[str, Sequence[Strategy]] = strategies or FIELD_STRATEGIES
        self.detail_timeout_ms = detail_timeout_ms
        self.hours_settle_ms = hours_settle_ms
        self.extract_hours = extract_hours
        # Heading of the previously opened panel; the next panel is not ready
        # while it is still showing.
        self._last_heading: Optional[str] = None

    def field(self, name: str) -> Optional[str]:
        return first_match(self.page, self.strategies.get(name, ()))

    def open_detail(self, card: ElementHandle) -> bool:
        """Select ``card`` and wait for its detail panel.

        Returns False when no fresh heading appeared within the timeout; the
        caller still extracts best-effort.
        """
        card.scroll_into_view_if_needed()
        card.click()
        try:
            self.page.wait_for_function(
                DETAIL_READY_JS,
                arg=[self._last_heading or "", list(SIDEBAR_HEADINGS)],
                timeout=self.detail_timeout_ms,
            )
            return True
        except Exception:
            print(f"  ⏱️  Detail panel not confirmed after {self.detail_timeout_ms}ms; extracting best-effort")
            return False

    def extract_name(self) -> Optional[str]:
        # Sidebar headings ("Results", "Sponsored") are never business names
        return first_match(self.page, self.strategies.get("business_name", ()), skip=SIDEBAR_HEADINGS)

    def extract(self, card: ElementHandle, maps_url: str) -> Optional[RawRecord]:
        """Open ``card`` and read its panel; None when no business name is found."""
        self.open_detail(card)

        name = self.extract_name()
        if not name:
            print("  ✗ Could not extract business name")
            return None
        self._last_heading = name

        price_level, price_range = self.extract_price()
        hours = self.extract_business_hours() if self.extract_hours else None
        profile_email = self.find_profile_email()

        return RawRecord(
            business_name=name,
            address=self.field("address"),
            phone=self.field("phone"),
            website=self.field("website"),
            rating=self.field("rating"),
            review_count=self.field("review_count") or "0",
            category=self.field("category"),
            price_level=price_level,
            price_range=price_range,
            maps_url=maps_url,
            business_hours=hours,
            emails=[profile_email] if profile_email else [],
            email_source=EmailSource.GOOGLE_PROFILE if profile_email else EmailSource.NOT_FOUND,
        )

    def extract_price(self) -> Tuple[Optional[str], Optional[str]]:
        """(price tier like "$$", price range like "$50–100"); both usually absent."""
        return self.field("price_level"), self.field("price_range")

    def _find_hours_control(self) -> Optional[ElementHandle]:
        try:
            button = self.page.query_selector(SELECTORS["hours_button"])
        except Exception:
            button = None
        if button is not None:
            return button
        try:
            buttons = self.page.query_selector_all("button")
        except Exception:
            return None
        for btn in buttons:
            try:
                text = btn.text_content()
            except Exception:
                continue
            if _is_hours_control_text(text):
                print(f'  Found hours button: "{(text or "").strip()[:50]}"')
                return btn
        return None

    def _read_hours(self) -> Dict[str, str]:
        labels = []
        try:
            for btn in self.page.query_selector_all(SELECTORS["hours_day_button"]):
                labels.append(btn.get_attribute("aria-label"))
        except Exception:
            labels = []
        hours = parse_hours_labels(labels)
        if hours:
            return hours
        try:
            rows = self.page.evaluate(HOURS_TABLE_JS, SELECTORS["hours_row"]) or []
        except Exception:
            rows = []
        return first_per_weekday((row[0], row[1]) for row in rows if row and len(row) >= 2)

    def extract_business_hours(self) -> Optional[Dict[str, str]]:
        """Disclose the weekly schedule and read it; None when there is none."""
        try:
            control = self._find_hours_control()
            if control is None:
                print("  ℹ No hours button found")
                return None
            control.click()
            self.page.wait_for_timeout(self.hours_settle_ms)
            hours = self._read_hours()
        except Exception as e:
            print(f"  ✗ Hours extraction failed: {e}")
            return None
        if not hours:
            print("  ℹ No hours data found")
            return None
        print(f"  ✓ Extracted hours for {len(hours)} days")
        return hours

    def find_profile_email(self) -> Optional[str]:
        """mailto: address shown on the listing itself (rare)."""
        try:
            link = self.page.query_selector(SELECTORS["email_link"])
            if link is None:
                return None
            email = sanitize_mailto(link.get_attribute("href"))
        except Exception:
            return None
        if email:
            print(f"  ✓ Found email in Google profile: {email}")
        return email
