from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Set
from urllib.parse import urljoin

from playwright.sync_api import ElementHandle, Page

from ..schemas import BusinessRecord
from .extractors import FieldExtractor
from .selectors import CARD_SELECTORS, SCROLL_FEED_JS, SELECTORS
from .validation import Validator


MAPS_BASE_URL = "https://www.google.com/maps"


def canonical_listing_url(href: Optional[str]) -> Optional[str]:
    """Absolute maps URL for a card href (hrefs may be relative)."""
    if not href:
        return None
    href = href.strip()
    if href.startswith("http"):
        return href
    if href.startswith("/maps"):
        return urljoin("https://www.google.com", href)
    return f"{MAPS_BASE_URL}{href}"


@dataclass
class WalkStats:
    cards_seen: int = 0
    duplicates: int = 0
    no_url: int = 0
    extracted: int = 0
    rejected: int = 0
    filtered: int = 0
    errors: int = 0
    stalls: int = 0
    iterations: int = 0
    stop_reason: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


class ListingWalker:
    """Pages through the results feed and collects accepted records.

    Owns the shared search page for the whole walk: cards are opened one at a
    time, in the order they rendered. Pagination is scroll-triggered; three
    consecutive iterations with no new cards end the walk.
    """

    def __init__(
        self,
        page: Page,
        extractor: FieldExtractor,
        validator: Validator,
        *,
        scroll_wait_ms: int = 2000,
        human_delay_ms: int = 1500,
        stall_limit: int = 3,
    ) -> None:
        self.page = page
        self.extractor = extractor
        self.validator = validator
        self.scroll_wait_ms = scroll_wait_ms
        self.human_delay_ms = human_delay_ms
        self.stall_limit = stall_limit
        self.seen: Set[str] = set()
        self.stats = WalkStats()

    def visible_cards(self) -> List[ElementHandle]:
        for selector in CARD_SELECTORS:
            cards = self.page.query_selector_all(selector)
            if cards:
                return list(cards)
        return []

    def scroll_feed(self) -> None:
        try:
            self.page.evaluate(SCROLL_FEED_JS, SELECTORS["feed_container"])
        except Exception as e:
            print(f"Error scrolling sidebar: {e}")

    def _settle(self) -> None:
        delay = self.human_delay_ms + random.random() * 1000
        self.page.wait_for_timeout(delay)
        self.page.wait_for_timeout(self.scroll_wait_ms)

    def process_card(self, card: ElementHandle) -> Optional[BusinessRecord]:
        """Extract and validate one card; None when skipped or rejected.

        A card whose URL was already captured is skipped before any panel is
        opened.
        """
        maps_url = canonical_listing_url(card.get_attribute("href"))
        if not maps_url:
            self.stats.no_url += 1
            return None
        if maps_url in self.seen:
            self.stats.duplicates += 1
            return None
        self.seen.add(maps_url)

        raw = self.extractor.extract(card, maps_url)
        if raw is None:
            self.stats.rejected += 1
            return None
        self.stats.extracted += 1
        record = self.validator.validate(raw)
        if record is None:
            self.stats.rejected += 1
        return record

    def walk(
        self,
        max_results: int,
        accept: Optional[Callable[[BusinessRecord], bool]] = None,
    ) -> List[BusinessRecord]:
        """Collect up to ``max_results`` records that pass ``accept``."""
        accept = accept or (lambda record: True)
        records: List[BusinessRecord] = []
        previous_count = 0
        no_growth = 0

        while len(records) < max_results:
            self.stats.iterations += 1
            try:
                cards = self.visible_cards()
            except Exception as e:
                print(f"Results feed unavailable, stopping: {e}")
                self.stats.stop_reason = "navigation_error"
                break
            print(f"Found {len(cards)} business cards in sidebar")

            for i in range(previous_count, len(cards)):
                if len(records) >= max_results:
                    break
                self.stats.cards_seen += 1
                try:
                    record = self.process_card(cards[i])
                except Exception as e:
                    self.stats.errors += 1
                    print(f"  Error extracting business {i + 1}: {e}")
                    continue
                if record is None:
                    continue
                if not accept(record):
                    self.stats.filtered += 1
                    print(f"  ✗ Filtered out: {record.business_name}")
                    continue
                records.append(record)
                rating = record.rating if record.rating is not None else "-"
                print(f"[{len(records)}/{max_results}] {record.business_name} ⭐ {rating} ({record.review_count} reviews)")

            if len(cards) == previous_count:
                no_growth += 1
                self.stats.stalls = no_growth
                if no_growth >= self.stall_limit:
                    print(f"No more results loading after {self.stall_limit} attempts")
                    self.stats.stop_reason = "stalled"
                    break
            else:
                no_growth = 0
                self.stats.stalls = 0
            previous_count = len(cards)

            if len(records) >= max_results:
                break

            self.scroll_feed()
            try:
                self._settle()
            except Exception as e:
                print(f"Page lost while waiting for more results, stopping: {e}")
                self.stats.stop_reason = "navigation_error"
                break

        if not self.stats.stop_reason:
            self.stats.stop_reason = "max_results"
        return records
