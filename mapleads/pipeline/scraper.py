from __future__ import annotations

import time
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional

from ..config import ScrapeConfig, load_blacklist
from ..ops_logger import OpsLogger
from ..schemas import BusinessRecord, EmailBlacklist
from .browser import (
    dismiss_consent,
    launch_browser,
    navigate_to_search,
    open_search_page,
    wait_for_search_results,
)
from .emails import EmailDiscoveryEngine, EnrichStats
from .extractors import FieldExtractor
from .selectors import FIELD_STRATEGIES
from .strategies import build_strategy_table
from .validation import Validator, meets_criteria
from .walker import ListingWalker, WalkStats


@dataclass
class ScrapeRun:
    """Outcome of one search: accepted records plus what happened on the way."""
    search_url: str
    records: List[BusinessRecord] = field(default_factory=list)
    walk: WalkStats = field(default_factory=WalkStats)
    enrich: Optional[EnrichStats] = None
    duration_s: float = 0.0


def scrape(
    config: ScrapeConfig,
    *,
    browser_factory: Optional[Callable] = None,
    blacklist: Optional[EmailBlacklist] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> ScrapeRun:
    """Run one search end to end.

    Setup failures (bad input, browser launch, results never rendering,
    blocking) raise ScrapeError subclasses. Everything after the results
    panel appears degrades per card or per website instead.
    """
    search_url = config.resolved_search_url()
    if browser_factory is None:
        browser_factory = partial(launch_browser, headless=config.headless, proxy_url=config.proxy_url)
    if blacklist is None:
        blacklist = load_blacklist(config.blacklist_path)
    validator = Validator(blacklist, default_country=config.default_country)
    strategies = build_strategy_table(FIELD_STRATEGIES, config.selectors)
    timeouts = config.timeouts

    run = ScrapeRun(search_url=search_url)
    t0 = time.perf_counter()

    print("\nLaunching browser...")
    with browser_factory() as browser:
        page = open_search_page(browser)
        try:
            print(f"Navigating to: {search_url}")
            navigate_to_search(page, search_url, timeout_ms=timeouts.navigation)
            page.wait_for_timeout(timeouts.initial_render)
            dismiss_consent(page, settle_ms=timeouts.consent_settle)
            wait_for_search_results(page, timeout_ms=timeouts.results_panel)

            extractor = FieldExtractor(
                page,
                strategies=strategies,
                detail_timeout_ms=timeouts.business_details,
                hours_settle_ms=timeouts.hours_settle,
                extract_hours=config.extract_business_hours,
            )
            walker = ListingWalker(
                page,
                extractor,
                validator,
                scroll_wait_ms=timeouts.scroll_wait,
                human_delay_ms=timeouts.human_delay,
            )
            print(f"\nExtracting business listings (max: {config.max_results})...")
            run.records = walker.walk(config.max_results, partial(meets_criteria, criteria=config.criteria))
            run.walk = walker.stats
            print(f"\n✓ Extracted {len(run.records)} businesses")
            if ops_logger:
                ops_logger.emit("walk", search_url=search_url, records=len(run.records), **walker.stats.as_dict())
        finally:
            try:
                page.close()
            except Exception:
                pass

    if config.find_emails and run.records:
        engine = EmailDiscoveryEngine(
            validator,
            browser_factory,
            concurrency=config.concurrency,
            page_timeout_ms=timeouts.email_finder,
            secondary_timeout_ms=timeouts.secondary_page,
        )
        engine.enrich(run.records)
        run.enrich = engine.stats
        if ops_logger:
            ops_logger.emit("enrich", **engine.stats.as_dict())

    run.duration_s = round(time.perf_counter() - t0, 2)
    return run
