"""
Email discovery on business websites.

For every record with a website a worker opens a fresh browser context, reads
the homepage plus up to two contact-like pages linked from it, and keeps the
validated, deduplicated addresses. Workers run in a fixed-size pool; each
owns its own Playwright browser (sync Playwright objects are bound to the
thread that created them) and one isolated context per record, closed before
the record's task finishes.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Sequence, Set
from urllib.parse import urljoin, urlsplit, urlunsplit

from playwright.sync_api import Browser
from selectolax.parser import HTMLParser

from ..schemas import BusinessRecord, EmailSource
from .browser import DEFAULT_UA
from .validation import Validator


CONTACT_KEYWORDS = ("contact", "about", "team", "get-in-touch", "reach-us", "email", "connect")

BrowserFactory = Callable[[], AbstractContextManager]


def _strip_fragment(u: str) -> str:
    try:
        return urlunsplit(urlsplit(u)._replace(fragment=""))
    except ValueError:
        return u


def _is_contact_link(text: str, href: str) -> bool:
    t = (text or "").lower()
    h = (href or "").lower()
    return any(k in t or k in h for k in CONTACT_KEYWORDS)


def discover_contact_links(base_url: str, html: str, max_links: Optional[int] = None) -> List[str]:
    """Absolute http(s) links whose URL or anchor text looks like a contact page."""
    if not html:
        return []
    parser = HTMLParser(html)
    base = _strip_fragment(base_url).rstrip("/")
    out: List[str] = []
    seen: Set[str] = set()
    for a in parser.css("a[href]"):
        href = a.attrs.get("href") if a.attrs else None
        if not href:
            continue
        abs_url = _strip_fragment(urljoin(base_url, href.strip()))
        if urlsplit(abs_url).scheme not in ("http", "https"):
            continue
        if not _is_contact_link(a.text() or "", abs_url):
            continue
        if abs_url.rstrip("/") == base or abs_url in seen:
            continue
        seen.add(abs_url)
        out.append(abs_url)
        if max_links is not None and len(out) >= max_links:
            break
    return out


@dataclass
class EnrichStats:
    records: int = 0
    crawled: int = 0
    skipped_profile: int = 0
    no_website: int = 0
    with_emails: int = 0
    total_emails: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class EmailDiscoveryEngine:
    """Fills ``emails``/``email_source`` in place for a list of records."""

    def __init__(
        self,
        validator: Validator,
        browser_factory: BrowserFactory,
        *,
        concurrency: int = 5,
        page_timeout_ms: int = 10000,
        secondary_timeout_ms: int = 5000,
        max_contact_pages: int = 2,
        user_agent: str = DEFAULT_UA,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.validator = validator
        self.browser_factory = browser_factory
        self.concurrency = concurrency
        self.page_timeout_ms = page_timeout_ms
        self.secondary_timeout_ms = secondary_timeout_ms
        self.max_contact_pages = max_contact_pages
        self.user_agent = user_agent
        self.stats = EnrichStats()
        self._stats_lock = threading.Lock()

    def _collect(self, found: List[str], html: str) -> int:
        added = 0
        for email in self.validator.extract_emails_from_html(html):
            if email not in found:
                found.append(email)
                added += 1
        return added

    def find_emails_on_website(self, browser: Browser, website: str) -> List[str]:
        """Emails from the homepage and its first contact-like pages.

        A page that fails to load contributes nothing; the context and page
        are closed whatever happens.
        """
        found: List[str] = []
        context = None
        page = None
        try:
            context = browser.new_context(user_agent=self.user_agent)
            page = context.new_page()
            page.set_default_timeout(self.page_timeout_ms)
            print(f"  Checking website for email: {website}")
            try:
                page.goto(website, wait_until="domcontentloaded", timeout=self.page_timeout_ms)
                html = page.content()
            except Exception as e:
                print(f"  ✗ Failed to load {website}: {e}")
                return found
            added = self._collect(found, html)
            if added:
                print(f"  ✓ Found {added} email(s) on main page")

            links = discover_contact_links(page.url or website, html, max_links=self.max_contact_pages)
            for link in links:
                try:
                    page.goto(link, wait_until="domcontentloaded", timeout=self.secondary_timeout_ms)
                    added = self._collect(found, page.content())
                except Exception:
                    print(f"  ✗ Failed to load contact page: {link}")
                    continue
                if added:
                    print(f"  ✓ Found {added} email(s) on contact page {link}")
            return found
        except Exception as e:
            print(f"  ✗ Error finding email on {website}: {e}")
            return found
        finally:
            if page is not None:
                try:
                    page.close()
                except Exception:
                    pass
            if context is not None:
                try:
                    context.close()
                except Exception:
                    pass

    def _apply(self, record: BusinessRecord, emails: Sequence[str]) -> None:
        if emails:
            record.emails = list(emails)
            record.email_source = EmailSource.WEBSITE
        else:
            record.emails = []
            record.email_source = EmailSource.NOT_FOUND
        with self._stats_lock:
            if emails:
                self.stats.with_emails += 1
                self.stats.total_emails += len(emails)

    def _worker(self, jobs: "queue.Queue[BusinessRecord]", worker_id: int) -> None:
        try:
            with self.browser_factory() as browser:
                while True:
                    try:
                        record = jobs.get_nowait()
                    except queue.Empty:
                        return
                    print(f"[worker {worker_id}] {record.business_name}")
                    self._apply(record, self.find_emails_on_website(browser, record.website))
                    with self._stats_lock:
                        self.stats.crawled += 1
        except Exception as e:
            print(f"Email worker {worker_id} stopped: {e}")

    def enrich(self, records: List[BusinessRecord], concurrency: Optional[int] = None) -> List[BusinessRecord]:
        """Populate emails for ``records`` in place and return the same list.

        Records that already carry an address from the listing itself keep it.
        Records without a website end up with no emails and ``not_found``.
        """
        limit = concurrency or self.concurrency
        self.stats = EnrichStats(records=len(records))
        jobs: "queue.Queue[BusinessRecord]" = queue.Queue()
        for record in records:
            if record.email_source == EmailSource.GOOGLE_PROFILE and record.emails:
                self.stats.skipped_profile += 1
                self.stats.with_emails += 1
                self.stats.total_emails += len(record.emails)
                continue
            if not record.website:
                self.stats.no_website += 1
                self._apply(record, [])
                continue
            jobs.put(record)

        pending = jobs.qsize()
        if pending:
            workers = min(limit, pending)
            print(f"\nFinding emails for {pending} businesses (concurrency: {workers})...")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._worker, jobs, i + 1) for i in range(workers)]
                for future in futures:
                    future.result()

        # Records left behind by workers whose browser never started
        while True:
            try:
                self._apply(jobs.get_nowait(), [])
            except queue.Empty:
                break

        total = len(records) or 1
        print(
            f"\n✓ Email finding complete: {self.stats.with_emails}/{len(records)} businesses with emails "
            f"({self.stats.with_emails / total * 100:.1f}%)"
        )
        print(f"  Total emails found: {self.stats.total_emails}")
        return records
