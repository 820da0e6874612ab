import threading
from contextlib import contextmanager

import pytest

from mapleads.pipeline.emails import EmailDiscoveryEngine, discover_contact_links
from mapleads.pipeline.validation import Validator
from mapleads.schemas import BusinessRecord, EmailBlacklist, EmailSource

from maps_stubs import BrowserFactory, StubBrowser


HOME = "https://bakery.test/"

HOME_HTML = """
<html><body>
  <p>Questions? hello@bakery.test</p>
  <a href="/contact-us">Contact</a>
  <a href="https://bakery.test/about#story">Our story</a>
  <a href="/menu">Menu</a>
  <a href="/team">Meet the team</a>
  <a href="mailto:orders@bakery.test">Email us</a>
</body></html>
"""


def make_engine(factory, **kw):
    validator = Validator(EmailBlacklist(domains=["example.com"], patterns=[r"^noreply@"]))
    return EmailDiscoveryEngine(validator, factory, **kw)


def record(name, website=None, **kw):
    return BusinessRecord(business_name=name, website=website, **kw)


class TestDiscoverContactLinks:
    def test_finds_contact_like_links(self):
        links = discover_contact_links(HOME, HOME_HTML)
        assert links == [
            "https://bakery.test/contact-us",
            "https://bakery.test/about",
            "https://bakery.test/team",
        ]

    def test_respects_max_links(self):
        assert discover_contact_links(HOME, HOME_HTML, max_links=2) == [
            "https://bakery.test/contact-us",
            "https://bakery.test/about",
        ]

    def test_excludes_base_url_and_non_http(self):
        html = """
        <a href="/">Contact home</a>
        <a href="tel:+15125550100">Contact by phone</a>
        <a href="javascript:openContact()">Contact</a>
        <a href="https://other.test/connect">Connect</a>
        <a href="/contact">Contact</a><a href="/contact#form">Contact form</a>
        """
        assert discover_contact_links(HOME, html) == ["https://other.test/connect", "https://bakery.test/contact"]

    def test_empty_html(self):
        assert discover_contact_links(HOME, "") == []


class TestFindEmailsOnWebsite:
    def test_homepage_and_contact_pages_are_merged(self):
        sites = {
            HOME: HOME_HTML,
            "https://bakery.test/contact-us": "<p>Sales: sales@bakery.test, hello@bakery.test</p>",
            "https://bakery.test/about": "<p>noreply@bakery.test info@example.com</p>",
        }
        browser = StubBrowser(sites)
        engine = make_engine(BrowserFactory(sites))

        emails = engine.find_emails_on_website(browser, HOME)

        assert emails == ["hello@bakery.test", "orders@bakery.test", "sales@bakery.test"]
        (ctx,) = browser.contexts
        assert ctx.closed
        assert ctx.pages[0].closed
        assert ctx.pages[0].visited == [HOME, "https://bakery.test/contact-us", "https://bakery.test/about"]

    def test_failing_contact_page_is_skipped(self):
        sites = {
            HOME: HOME_HTML,
            "https://bakery.test/about": "<p>press@bakery.test</p>",
        }
        browser = StubBrowser(sites)
        emails = make_engine(BrowserFactory(sites)).find_emails_on_website(browser, HOME)
        assert emails == ["hello@bakery.test", "orders@bakery.test", "press@bakery.test"]

    def test_homepage_failure_returns_empty_and_closes_context(self):
        browser = StubBrowser({HOME: RuntimeError("net::ERR_NAME_NOT_RESOLVED")})
        emails = make_engine(BrowserFactory()).find_emails_on_website(browser, HOME)
        assert emails == []
        assert browser.contexts[0].closed
        assert browser.contexts[0].pages[0].closed


class TestEnrich:
    def test_sets_source_per_record(self):
        sites = {
            "https://a.test/": "<p>info@a.test</p>",
            "https://b.test/": "<p>nothing here</p>",
        }
        factory = BrowserFactory(sites)
        records = [
            record("A", "https://a.test/"),
            record("B", "https://b.test/"),
            record("C"),
            record("D", "https://down.test/"),
        ]

        result = make_engine(factory, concurrency=2).enrich(records)

        assert result is records
        assert [r.business_name for r in result] == ["A", "B", "C", "D"]
        assert records[0].emails == ["info@a.test"]
        assert records[0].email_source == EmailSource.WEBSITE
        for r in records[1:]:
            assert r.emails == []
            assert r.email_source == EmailSource.NOT_FOUND

    def test_every_context_closed(self):
        sites = {f"https://s{i}.test/": f"<p>x{i}@s{i}.test</p>" for i in range(6)}
        factory = BrowserFactory(sites)
        records = [record(f"S{i}", f"https://s{i}.test/") for i in range(6)]

        make_engine(factory, concurrency=3).enrich(records)

        assert len(factory.contexts) == 6
        assert all(ctx.closed for ctx in factory.contexts)
        assert all(b.closed for b in factory.browsers)
        assert [r.emails for r in records] == [[f"x{i}@s{i}.test"] for i in range(6)]

    def test_worker_pool_never_exceeds_concurrency(self):
        sites = {f"https://s{i}.test/": "<p>a@s.test</p>" for i in range(8)}
        active = {"now": 0, "peak": 0}
        lock = threading.Lock()
        launches = []

        @contextmanager
        def factory():
            with lock:
                active["now"] += 1
                active["peak"] = max(active["peak"], active["now"])
            launches.append(1)
            try:
                yield StubBrowser(sites)
            finally:
                with lock:
                    active["now"] -= 1

        records = [record(f"S{i}", f"https://s{i}.test/") for i in range(8)]
        make_engine(factory, concurrency=3).enrich(records)

        assert len(launches) == 3
        assert active["peak"] <= 3
        assert all(r.email_source == EmailSource.WEBSITE for r in records)

    def test_pool_size_capped_by_pending_records(self):
        factory = BrowserFactory({"https://a.test/": "<p>x@a.test</p>"})
        make_engine(factory, concurrency=5).enrich([record("A", "https://a.test/"), record("B")])
        assert len(factory.browsers) == 1

    def test_profile_email_takes_priority(self):
        factory = BrowserFactory({"https://a.test/": "<p>web@a.test</p>"})
        profile = record(
            "A",
            "https://a.test/",
            emails=["owner@a.test"],
            email_source=EmailSource.GOOGLE_PROFILE,
        )

        engine = make_engine(factory)
        engine.enrich([profile])

        assert profile.emails == ["owner@a.test"]
        assert profile.email_source == EmailSource.GOOGLE_PROFILE
        assert factory.browsers == []
        assert engine.stats.skipped_profile == 1
        assert engine.stats.with_emails == 1

    def test_browser_start_failure_leaves_records_not_found(self, capsys):
        records = [record("A", "https://a.test/"), record("B", "https://b.test/")]
        make_engine(BrowserFactory(fail=True), concurrency=2).enrich(records)
        assert all(r.emails == [] and r.email_source == EmailSource.NOT_FOUND for r in records)
        assert "Email worker" in capsys.readouterr().out

    def test_stats(self):
        factory = BrowserFactory({"https://a.test/": "<p>x@a.test y@a.test</p>"})
        engine = make_engine(factory)
        engine.enrich([record("A", "https://a.test/"), record("B")])
        assert engine.stats.as_dict() == {
            "records": 2,
            "crawled": 1,
            "skipped_profile": 0,
            "no_website": 1,
            "with_emails": 1,
            "total_emails": 2,
        }

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            make_engine(BrowserFactory(), concurrency=0)
