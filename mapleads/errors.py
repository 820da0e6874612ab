"""Run-level failures. Anything raised from here aborts the whole scrape."""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for fatal setup errors."""


class ConfigError(ScrapeError):
    """Configuration file missing, unreadable or invalid."""


class InvalidSearchError(ScrapeError):
    """Bad input: missing search parameters, or the results panel never rendered."""


class BlockedError(ScrapeError):
    """The source served a captcha, consent wall or rate-limit page instead of results."""

    def __init__(self, message: str, reasons: list[str] | None = None) -> None:
        super().__init__(message)
        self.reasons = list(reasons or [])


class SessionStartError(ScrapeError):
    """The browser could not be launched."""
