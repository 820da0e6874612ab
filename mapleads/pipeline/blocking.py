from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..errors import BlockedError, InvalidSearchError, ScrapeError


BLOCK_MARKERS = [
    r"unusual traffic",
    r"Our systems have detected",
    r"not a robot",
    r"captcha",
    r"Before you continue to Google",
    r"To continue, please type the characters",
    r"too many requests",
]

BLOCK_URL_MARKERS = [
    r"/sorry/",
    r"consent\.google\.",
    r"[?&]continue=",
]

NO_RESULTS_MARKERS = [
    r"Google Maps can't find",
    r"No results found",
    r"Make sure your search is spelled correctly",
]


@dataclass(frozen=True)
class PageDiagnosis:
    blocked: bool
    reasons: List[str]
    no_results: bool = False


def detect_block(text: Optional[str], url: Optional[str] = None) -> List[str]:
    """Reasons the page looks like a block/consent/rate-limit interstitial."""
    reasons: List[str] = []
    for pat in BLOCK_URL_MARKERS:
        if url and re.search(pat, url, flags=re.IGNORECASE):
            reasons.append(f"url:{pat}")
    for pat in BLOCK_MARKERS:
        if text and re.search(pat, text, flags=re.IGNORECASE):
            reasons.append(f"text:{pat}")
    return reasons


def detect_no_results(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(re.search(pat, text, flags=re.IGNORECASE) for pat in NO_RESULTS_MARKERS)


def diagnose_page(text: Optional[str], url: Optional[str] = None) -> PageDiagnosis:
    reasons = detect_block(text, url)
    return PageDiagnosis(blocked=bool(reasons), reasons=reasons, no_results=detect_no_results(text))


def results_failure(text: Optional[str], url: Optional[str] = None, title: Optional[str] = None) -> ScrapeError:
    """The error to raise when the results panel never rendered."""
    diagnosis = diagnose_page(" ".join(filter(None, [title, text])), url)
    if diagnosis.blocked:
        return BlockedError(
            "Search results did not load: the request looks blocked or rate-limited "
            f"({', '.join(diagnosis.reasons)}). Try again later or use a proxy.",
            reasons=diagnosis.reasons,
        )
    if diagnosis.no_results:
        return InvalidSearchError("Search returned no results. The location or keyword might be invalid.")
    return InvalidSearchError("Search results did not load. The location or keyword might be invalid.")
