"""
Google Maps DOM selectors and in-page scripts.

These change whenever Google ships a new Maps UI. Keep them here (or override
them from the ``selectors:`` section of the config file) so extraction logic
does not need to change with them.
"""

from __future__ import annotations

from .strategies import AriaMatch, AttributeOf, ScriptResult, TextOf


SELECTORS = {
    # Containers
    "search_results_panel": 'div[role="main"]',
    "feed_container": 'div[role="feed"]',
    # Listing cards in the sidebar
    "business_card": 'div[role="feed"] > div > div > a',
    "business_link": 'a[href*="/maps/place/"]',
    # Detail panel
    "business_name": 'h1[class*="fontHeadline"]',
    "business_name_alt": "h1.DUwDvf",
    "address_button": 'button[data-item-id="address"]',
    "address_text": 'button[data-item-id="address"] div[class*="fontBody"]',
    "phone_button": 'button[data-item-id*="phone"]',
    "phone_text": 'button[data-item-id*="phone"] div[class*="fontBody"]',
    "website_link": 'a[data-item-id="authority"]',
    "website_link_alt": 'a[aria-label*="Website"]',
    "rating_span": 'span[role="img"][aria-label*="star"]',
    "rating_text": 'div.F7nice span[aria-hidden="true"]',
    "review_count": 'span[aria-label*="reviews"]',
    "review_count_alt": 'button[aria-label*="reviews"]',
    "category_button": 'button[jsaction*="category"]',
    "category_text": 'button[class*="DkEaL"]',
    "price_level": (
        'span[aria-label="Expensive"], span[aria-label="Moderate"], '
        'span[aria-label="Inexpensive"], span[aria-label="Very Expensive"]'
    ),
    "price_level_alt": 'button span:has-text("$")',
    # Hours
    "hours_button": 'button[data-item-id*="oh"]',
    "hours_day_button": 'button[aria-label*="Copy open hours"]',
    "hours_row": 'table[aria-label*="Hours"] tr',
    # Email (rare on the profile itself)
    "email_link": 'a[href^="mailto:"]',
}

ARIA_PATTERNS = {
    "rating": r"(\d+\.?\d*)\s+star",
    "reviews": r"([\d,]+)\s+review",
    "phone": r"Phone:\s*(.+)",
    "address": r"Address:\s*(.+)",
    "website": r"Website:\s*(.+)",
}

# Tried in order until one appears after the search page loads.
RESULTS_PANEL_SELECTORS = (
    SELECTORS["feed_container"],
    SELECTORS["search_results_panel"],
    "div.m6QErb",
    '[role="region"]',
)

CARD_SELECTORS = (
    SELECTORS["business_card"],
    SELECTORS["business_link"],
)

CONSENT_SELECTORS = (
    'button[aria-label*="Accept"]',
    'button[aria-label*="Reject"]',
    'button:has-text("Accept all")',
    'button:has-text("Reject all")',
    'button:has-text("I agree")',
    'form[action*="consent"] button',
)

# Headings the results sidebar itself renders; never a business name.
SIDEBAR_HEADINGS = ("Results", "Sponsored", "Google Maps")

NAME_SCAN_JS = r"""
() => {
  for (const h1 of document.querySelectorAll('h1')) {
    const text = (h1.textContent || '').trim();
    if (text && text.length < 200) return text;
  }
  for (const el of document.querySelectorAll('h1[aria-label]')) {
    const label = el.getAttribute('aria-label');
    if (label) return label;
  }
  return null;
}
"""

PRICE_RANGE_JS = r"""
() => {
  for (const span of document.querySelectorAll('span')) {
    const text = (span.textContent || '').trim();
    if (/\$\d+[–\-+](\d+)?/.test(text)) return text;
  }
  return null;
}
"""

# Ready once an h1 shows something other than the previous record's name or
# a sidebar heading.
DETAIL_READY_JS = r"""
([stale, generic]) => {
  for (const h1 of document.querySelectorAll('h1')) {
    const text = (h1.textContent || '').trim();
    if (text && text !== stale && !generic.includes(text)) return true;
  }
  return false;
}
"""

SCROLL_FEED_JS = r"""
(selector) => {
  const feed = document.querySelector(selector);
  if (feed) feed.scrollTo(0, feed.scrollHeight);
  return !!feed;
}
"""

HOURS_TABLE_JS = r"""
(selector) => Array.from(document.querySelectorAll(selector)).map(tr => {
  const cells = tr.querySelectorAll('td');
  if (cells.length < 2) return null;
  const day = (cells[0].textContent || '').trim();
  const range = (cells[1].getAttribute('aria-label') || cells[1].textContent || '').trim();
  return [day, range];
}).filter(Boolean)
"""

BODY_TEXT_JS = "() => (document.body ? document.body.innerText : '').substring(0, 2000)"


FIELD_STRATEGIES = {
    "business_name": (
        TextOf(SELECTORS["business_name"]),
        TextOf(SELECTORS["business_name_alt"]),
        TextOf("h1"),
        ScriptResult(NAME_SCAN_JS),
    ),
    "address": (
        TextOf(SELECTORS["address_text"]),
        AriaMatch(SELECTORS["address_button"], ARIA_PATTERNS["address"]),
    ),
    "phone": (
        TextOf(SELECTORS["phone_text"]),
        AriaMatch(SELECTORS["phone_button"], ARIA_PATTERNS["phone"]),
    ),
    "website": (
        AttributeOf(SELECTORS["website_link"], "href"),
        AttributeOf(SELECTORS["website_link_alt"], "href"),
    ),
    "rating": (
        AriaMatch(SELECTORS["rating_span"], ARIA_PATTERNS["rating"]),
        TextOf(SELECTORS["rating_text"]),
    ),
    "review_count": (
        AriaMatch(SELECTORS["review_count"], ARIA_PATTERNS["reviews"]),
        AriaMatch(SELECTORS["review_count_alt"], ARIA_PATTERNS["reviews"]),
    ),
    "category": (
        TextOf(SELECTORS["category_button"]),
        TextOf(SELECTORS["category_text"]),
    ),
    "price_level": (
        TextOf(SELECTORS["price_level"]),
        TextOf(SELECTORS["price_level_alt"]),
    ),
    "price_range": (
        ScriptResult(PRICE_RANGE_JS),
    ),
}
