from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError, InvalidSearchError
from .pipeline.selectors import FIELD_STRATEGIES
from .pipeline.strategies import strategy_from_mapping
from .schemas import EmailBlacklist, FilterCriteria


SEARCH_URL_TEMPLATE = "https://www.google.com/maps/search/{query}"

# Placeholder and platform addresses that show up in site templates, tracking
# snippets and image filenames (logo@2x.png).
DEFAULT_BLACKLIST_DOMAINS = [
    "example.com",
    "example.org",
    "domain.com",
    "yourdomain.com",
    "email.com",
    "sentry.io",
    "wixpress.com",
    "sentry-next.wixpress.com",
    "godaddy.com",
    "squarespace.com",
]
DEFAULT_BLACKLIST_PATTERNS = [
    r"^noreply@",
    r"^no-reply@",
    r"^donotreply@",
    r"^do-not-reply@",
    r"^user@",
    r"^your@",
    r"^name@",
    r"\.(png|jpe?g|gif|svg|webp|bmp|ico)$",
    r"^[0-9a-f]{32}@",
]


class Timeouts(BaseModel):
    """Per-operation time budgets in milliseconds."""
    navigation: int = 60000
    initial_render: int = 5000
    results_panel: int = 3000
    business_details: int = 3000
    scroll_wait: int = 2000
    human_delay: int = 1500
    hours_settle: int = 2500
    consent_settle: int = 2000
    email_finder: int = 10000
    secondary_page: int = 5000


class ScrapeConfig(BaseModel):
    keyword: Optional[str] = None
    location: Optional[str] = None
    search_url: Optional[str] = None
    max_results: int = Field(default=100, gt=0)
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    find_emails: bool = False
    extract_business_hours: bool = True
    concurrency: int = Field(default=5, gt=0)
    headless: bool = True
    proxy_url: Optional[str] = None
    default_country: str = "United States"
    timeouts: Timeouts = Field(default_factory=Timeouts)
    selectors: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)
    blacklist_path: Optional[str] = None

    @field_validator("selectors")
    @classmethod
    def validate_selectors(cls, v):
        for field_name, entries in v.items():
            if field_name not in FIELD_STRATEGIES:
                raise ValueError(f"unknown field in selectors: {field_name}")
            if not entries:
                raise ValueError(f"selectors.{field_name} needs at least one strategy")
            for entry in entries:
                strategy_from_mapping(entry)
        return v

    def resolved_search_url(self) -> str:
        if self.search_url:
            return self.search_url
        return build_search_url(self.keyword, self.location)


def build_search_url(keyword: Optional[str], location: Optional[str]) -> str:
    keyword = (keyword or "").strip()
    location = (location or "").strip()
    if not keyword or not location:
        raise InvalidSearchError('Both "keyword" and "location" are required parameters')
    return SEARCH_URL_TEMPLATE.format(query=quote(f"{keyword} {location}", safe=""))


def _read_yaml(path: Path) -> Any:
    if not path.exists() or not path.is_file():
        raise ConfigError(f"file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def load_config(path: str | Path) -> ScrapeConfig:
    """Read a YAML config file into a validated ScrapeConfig."""
    path = Path(path)
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    try:
        return ScrapeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config in {path}: {e}") from e


@lru_cache(maxsize=None)
def load_blacklist(path: str | None = None) -> EmailBlacklist:
    """Email blacklist from a YAML file, or the built-in defaults.

    Loaded once per path and cached for the process lifetime.
    """
    if path is None:
        return EmailBlacklist(domains=DEFAULT_BLACKLIST_DOMAINS, patterns=DEFAULT_BLACKLIST_PATTERNS)
    data = _read_yaml(Path(path)) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: blacklist must be a mapping with 'domains' and 'patterns'")
    try:
        return EmailBlacklist.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid blacklist in {path}: {e}") from e
