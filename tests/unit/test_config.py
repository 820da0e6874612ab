from pathlib import Path

import pytest

from mapleads.config import (
    DEFAULT_BLACKLIST_DOMAINS,
    ScrapeConfig,
    build_search_url,
    load_blacklist,
    load_config,
)
from mapleads.errors import ConfigError, InvalidSearchError


ROOT = Path(__file__).resolve().parents[2]


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_build_search_url_encodes_query():
    assert build_search_url("coffee shop", "Austin, TX") == (
        "https://www.google.com/maps/search/coffee%20shop%20Austin%2C%20TX"
    )


@pytest.mark.parametrize("keyword,location", [("", "Austin"), ("coffee", None), ("  ", "  ")])
def test_build_search_url_requires_both(keyword, location):
    with pytest.raises(InvalidSearchError):
        build_search_url(keyword, location)


def test_defaults():
    config = ScrapeConfig()
    assert config.max_results == 100
    assert config.concurrency == 5
    assert config.find_emails is False
    assert config.extract_business_hours is True
    assert config.headless is True
    assert config.timeouts.navigation == 60000
    assert config.timeouts.business_details == 3000
    assert config.criteria.min_rating == 0


def test_load_config(tmp_path):
    path = write(tmp_path, "run.yaml", """
keyword: dentist
location: Denver, CO
max_results: 25
criteria:
  min_rating: 4.2
  price_levels: ["$$"]
find_emails: true
timeouts:
  navigation: 30000
selectors:
  phone:
    - text: div.phone
""")
    config = load_config(path)
    assert config.keyword == "dentist"
    assert config.max_results == 25
    assert config.criteria.min_rating == 4.2
    assert config.criteria.price_levels == ["$$"]
    assert config.find_emails is True
    assert config.timeouts.navigation == 30000
    assert config.timeouts.scroll_wait == 2000
    assert config.selectors == {"phone": [{"text": "div.phone"}]}
    assert config.resolved_search_url().endswith("dentist%20Denver%2C%20CO")


def test_example_config_is_valid():
    config = load_config(ROOT / "config" / "example.yaml")
    assert config.keyword
    assert config.blacklist_path == "config/email_blacklist.yaml"


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="file not found"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = write(tmp_path, "bad.yaml", "keyword: [unclosed\n")
    with pytest.raises(ConfigError, match="invalid YAML"):
        load_config(path)


def test_top_level_must_be_mapping(tmp_path):
    path = write(tmp_path, "list.yaml", "- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(write(tmp_path, "empty.yaml", "")) == ScrapeConfig()


@pytest.mark.parametrize(
    "body",
    [
        "max_results: 0\n",
        "concurrency: -1\n",
        "criteria:\n  min_rating: 9\n",
        "selectors:\n  fax:\n    - text: x\n",
        "selectors:\n  phone:\n    - xpath: //div\n",
        "selectors:\n  phone: []\n",
    ],
)
def test_invalid_values_are_config_errors(tmp_path, body):
    with pytest.raises(ConfigError, match="invalid config"):
        load_config(write(tmp_path, "c.yaml", body))


def test_default_blacklist():
    blacklist = load_blacklist()
    assert blacklist.domains == DEFAULT_BLACKLIST_DOMAINS
    assert blacklist.blocks("info@example.com")
    assert blacklist.blocks("noreply@company.com")
    assert blacklist.blocks("logo@2x.png")
    assert not blacklist.blocks("info@company.com")
    assert not blacklist.blocks("info@crowndomain.com")
    assert not blacklist.blocks("hi@fastemail.com")


def test_blacklist_file_loaded_once(tmp_path):
    path = str(write(tmp_path, "bl.yaml", "domains: [spam.test]\npatterns: ['^bot@']\n"))
    first = load_blacklist(path)
    assert first.blocks("x@spam.test")
    assert first.blocks("bot@company.com")
    assert load_blacklist(path) is first


def test_bundled_blacklist_matches_defaults():
    bundled = load_blacklist(str(ROOT / "config" / "email_blacklist.yaml"))
    defaults = load_blacklist()
    assert bundled.domains == defaults.domains
    assert bundled.patterns == defaults.patterns


def test_invalid_blacklist(tmp_path):
    path = str(write(tmp_path, "bl.yaml", "patterns: ['(oops']\n"))
    with pytest.raises(ConfigError, match="invalid blacklist"):
        load_blacklist(path)
