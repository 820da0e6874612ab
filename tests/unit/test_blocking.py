from mapleads.errors import BlockedError, InvalidSearchError
from mapleads.pipeline.blocking import detect_block, detect_no_results, diagnose_page, results_failure


def test_captcha_text_detected():
    reasons = detect_block("Our systems have detected unusual traffic from your computer network.")
    assert "text:unusual traffic" in reasons
    assert "text:Our systems have detected" in reasons


def test_sorry_url_detected():
    reasons = detect_block("", "https://www.google.com/sorry/index?continue=https://www.google.com/maps")
    assert "url:/sorry/" in reasons
    assert "url:[?&]continue=" in reasons


def test_consent_wall_detected():
    reasons = detect_block("Before you continue to Google", "https://consent.google.com/ml?hl=en")
    assert any(r.startswith("url:consent") for r in reasons)
    assert "text:Before you continue to Google" in reasons


def test_normal_results_page_not_blocked():
    assert detect_block("Coffee shops near Austin", "https://www.google.com/maps/search/coffee") == []
    assert detect_block(None, None) == []


def test_no_results_detection():
    assert detect_no_results("Google Maps can't find zzqqxx")
    assert not detect_no_results("Results")
    assert not detect_no_results(None)


def test_diagnose_page():
    diag = diagnose_page("Please solve this CAPTCHA", "https://www.google.com/maps")
    assert diag.blocked
    assert diag.reasons == ["text:captcha"]
    assert not diag.no_results


def test_results_failure_blocked():
    err = results_failure("unusual traffic", "https://www.google.com/sorry/index", "Sorry...")
    assert isinstance(err, BlockedError)
    assert "url:/sorry/" in err.reasons
    assert "blocked or rate-limited" in str(err)


def test_results_failure_bad_input():
    err = results_failure("Google Maps can't find asdfgh", "https://www.google.com/maps/search/asdfgh", "Google Maps")
    assert isinstance(err, InvalidSearchError)
    assert not isinstance(err, BlockedError)
    assert "no results" in str(err)


def test_results_failure_unknown_page_is_bad_input():
    err = results_failure(None, None, None)
    assert isinstance(err, InvalidSearchError)
    assert "did not load" in str(err)


def test_title_is_checked_too():
    err = results_failure("", "https://www.google.com/maps", "Too Many Requests")
    assert isinstance(err, BlockedError)
