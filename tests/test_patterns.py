"""Tests for the pattern layer."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pii_masker.masking import PLACEHOLDER_TAGS
from pii_masker.patterns import PATTERN_RULES, has_pattern_match, scan_patterns


# ── Rule table ───────────────────────────────────────────────────────

def test_rule_order_specific_first():
    order = [r.category for r in PATTERN_RULES]
    assert order[0] == "ssn"
    assert order.index("ssn") < order.index("phone")
    assert order.index("creditCard") < order.index("zipCode")
    assert order.index("email") < order.index("titleName")
    assert order[-3:] == ["titleName", "fullName", "organization"]


def test_rule_categories_unique():
    order = [r.category for r in PATTERN_RULES]
    assert len(order) == len(set(order))


# ── Matching ─────────────────────────────────────────────────────────

def test_email_and_phone_example():
    text = "Contact jane.doe@example.com or 555-123-4567"
    spans = scan_patterns(text)
    assert [(s.category, s.value) for s in spans] == [
        ("email", "jane.doe@example.com"),
        ("phone", "555-123-4567"),
    ]
    email, phone = spans
    assert (email.start, email.end) == (8, 28)
    assert (phone.start, phone.end) == (32, 44)
    assert all(s.source == "pattern" and s.confidence == 1.0 for s in spans)


def test_ssn_detection():
    spans = scan_patterns("SSN: 123-45-6789")
    ssns = [s for s in spans if s.category == "ssn"]
    assert len(ssns) == 1
    assert ssns[0].value == "123-45-6789"


def test_ip_detection():
    spans = scan_patterns("Server at 192.168.1.100")
    ips = [s for s in spans if s.category == "ipv4"]
    assert len(ips) == 1
    assert ips[0].value == "192.168.1.100"


def test_credit_card_detection():
    spans = scan_patterns("Card: 4111-1111-1111-1111")
    cards = [s for s in spans if s.category == "creditCard"]
    assert len(cards) == 1
    assert cards[0].value == "4111-1111-1111-1111"


def test_title_name():
    text = "Please see Dr. Sarah Mitchell today"
    names = [s for s in scan_patterns(text) if s.category == "titleName"]
    assert [n.value for n in names] == ["Dr. Sarah Mitchell"]


def test_full_name_reports_only_the_name():
    text = "Hi, my name is Sarah Connor."
    names = [s for s in scan_patterns(text) if s.category == "fullName"]
    assert len(names) == 1
    assert names[0].value == "Sarah Connor"
    assert names[0].start == text.index("Sarah")


def test_date_of_birth_with_label():
    spans = scan_patterns("DOB: 03/15/1985")
    dobs = [s for s in spans if s.category == "dateOfBirth"]
    assert len(dobs) == 1


def test_value_matches_offsets():
    text = "Mail bob@test.org, call (555) 123-4567, zip 98101"
    for s in scan_patterns(text):
        assert text[s.start:s.end] == s.value


def test_repeated_scans_are_identical():
    text = "a@b.com then c@d.com"
    assert scan_patterns(text) == scan_patterns(text)
    assert len(scan_patterns(text)) == 2


def test_no_false_positive_on_clean_text():
    assert scan_patterns("The weather is nice today in Melbourne") == []


def test_placeholders_never_match():
    text = " ".join(f"[{tag}]" for tag in PLACEHOLDER_TAGS.values())
    assert scan_patterns(text) == []


# ── Presence check ───────────────────────────────────────────────────

def test_has_pattern_match():
    assert has_pattern_match("write to alice@example.com")
    assert not has_pattern_match("nothing to see here")
