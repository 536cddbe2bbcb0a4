"""Confidence & plausibility filter for classifier output.

Each category carries a confidence floor and a list of validators.  A
span survives only if its confidence is strictly above the floor and
every validator accepts its value.  High-harm categories (government
IDs, phone numbers) get high floors; broad ones (cities) get low floors.

Validators receive the lower-cased, stripped value.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .types import Span

Validator = Callable[[str], bool]

_LETTER = re.compile(r"[a-z]", re.IGNORECASE)
_DIGIT = re.compile(r"\d")

# Categories whose values are legitimately alphanumeric
IDENTIFIER_CATEGORIES = frozenset({"username", "password", "license", "idCard", "passport"})

# Short words a model tends to tag as part of an email
_EMAIL_NOISE = frozenset({"his", "her", "my", "your", "office", "home"})


def _digits(value: str) -> str:
    return "".join(c for c in value if c.isdigit())


# ── validators ───────────────────────────────────────────────────────

def min_length(n: int) -> Validator:
    def check(value: str) -> bool:
        return len(value) >= n
    return check


def min_digits(n: int) -> Validator:
    def check(value: str) -> bool:
        return len(_digits(value)) >= n
    return check


def not_mixed_alphanumeric(value: str) -> bool:
    """Rejects tokenizer noise like "5bseattle"."""
    if "@" in value or "." in value:
        return True
    return not (_LETTER.search(value) and _DIGIT.search(value))


def looks_like_ip(value: str) -> bool:
    return re.match(r"\d+\.\d+", value) is not None


def looks_like_email(value: str) -> bool:
    if "@" not in value and "." not in value:
        return False
    return value not in _EMAIL_NOISE


def looks_like_phone(value: str) -> bool:
    if not 7 <= len(_digits(value)) <= 15:
        return False
    return not (value[:1] in "-./" or value[-1:] in "-./")


def looks_like_date(value: str) -> bool:
    digits = _digits(value)
    if len(digits) < 4 or value.endswith(("-", "/")):
        return False
    return "-" in value or "/" in value or len(digits) >= 6


def not_short_number(value: str) -> bool:
    """Bare numbers under five digits are ZIP fragments, not addresses."""
    return not (value.isdigit() and len(value) < 5)


# ── table ────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CategoryRule:
    floor: float
    validators: tuple[Validator, ...] = field(default_factory=tuple)


DEFAULT_FLOOR = 0.60
DEFAULT_RULE = CategoryRule(DEFAULT_FLOOR)

_ADDRESS = (min_length(3), not_short_number)
_DATE = (looks_like_date,)
_NATIONAL_ID = (min_digits(9),)

CATEGORY_RULES: dict[str, CategoryRule] = {
    # High precision
    "ssn": CategoryRule(0.80, _NATIONAL_ID),
    "nationalId": CategoryRule(0.80, _NATIONAL_ID),
    "password": CategoryRule(0.80),
    "license": CategoryRule(0.75),
    "passport": CategoryRule(0.75),
    "idCard": CategoryRule(0.75),
    # Medium precision
    "person": CategoryRule(0.60),
    "email": CategoryRule(0.80, (looks_like_email,)),
    "phone": CategoryRule(0.90, (looks_like_phone,)),
    "ip": CategoryRule(0.75, (looks_like_ip,)),
    "username": CategoryRule(0.65),
    # Low precision
    "location": CategoryRule(0.55),
    "country": CategoryRule(0.55),
    "state": CategoryRule(0.55),
    "address": CategoryRule(0.60, _ADDRESS),
    "building": CategoryRule(0.60, _ADDRESS),
    "secaddress": CategoryRule(0.60, _ADDRESS),
    "zipcode": CategoryRule(0.60),
    "geocoord": CategoryRule(0.65),
    "dateOfBirth": CategoryRule(0.70, _DATE),
    "date": CategoryRule(0.60, _DATE),
    "time": CategoryRule(0.60),
    "title": CategoryRule(0.50),
    "sex": CategoryRule(0.65),
}

_GLOBAL_VALIDATORS: tuple[Validator, ...] = (min_length(2),)


def rule_for(category: str) -> CategoryRule:
    return CATEGORY_RULES.get(category, DEFAULT_RULE)


def is_plausible(span: Span, floors: dict[str, float] | None = None) -> bool:
    """True if span clears its category floor and every format check."""
    rule = rule_for(span.category)
    floor = rule.floor
    if floors and span.category in floors:
        floor = floors[span.category]
    if span.confidence <= floor:
        return False

    value = span.value.strip().lower()
    for check in _GLOBAL_VALIDATORS:
        if not check(value):
            return False
    if span.category not in IDENTIFIER_CATEGORIES and not not_mixed_alphanumeric(value):
        return False
    return all(check(value) for check in rule.validators)


def filter_spans(spans: Iterable[Span], floors: dict[str, float] | None = None) -> list[Span]:
    """Keep only plausible spans, preserving order."""
    return [s for s in spans if is_plausible(s, floors)]
