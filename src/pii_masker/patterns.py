"""Pattern layer — fast regex rules for structured PII.

These always run and never need the classifier.  Rules are listed from the
most structurally specific (SSNs, card numbers) to the loosest (name-like
phrases, organizations) so the order itself is part of the contract.
Overlaps between rules are resolved later by the deduplicator.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

from .types import PATTERN, Span

_MONTHS = (
    r"January|February|March|April|May|June|July|August|September|October"
    r"|November|December|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
)


@dataclass(frozen=True, slots=True)
class PatternRule:
    """One entry of the pattern table."""
    category: str
    regex: re.Pattern
    group: int = 0         # report this capture group instead of the whole match


PATTERN_RULES: tuple[PatternRule, ...] = (
    # Most specific first
    PatternRule("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),

    PatternRule("creditCard", re.compile(
        r"\b(?:4\d{3}|5[1-5]\d{2}|6011|3[47]\d{2})[\s\-]?\d{4}[\s\-]?\d{4}[\s\-]?\d{4}\b"
    )),

    PatternRule("cvv", re.compile(
        r"\b(?:CVV|CVC|CSC)[\-:\s]+\d{3,4}\b", re.IGNORECASE
    )),

    PatternRule("policyNumber", re.compile(
        r"\b(?:policy|insurance)(?:\s+(?:number|#))?[\-:\s]*(?:POL-|POLICY-)?\d{4}-\d{7,10}\b",
        re.IGNORECASE,
    )),

    PatternRule("medicalRecord", re.compile(
        r"\b(?:MRN|HIC|medical\s+record(?:\s+number)?)[\-:\s]+\d{2,3}-?\d{2,3}-?\d{4,5}[A-Z]?\b",
        re.IGNORECASE,
    )),

    # VIN body is upper-case only and must contain a digit
    PatternRule("vin", re.compile(
        r"\b(?:(?i:VIN|vehicle\s+identification\s+number)[\-:\s]+)?"
        r"(?=[A-HJ-NPR-Z]*\d)[A-HJ-NPR-Z0-9]{17}\b"
    )),

    PatternRule("routingNumber", re.compile(
        r"\brouting(?:\s+(?:number|#))?[\-:\s]+\d{9}\b", re.IGNORECASE
    )),

    PatternRule("bankAccount", re.compile(
        r"\baccount(?:\s+(?:number|#|no\.?))?[\-:\s]+\d{10,17}\b", re.IGNORECASE
    )),

    PatternRule("passport", re.compile(
        r"\b(?:passport(?:\s+(?:number|#|no\.?))?[\-:\s]+)?[A-Z]{1,2}\d{7,9}\b",
        re.IGNORECASE,
    )),

    PatternRule("driversLicense", re.compile(
        r"\b(?:driver'?s?\s+(?:license|DL)(?:\s+(?:number|#|no\.?))?[\-:\s]+"
        r"|license\s+number(?:\s+is)?[\-:\s]+)[A-Z]\d{7,8}\b",
        re.IGNORECASE,
    )),

    PatternRule("email", re.compile(
        r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"
    )),

    PatternRule("phone", re.compile(
        r"(?:\+\d{1,3}[\-.\s]?)?\(?\d{3}\)?[\-.\s]?\d{3}[\-.\s]?\d{4}\b"
    )),

    PatternRule("zipCode", re.compile(r"\b\d{5}(?:-\d{4})?\b")),

    PatternRule("ipv4", re.compile(
        r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}"
        r"(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b"
    )),

    PatternRule("dateOfBirth", re.compile(
        r"\b(?:DOB|date\s+of\s+birth|born\s+on|birth\s+date)[\-:\s]+"
        r"(?:(?:0?[1-9]|1[0-2])[\-/](?:0?[1-9]|[12]\d|3[01])[\-/](?:19|20)\d{2}"
        r"|(?:" + _MONTHS + r")\s+\d{1,2},?\s+(?:19|20)\d{2})\b",
        re.IGNORECASE,
    )),

    # Name-like phrases, loosest last
    PatternRule("titleName", re.compile(
        r"\b(?:Dr|Mr|Mrs|Ms|Prof|Professor)\.?\s+[A-Z][a-z]+(?:[\-'\s][A-Z][a-z]+)*"
        r"(?:\s+[A-Z][a-z]+(?:[\-'][A-Z][a-z]+)*){0,2}\b"
    )),

    PatternRule("fullName", re.compile(
        r"\b(?:[Mm]y\s+(?:name|colleague)\s+is|with|coordinating\s+with)\s+"
        r"([A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b"
    ), group=1),

    PatternRule("organization", re.compile(
        r"\b(?:[A-Z][A-Za-z]+\s+){1,4}(?:Corporation|Corp\.?|Inc\.?|LLC|Ltd\.?|Limited"
        r"|Company|Co\.?|Bank|Services|Systems|Solutions|Technologies|Group|Partners"
        r"|Industries|Medical\s+Center|University|College|Pharmacy)\b"
    )),
)


def scan_patterns(
    text: str,
    rules: tuple[PatternRule, ...] = PATTERN_RULES,
) -> list[Span]:
    """Run every rule against text.

    Returns spans in rule order, then match order.  Overlapping matches
    from different rules are all reported.
    """
    spans: list[Span] = []
    for rule in rules:
        for m in rule.regex.finditer(text):
            start, end = m.span(rule.group)
            if start == end:
                continue
            spans.append(Span(
                category=rule.category,
                value=text[start:end],
                start=start,
                end=end,
                source=PATTERN,
                confidence=1.0,
            ))
    return spans


def has_pattern_match(text: str) -> bool:
    """Cheap check used for live feedback: does any rule fire at all?"""
    return any(rule.regex.search(text) for rule in PATTERN_RULES)
