"""Masking engine — swap spans for placeholders, and back.

Spans are replaced right-to-left so a replacement never shifts the
offsets of spans still waiting.  Before each replacement the slice is
compared to the span's recorded value; a stale span is skipped rather
than allowed to corrupt the output.

Placeholders look like ``[REDACTED_EMAIL]``.  The tag table below is the
wire contract for restoring text, so its values must not change.
"""

from __future__ import annotations
import logging
import re
from collections import defaultdict, deque
from typing import Iterable

from .dedupe import overlaps
from .types import MappingEntry, MaskResult, Span
from .vault import MappingStore

logger = logging.getLogger(__name__)

PLACEHOLDER_TAGS: dict[str, str] = {
    "email": "REDACTED_EMAIL",
    "phone": "REDACTED_PHONE",
    "ssn": "REDACTED_SSN",
    "nationalId": "REDACTED_SSN",
    "creditCard": "REDACTED_CREDIT_CARD",
    "zipCode": "REDACTED_ZIP",
    "ipv4": "REDACTED_IP",
    "dateOfBirth": "REDACTED_DOB",
    "passport": "REDACTED_PASSPORT",
    "driversLicense": "REDACTED_LICENSE",
    "bankAccount": "REDACTED_ACCOUNT",
    "medicalRecord": "REDACTED_MEDICAL_ID",
    "vin": "REDACTED_VIN",
    "policyNumber": "REDACTED_POLICY",
    "routingNumber": "REDACTED_ROUTING",
    "person": "REDACTED_NAME",
    "organization": "REDACTED_ORGANIZATION",
    "location": "REDACTED_LOCATION",
    "titleName": "REDACTED_NAME",
}

# Every placeholder this module can produce matches this
PLACEHOLDER_RE = re.compile(r"\[REDACTED_[A-Z0-9_]+\]")


def placeholder_for(category: str) -> str:
    tag = PLACEHOLDER_TAGS.get(category)
    if tag is None:
        tag = "REDACTED_" + re.sub(r"[^A-Z0-9]+", "_", category.upper()).strip("_")
    return f"[{tag}]"


def find_placeholders(text: str) -> list[tuple[int, int]]:
    """(start, end) of every placeholder already present in text."""
    return [m.span() for m in PLACEHOLDER_RE.finditer(text)]


def mask_spans(
    text: str,
    spans: Iterable[Span],
    store: MappingStore | None = None,
) -> MaskResult:
    """Replace spans with placeholders and log the originals in store.

    Returns the masked text, the spans actually applied (start order) and
    this call's mapping entries in text order.
    """
    applied: list[Span] = []
    result = text
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        if not 0 <= span.start < span.end <= len(text):
            logger.debug("skipping %s span out of bounds [%d, %d)", span.category, span.start, span.end)
            continue
        if any(overlaps(span, other) for other in applied):
            continue
        if result[span.start:span.end] != span.value:
            logger.debug("skipping stale %s span at %d", span.category, span.start)
            continue
        result = result[:span.start] + placeholder_for(span.category) + result[span.end:]
        applied.append(span)

    applied.reverse()
    mapping: list[MappingEntry] = []
    shift = 0   # length change from replacements left of the current span
    for s in applied:
        placeholder = placeholder_for(s.category)
        mapping.append(MappingEntry(placeholder, s.value, s.start + shift))
        shift += len(placeholder) - (s.end - s.start)
    if store is not None and mapping:
        store.extend(mapping)
    return MaskResult(text=result, applied=applied, mapping=mapping)


def unmask(text: str, mapping: Iterable[MappingEntry]) -> str:
    """Put originals back where ``mask_spans`` put the placeholders.

    Entries carrying a position only restore the placeholder found at
    that offset, so placeholder text that was already in the input stays
    as it is.  Entries without a position are consumed per placeholder in
    order: the n-th unclaimed ``[REDACTED_EMAIL]`` gets the n-th such
    email entry.  Placeholders with no entry are kept as they are.
    """
    located: dict[int, MappingEntry] = {}
    queues: dict[str, deque[str]] = defaultdict(deque)
    for entry in mapping:
        if entry.position is None:
            queues[entry.placeholder].append(entry.original)
        else:
            located[entry.position] = entry

    def restore(m: re.Match) -> str:
        entry = located.pop(m.start(), None)
        if entry is not None and entry.placeholder == m.group():
            return entry.original
        if entry is not None:
            located[m.start()] = entry
        pending = queues.get(m.group())
        return pending.popleft() if pending else m.group()

    restored = PLACEHOLDER_RE.sub(restore, text)
    for position, entry in located.items():
        logger.debug("no %s at offset %d, leaving it", entry.placeholder, position)
    return restored
