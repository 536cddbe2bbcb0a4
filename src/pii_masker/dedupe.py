"""Span deduplicator — reconcile pattern and model spans."""

from __future__ import annotations
from typing import Iterable

from .types import PATTERN, Span

# At equal start offsets a pattern span beats a model span
_SOURCE_RANK = {PATTERN: 0}


def overlaps(a: Span, b: Span) -> bool:
    return a.start < b.end and b.start < a.end


def deduplicate(spans: Iterable[Span]) -> list[Span]:
    """Greedy left-to-right selection of non-overlapping spans.

    Spans are ordered by start, then pattern before model; within that the
    input order is kept (the sort is stable), so for two pattern rules
    matching at the same offset the earlier rule wins.
    """
    ranked = sorted(
        (s for s in spans if s.end > s.start),
        key=lambda s: (s.start, _SOURCE_RANK.get(s.source, 1)),
    )
    kept: list[Span] = []
    for span in ranked:
        # kept is start-ordered and non-overlapping: only the last one can collide
        if kept and overlaps(kept[-1], span):
            continue
        kept.append(span)
    return kept
