"""Tests for the hybrid detector with fake classifiers."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import asyncio
import logging
import re

import pytest

from pii_masker import Detector, MappingStore, PipelineConfig, detect, mask, unmask
from pii_masker.types import RawToken

EXAMPLE = "Contact jane.doe@example.com or 555-123-4567"


class FakeClassifier:
    """Labels every occurrence of the given words in each chunk."""

    def __init__(self, labels=None, *, offsets=True, fail_when=None, delay=0.0):
        self.labels = labels or {}
        self.offsets = offsets
        self.fail_when = fail_when
        self.delay = delay
        self.calls = []

    async def classify(self, chunk_text, *, max_length):
        self.calls.append(chunk_text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_when and self.fail_when(chunk_text):
            raise RuntimeError("inference failed")
        tokens = []
        for word, (label, score) in self.labels.items():
            for m in re.finditer(re.escape(word), chunk_text):
                tokens.append((m.start(), m.end(), word, label, score))
        tokens.sort()
        return [
            RawToken(word, label, score, start if self.offsets else None, end if self.offsets else None)
            for start, end, word, label, score in tokens
        ]


NAMES = {"Jane": ("I-GIVENNAME", 0.95), "Doe": ("I-SURNAME", 0.85)}


# ── Pattern-only ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_pattern_only_example():
    spans = await detect(EXAMPLE)
    assert [(s.category, s.value) for s in spans] == [
        ("email", "jane.doe@example.com"),
        ("phone", "555-123-4567"),
    ]
    result = mask(EXAMPLE, spans)
    assert result.text == "Contact [REDACTED_EMAIL] or [REDACTED_PHONE]"
    assert result.applied == spans


@pytest.mark.asyncio
async def test_empty_text():
    assert await detect("") == []


@pytest.mark.asyncio
async def test_no_pii_is_not_an_error():
    assert await detect("nothing to see here", FakeClassifier()) == []


# ── Hybrid ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_names_from_classifier_are_merged():
    text = "Contact Jane Doe at jane.doe@example.com"
    spans = await detect(text, FakeClassifier(NAMES))
    assert [(s.category, s.value, s.start, s.end, s.source) for s in spans] == [
        ("person", "Jane Doe", 8, 16, "model"),
        ("email", "jane.doe@example.com", 20, 40, "pattern"),
    ]
    assert spans[0].confidence == 0.85


@pytest.mark.asyncio
async def test_tokens_without_offsets_are_located():
    text = "Contact Jane Doe at jane.doe@example.com"
    spans = await detect(text, FakeClassifier(NAMES, offsets=False))
    person = [s for s in spans if s.category == "person"]
    assert [(p.value, p.start, p.end) for p in person] == [("Jane Doe", 8, 16)]


@pytest.mark.asyncio
async def test_pattern_wins_over_model_at_same_start():
    clf = FakeClassifier({"jane.doe@example.com": ("I-EMAIL", 0.99)})
    spans = await detect(EXAMPLE, clf)
    emails = [s for s in spans if s.category == "email"]
    assert len(emails) == 1
    assert emails[0].source == "pattern"


@pytest.mark.asyncio
async def test_low_confidence_model_spans_filtered():
    clf = FakeClassifier({"Jane": ("I-GIVENNAME", 0.4)})
    assert await detect("Ask Jane", clf) == []


@pytest.mark.asyncio
async def test_every_chunk_is_classified():
    text = "word " * 100
    clf = FakeClassifier()
    await Detector(PipelineConfig(max_chars=150, overlap=15)).detect(text, clf)
    assert len(clf.calls) == 4
    assert all(len(c) <= 150 for c in clf.calls)


@pytest.mark.asyncio
async def test_name_in_overlap_reported_once():
    text = "word " * 28 + "Jane Doe said hello" + " more" * 30
    spans = await detect(text, FakeClassifier(NAMES))
    assert [(s.value, s.start, s.end) for s in spans] == [("Jane Doe", 140, 148)]


# ── Degradation ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_failed_chunk_does_not_abort(caplog):
    text = "Order notes: " + "lorem ipsum " * 20 + "Ask Jane Doe today."
    clf = FakeClassifier(NAMES, fail_when=lambda chunk: chunk.startswith("Order notes"))
    with caplog.at_level(logging.WARNING, logger="pii_masker.detector"):
        spans = await detect(text, clf)
    assert len(clf.calls) == 2
    assert [(s.category, s.value, s.start) for s in spans] == [
        ("person", "Jane Doe", text.index("Jane")),
    ]
    assert "offset 0" in caplog.text


@pytest.mark.asyncio
async def test_all_chunks_failing_falls_back_to_patterns():
    clf = FakeClassifier(NAMES, fail_when=lambda chunk: True)
    spans = await detect(EXAMPLE, clf)
    assert [s.category for s in spans] == ["email", "phone"]


@pytest.mark.asyncio
async def test_slow_classifier_times_out(caplog):
    text = "Contact Jane Doe at jane.doe@example.com"
    clf = FakeClassifier(NAMES, delay=1.0)
    config = PipelineConfig(timeout=0.05)
    with caplog.at_level(logging.WARNING, logger="pii_masker.detector"):
        spans = await detect(text, clf, config)
    assert [s.source for s in spans] == ["pattern"]
    assert "patterns only" in caplog.text


# ── Config-driven filtering ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_skip_types():
    spans = await detect(EXAMPLE, config=PipelineConfig(skip_types={"phone"}))
    assert [s.category for s in spans] == ["email"]


@pytest.mark.asyncio
async def test_allow_list():
    spans = await detect(EXAMPLE, config=PipelineConfig(allow_list={"jane.doe@example.com"}))
    assert [s.category for s in spans] == ["phone"]


def test_invalid_config():
    with pytest.raises(ValueError):
        PipelineConfig(max_chars=100, overlap=100)
    with pytest.raises(ValueError):
        PipelineConfig(timeout=0)


# ── Properties ───────────────────────────────────────────────────────

SAMPLES = [
    EXAMPLE,
    "Dr. Sarah Mitchell, SSN 123-45-6789, lives at zip 98101.",
    "my name is John Smith and my card is 4111 1111 1111 1111",
    "Jane Doe " * 40,
    "",
]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", SAMPLES)
async def test_spans_in_bounds_and_disjoint(text):
    spans = await detect(text, FakeClassifier(NAMES))
    for s in spans:
        assert 0 <= s.start <= s.end <= len(text)
        assert text[s.start:s.end] == s.value
    for a, b in zip(spans, spans[1:]):
        assert a.end <= b.start


@pytest.mark.asyncio
@pytest.mark.parametrize("text", SAMPLES)
async def test_roundtrip(text):
    store = MappingStore()
    result = await Detector().redact(text, store, FakeClassifier(NAMES))
    assert unmask(result.text, result.mapping) == text
    assert unmask(result.text, store.entries()) == text


@pytest.mark.asyncio
@pytest.mark.parametrize("text", SAMPLES)
async def test_remask_is_idempotent(text):
    detector = Detector()
    clf = FakeClassifier({"REDACTED_NAME": ("I-USERNAME", 0.99), **NAMES})
    first = await detector.redact(text, classifier=clf)
    second = await detector.redact(first.text, classifier=clf)
    assert second.text == first.text
    assert second.applied == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [
    "old [REDACTED_EMAIL] new bob@corp.com",
    "bob@corp.com replaced [REDACTED_EMAIL] last week",
])
async def test_roundtrip_with_placeholder_already_in_input(text):
    result = await Detector().redact(text)
    assert [s.value for s in result.applied] == ["bob@corp.com"]
    assert unmask(result.text, result.mapping) == text


@pytest.mark.asyncio
async def test_full_name_gets_own_placeholder():
    result = await Detector().redact("I am meeting with John Smith today")
    assert result.text == "I am meeting with [REDACTED_FULLNAME] today"
