"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field

PATTERN = "pattern"
MODEL = "model"


@dataclass(frozen=True, slots=True)
class Span:
    """A single detected PII region of the input text."""
    category: str          # e.g. "email", "phone", "person"
    value: str             # text[start:end] at detection time
    start: int
    end: int
    source: str            # "pattern" | "model"
    confidence: float      # 0.0–1.0


@dataclass(frozen=True, slots=True)
class Chunk:
    """A bounded window of the original text sent to the classifier."""
    text: str
    offset: int            # position of text[0] in the original


@dataclass(frozen=True, slots=True)
class RawToken:
    """One prediction as reported by a classifier, before reassembly."""
    fragment: str          # may start with "##" (sub-word continuation)
    label: str             # raw model label, e.g. "I-GIVENNAME"
    score: float
    start: int | None = None   # chunk-local, may be missing
    end: int | None = None


@dataclass(slots=True)
class Word:
    """Reassembled token with absolute offsets."""
    text: str
    label: str
    score: float
    start: int
    end: int


@dataclass(slots=True)
class MergedEntity:
    """Consecutive same-category words fused into one phrase."""
    category: str
    label: str
    value: str
    score: float
    start: int | None
    end: int | None

    def to_span(self) -> Span:
        return Span(
            category=self.category,
            value=self.value,
            start=self.start,
            end=self.end,
            source=MODEL,
            confidence=self.score,
        )


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """placeholder → original value."""
    placeholder: str
    original: str
    position: int | None = None   # offset of the placeholder in the masked text


@dataclass(slots=True)
class MaskResult:
    """Result of masking a text."""
    text: str                                         # masked text
    applied: list[Span] = field(default_factory=list)  # spans actually replaced
    mapping: list[MappingEntry] = field(default_factory=list)  # in text order
