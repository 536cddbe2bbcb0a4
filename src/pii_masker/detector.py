"""Detector — the main API.  Hybrid: patterns always, classifier when present.

Usage:
    from pii_masker import Detector, MappingStore, unmask

    store = MappingStore()          # one per session
    detector = Detector()           # reusable, holds config only

    spans = await detector.detect("Email me at john@acme.com")
    result = detector.mask("Email me at john@acme.com", spans, store)
    print(result.text)              # "Email me at [REDACTED_EMAIL]"
    print(unmask(result.text, result.mapping))

    # With a classifier for names, places, ...
    spans = await detector.detect(text, classifier=TransformersClassifier())
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .chunker import DEFAULT_MAX_CHARS, DEFAULT_OVERLAP, chunk_text
from .classifiers import DEFAULT_MAX_LENGTH, Classifier
from .dedupe import deduplicate
from .filters import filter_spans
from .masking import find_placeholders, mask_spans
from .merger import DEFAULT_MAX_GAP, merge_words
from .patterns import scan_patterns
from .reassembly import reassemble
from .types import Chunk, MaskResult, RawToken, Span, Word
from .vault import MappingStore

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for the Detector."""
    max_chars: int = DEFAULT_MAX_CHARS     # classifier window, in characters
    overlap: int = DEFAULT_OVERLAP         # shared characters between windows
    max_length: int = DEFAULT_MAX_LENGTH   # passed through to the classifier
    merge_gap: int = DEFAULT_MAX_GAP       # max chars between fused words
    timeout: float = 30.0                  # soft budget for the classifier path
    # Per-category confidence floor overrides
    floors: dict[str, float] = field(default_factory=dict)
    # Categories to always skip (e.g. don't mask dates)
    skip_types: set[str] = field(default_factory=set)
    # Allow-list: values that should NEVER be masked
    allow_list: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not 0 <= self.overlap < self.max_chars:
            raise ValueError(f"overlap must be in [0, max_chars), got {self.overlap}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.merge_gap < 0:
            raise ValueError(f"merge_gap must be >= 0, got {self.merge_gap}")


class Detector:
    """Hybrid PII detector.

    Pattern path: ordered regex rules, synchronous, always on.
    Model path:   chunk → classify → reassemble → merge → filter,
                  asynchronous, only when a classifier is passed in.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()

    async def detect(self, text: str, classifier: Classifier | None = None) -> list[Span]:
        """Find PII in text.  Returns start-ordered, non-overlapping spans.

        A missing, failing or slow classifier only removes model spans;
        pattern spans are always returned.
        """
        if not text:
            return []

        spans = scan_patterns(text)

        if classifier is not None:
            try:
                model_spans = await asyncio.wait_for(
                    self.detect_model(text, classifier),
                    timeout=self.config.timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("classifier not done after %.1fs, using patterns only", self.config.timeout)
            else:
                spans.extend(model_spans)

        spans = self._apply_user_filters(spans)
        spans = _drop_placeholders(text, spans)
        return deduplicate(spans)

    async def detect_model(self, text: str, classifier: Classifier) -> list[Span]:
        """Model path only: classify every chunk, then merge and filter."""
        chunks = chunk_text(text, self.config.max_chars, self.config.overlap)
        results = await asyncio.gather(
            *(self._classify_chunk(classifier, chunk) for chunk in chunks),
            return_exceptions=True,
        )

        words: list[Word] = []
        for chunk, result in zip(chunks, results):
            if isinstance(result, BaseException):
                logger.warning("classifier failed on chunk at offset %d: %r", chunk.offset, result)
                continue
            words.extend(reassemble(result, chunk))

        entities = merge_words(words, text, self.config.merge_gap)
        spans = filter_spans((e.to_span() for e in entities), self.config.floors)
        logger.debug(
            "model path: %d chunks, %d words, %d entities, %d kept",
            len(chunks), len(words), len(entities), len(spans),
        )
        return spans

    async def _classify_chunk(self, classifier: Classifier, chunk: Chunk) -> list[RawToken]:
        return await classifier.classify(chunk.text, max_length=self.config.max_length)

    def _apply_user_filters(self, spans: list[Span]) -> list[Span]:
        return [
            s for s in spans
            if s.category not in self.config.skip_types and s.value not in self.config.allow_list
        ]

    def mask(self, text: str, spans: Iterable[Span], store: MappingStore | None = None) -> MaskResult:
        """Replace spans with placeholders, recording originals in store."""
        return mask_spans(text, spans, store)

    async def redact(
        self,
        text: str,
        store: MappingStore | None = None,
        classifier: Classifier | None = None,
    ) -> MaskResult:
        """Detect and mask in one go."""
        spans = await self.detect(text, classifier)
        return self.mask(text, spans, store)


def _drop_placeholders(text: str, spans: list[Span]) -> list[Span]:
    """Never report a span touching an existing placeholder."""
    regions = find_placeholders(text)
    if not regions:
        return spans
    return [s for s in spans if not any(s.start < e and s.end > b for b, e in regions)]


async def detect(
    text: str,
    classifier: Classifier | None = None,
    config: PipelineConfig | None = None,
) -> list[Span]:
    """Module-level shortcut for ``Detector(config).detect(text, classifier)``."""
    return await Detector(config).detect(text, classifier)


def mask(text: str, spans: Iterable[Span], store: MappingStore | None = None) -> MaskResult:
    """Module-level shortcut for the masking engine."""
    return mask_spans(text, spans, store)
