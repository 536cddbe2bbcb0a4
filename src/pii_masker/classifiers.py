"""Classifier adapters — the contextual half of detection.

The core only needs something with an async ``classify(chunk_text, *,
max_length)`` returning raw token predictions.  Two adapters ship here:

  - TransformersClassifier: Hugging Face token-classification model,
    raw sub-word output (no aggregation), e.g. Piiranha.
  - PresidioClassifier: Presidio's spaCy-backed analyzer, one token per
    recognized entity.

Both load their backend lazily on first use and run inference in a
worker thread so the event loop stays free.
"""

from __future__ import annotations
import asyncio
import threading
from typing import TYPE_CHECKING, Any, Protocol

from .types import RawToken

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

DEFAULT_MODEL = "iiiorg/piiranha-v1-detect-personal-information"
DEFAULT_MAX_LENGTH = 512


class Classifier(Protocol):
    """Contract consumed by the detector."""

    async def classify(self, chunk_text: str, *, max_length: int) -> list[RawToken]:
        ...


class TransformersClassifier:
    """Token classifier backed by a transformers pipeline."""

    def __init__(self, model: str = DEFAULT_MODEL, *, device: int = -1) -> None:
        self.model = model
        self.device = device
        self._pipeline: Any = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._pipeline is not None

    def _get_pipeline(self, max_length: int) -> Any:
        with self._lock:
            if self._pipeline is None:
                from transformers import AutoModelForTokenClassification, AutoTokenizer, pipeline

                tokenizer = AutoTokenizer.from_pretrained(self.model, model_max_length=max_length)
                model = AutoModelForTokenClassification.from_pretrained(self.model)
                self._pipeline = pipeline(
                    "token-classification",
                    model=model,
                    tokenizer=tokenizer,
                    aggregation_strategy="none",
                    device=self.device,
                )
            return self._pipeline

    def _run(self, chunk_text: str, max_length: int) -> list[RawToken]:
        results = self._get_pipeline(max_length)(chunk_text)
        return [
            RawToken(
                fragment=r["word"],
                label=r["entity"],
                score=float(r["score"]),
                start=r.get("start"),
                end=r.get("end"),
            )
            for r in results
        ]

    async def classify(self, chunk_text: str, *, max_length: int = DEFAULT_MAX_LENGTH) -> list[RawToken]:
        return await asyncio.to_thread(self._run, chunk_text, max_length)


# Presidio entity types worth asking for (the full set is much larger and
# overlaps the pattern layer)
PRESIDIO_ENTITIES = [
    "PERSON",
    "LOCATION",
    "ORGANIZATION",
    "NRP",           # nationality, religious, political group
    "DATE_TIME",
]


class PresidioClassifier:
    """Presidio analyzer results re-expressed as whole-word tokens."""

    def __init__(
        self,
        *,
        language: str = "en",
        entities: list[str] | None = None,
        score_threshold: float = 0.0,
    ) -> None:
        self.language = language
        self.entities = entities or PRESIDIO_ENTITIES
        self.score_threshold = score_threshold
        self._engine: AnalyzerEngine | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._engine is not None

    def _get_engine(self) -> AnalyzerEngine:
        """Lazy-init the Presidio analyzer engine."""
        with self._lock:
            if self._engine is None:
                from presidio_analyzer import AnalyzerEngine
                from presidio_analyzer.nlp_engine import NlpEngineProvider

                provider = NlpEngineProvider(nlp_configuration={
                    "nlp_engine_name": "spacy",
                    "models": [{"lang_code": self.language, "model_name": f"{self.language}_core_web_sm"}],
                })
                self._engine = AnalyzerEngine(
                    nlp_engine=provider.create_engine(),
                    supported_languages=[self.language],
                )
            return self._engine

    def _run(self, chunk_text: str, max_length: int) -> list[RawToken]:
        # spaCy has no sub-word window; clip to the same budget as the model path
        text = chunk_text[:max_length]
        results = self._get_engine().analyze(
            text=text,
            language=self.language,
            entities=self.entities,
            score_threshold=self.score_threshold,
        )
        tokens = [
            RawToken(
                fragment=text[r.start:r.end],
                label=r.entity_type,
                score=r.score,
                start=r.start,
                end=r.end,
            )
            for r in results
        ]
        return sorted(tokens, key=lambda t: t.start)

    async def classify(self, chunk_text: str, *, max_length: int = DEFAULT_MAX_LENGTH) -> list[RawToken]:
        return await asyncio.to_thread(self._run, chunk_text, max_length)
