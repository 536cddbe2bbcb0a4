"""PII Masker — hybrid pattern + classifier PII detection with reversible masking."""

from .detector import Detector, PipelineConfig, detect, mask
from .vault import MappingStore
from .masking import PLACEHOLDER_TAGS, placeholder_for, unmask
from .classifiers import Classifier, PresidioClassifier, TransformersClassifier
from .config import create_detector, load_config, load_from_yaml
from .types import Chunk, MappingEntry, MaskResult, MergedEntity, RawToken, Span, Word

__all__ = [
    "Detector", "PipelineConfig", "detect", "mask",
    "MappingStore",
    "PLACEHOLDER_TAGS", "placeholder_for", "unmask",
    "Classifier", "PresidioClassifier", "TransformersClassifier",
    "create_detector", "load_config", "load_from_yaml",
    "Span", "Chunk", "RawToken", "Word", "MergedEntity", "MappingEntry", "MaskResult",
]
__version__ = "0.1.0"
