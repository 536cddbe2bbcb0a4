"""YAML/dict config loader for pii-masker.

Supports loading from a YAML file or a plain dict (for embedding in a
larger host config).

Example YAML:

    pii_masker:
      timeout: 30
      chunking:
        max_chars: 150
        overlap: 15
      merge_gap: 2
      floors:
        person: 0.7
      skip_types:
        - zipCode
      allow_list:
        - support@example.com
      classifier:
        backend: transformers    # "none", "presidio" or "transformers"
        model: iiiorg/piiranha-v1-detect-personal-information
        max_length: 512
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

import yaml

from .chunker import DEFAULT_MAX_CHARS, DEFAULT_OVERLAP
from .classifiers import DEFAULT_MAX_LENGTH, DEFAULT_MODEL, Classifier, PresidioClassifier, TransformersClassifier
from .detector import Detector, PipelineConfig
from .merger import DEFAULT_MAX_GAP

BACKENDS = ("none", "presidio", "transformers")


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "pii_masker" key or flat
    if "pii_masker" in data:
        data = data["pii_masker"] or {}

    chunking = data.get("chunking") or {}
    classifier = data.get("classifier") or {}
    backend = str(classifier.get("backend", "none")).lower()
    if backend not in BACKENDS:
        raise ValueError(f"unknown classifier backend {backend!r}, expected one of {BACKENDS}")

    return {
        "max_chars": int(chunking.get("max_chars", DEFAULT_MAX_CHARS)),
        "overlap": int(chunking.get("overlap", DEFAULT_OVERLAP)),
        "merge_gap": int(data.get("merge_gap", DEFAULT_MAX_GAP)),
        "timeout": float(data.get("timeout", 30.0)),
        "floors": {k: float(v) for k, v in (data.get("floors") or {}).items()},
        "skip_types": set(data.get("skip_types") or []),
        "allow_list": set(data.get("allow_list") or []),
        "backend": backend,
        "model": classifier.get("model", DEFAULT_MODEL),
        "language": classifier.get("language", "en"),
        "max_length": int(classifier.get("max_length", DEFAULT_MAX_LENGTH)),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(path) as f:
        return load_config(yaml.safe_load(f))


def build_classifier(cfg: dict[str, Any]) -> Classifier | None:
    """Classifier for the configured backend, or None for pattern-only."""
    if cfg["backend"] == "transformers":
        return TransformersClassifier(cfg["model"])
    if cfg["backend"] == "presidio":
        return PresidioClassifier(language=cfg["language"])
    return None


def create_detector(config: dict[str, Any]) -> tuple[Detector, Classifier | None]:
    """Create a configured detector plus the classifier to pass to it."""
    cfg = config if "backend" in config else load_config(config)
    pipeline_config = PipelineConfig(
        max_chars=cfg["max_chars"],
        overlap=cfg["overlap"],
        max_length=cfg["max_length"],
        merge_gap=cfg["merge_gap"],
        timeout=cfg["timeout"],
        floors=cfg["floors"],
        skip_types=cfg["skip_types"],
        allow_list=cfg["allow_list"],
    )
    return Detector(pipeline_config), build_classifier(cfg)
