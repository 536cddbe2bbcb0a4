"""CLI interface for pii-masker.

Usage:
    # List detected PII (stdin: text, stdout: JSON spans)
    echo 'Contact jane.doe@example.com or 555-123-4567' | \
        python -m pii_masker.cli detect

    # Mask text (stdout: masked text, applied spans and the mapping)
    echo 'Contact jane.doe@example.com' | python -m pii_masker.cli mask

    # Restore (stdin: the JSON printed by `mask`)
    python -m pii_masker.cli mask < note.txt | python -m pii_masker.cli unmask

    # Exit status 1 if any pattern rule fires (no classifier involved)
    python -m pii_masker.cli check < note.txt

    # Hybrid detection with a token-classification model
    python -m pii_masker.cli --classifier transformers detect < note.txt
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from .classifiers import Classifier
from .config import BACKENDS, create_detector, load_config, load_from_yaml
from .detector import Detector
from .masking import unmask
from .patterns import has_pattern_match
from .types import MappingEntry
from .vault import MappingStore

logger = logging.getLogger("pii_masker")


def _build(args: argparse.Namespace) -> tuple[Detector, Classifier | None]:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.classifier:
        cfg["backend"] = args.classifier
    if args.model:
        cfg["model"] = args.model
    if args.timeout is not None:
        cfg["timeout"] = args.timeout
    if args.skip_types:
        cfg["skip_types"] |= set(args.skip_types.split(","))
    if args.allow_list:
        cfg["allow_list"] |= set(args.allow_list.split(","))
    return create_detector(cfg)


def cmd_detect(args: argparse.Namespace) -> int:
    """Print detected spans for text on stdin."""
    detector, classifier = _build(args)
    text = sys.stdin.read()
    spans = asyncio.run(detector.detect(text, classifier))
    json.dump([asdict(s) for s in spans], sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_mask(args: argparse.Namespace) -> int:
    """Mask PII in text on stdin."""
    detector, classifier = _build(args)
    store = MappingStore()
    text = sys.stdin.read()
    result = asyncio.run(detector.redact(text, store, classifier))

    output = {
        "text": result.text,
        "applied": [asdict(s) for s in result.applied],
        "mapping": store.dump(),
    }
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_unmask(args: argparse.Namespace) -> int:
    """Restore text from the JSON emitted by `mask`."""
    data = json.loads(sys.stdin.read())
    mapping = [
        MappingEntry(e["placeholder"], e["original"], e.get("position"))
        for e in data.get("mapping", [])
    ]
    sys.stdout.write(unmask(data["text"], mapping))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Exit 1 if the pattern layer finds anything in stdin."""
    found = has_pattern_match(sys.stdin.read())
    sys.stderr.write("PII found\n" if found else "clean\n")
    return 1 if found else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-masker",
        description="Detect and reversibly mask PII in text",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--classifier", choices=BACKENDS, help="Classifier backend (default: none)")
    parser.add_argument("--model", help="Model id for the transformers backend")
    parser.add_argument("--timeout", type=float, help="Classifier budget in seconds")
    parser.add_argument("--skip-types", default="", help="Comma-separated categories to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never mask")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("detect", help="List PII spans (text stdin)")
    sub.add_parser("mask", help="Mask PII (text stdin)")
    sub.add_parser("unmask", help="Restore masked text (JSON stdin)")
    sub.add_parser("check", help="Pattern-only presence check (text stdin)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "detect": cmd_detect,
        "mask": cmd_mask,
        "unmask": cmd_unmask,
        "check": cmd_check,
    }
    try:
        return cmds[args.command](args)
    except ValueError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
