"""Split long text into overlapping windows for the classifier."""

from __future__ import annotations

from .types import Chunk

DEFAULT_MAX_CHARS = 150
DEFAULT_OVERLAP = 15


def chunk_text(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap: int = DEFAULT_OVERLAP,
) -> list[Chunk]:
    """Slide a max_chars window over text, stepping max_chars - overlap.

    Every character lands in at least one chunk, and any entity shorter
    than ``overlap`` lies wholly inside one of them.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if not 0 <= overlap < max_chars:
        raise ValueError(f"overlap must be in [0, {max_chars}), got {overlap}")

    if len(text) <= max_chars:
        return [Chunk(text=text, offset=0)]

    step = max_chars - overlap
    chunks: list[Chunk] = []
    for offset in range(0, len(text), step):
        end = min(offset + max_chars, len(text))
        chunks.append(Chunk(text=text[offset:end], offset=offset))
        if end == len(text):
            break
    return chunks
