"""Token reassembly — turn sub-word predictions back into whole words.

WordPiece tokenizers split "Mitchell" into "Mitch" + "##ell".  Each
continuation fragment is glued onto the word before it.  Some backends
drop character offsets; those words are found again in the chunk text,
searching forward from the previous word so an earlier duplicate of the
same string is never picked up.
"""

from __future__ import annotations
import logging

from .types import Chunk, RawToken, Word

logger = logging.getLogger(__name__)

CONTINUATION = "##"
# SentencePiece / byte-level BPE word-start markers
_WORD_MARKERS = "▁Ġ"


class _Pending:
    """Word under construction, offsets still chunk-local."""

    __slots__ = ("text", "label", "score", "start", "end")

    def __init__(self, token: RawToken, text: str) -> None:
        self.text = text
        self.label = token.label
        self.score = token.score
        self.start = token.start
        self.end = token.end


def reassemble(tokens: list[RawToken], chunk: Chunk) -> list[Word]:
    """Group raw tokens of one chunk into words with absolute offsets."""
    words: list[Word] = []
    search_from = 0
    current: _Pending | None = None

    def finish(pending: _Pending) -> None:
        nonlocal search_from
        start, end = pending.start, pending.end
        if start is None:
            start = chunk.text.find(pending.text, search_from)
            if start == -1:
                logger.debug("dropping %r: not found after offset %d", pending.text, search_from)
                return
            end = start + len(pending.text)
        elif end is None:
            end = start + len(pending.text)
        search_from = end
        words.append(Word(
            text=pending.text,
            label=pending.label,
            score=pending.score,
            start=start + chunk.offset,
            end=end + chunk.offset,
        ))

    for token in tokens:
        fragment = token.fragment
        if fragment.startswith(CONTINUATION):
            piece = fragment[len(CONTINUATION):]
            if current is None:
                # Orphan continuation at the start of a chunk
                if piece:
                    current = _Pending(token, piece)
                continue
            current.text += piece
            current.score = max(current.score, token.score)
            if current.start is not None:
                if token.end is not None:
                    current.end = token.end
                else:
                    current.end = current.start + len(current.text)
            continue

        piece = fragment.lstrip(_WORD_MARKERS).strip()
        if current is not None:
            finish(current)
            current = None
        if piece:
            current = _Pending(token, piece)

    if current is not None:
        finish(current)
    return words
