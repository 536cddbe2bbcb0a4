"""MappingStore — session-scoped record of placeholder → original value.

Design goals:
  - Append-only: an entry is never overwritten, even when two different
    values were masked with the same placeholder text
  - Ordered: entries keep the order they were masked in
  - Thread-safe: concurrent mask calls never lose an entry
  - Process lifetime only: nothing is persisted, clear() ends the session
"""

from __future__ import annotations
import threading
from typing import Iterable

from .types import MappingEntry


class MappingStore:
    """Ordered placeholder → original log, scoped to a session."""

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: list[MappingEntry] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def append(self, placeholder: str, original: str, position: int | None = None) -> int:
        """Record one mapping; returns its index."""
        return self.extend([MappingEntry(placeholder, original, position)])

    def extend(self, entries: Iterable[MappingEntry]) -> int:
        """Record a batch atomically; returns the index of its first entry.

        A batch stays contiguous even when other threads append at the
        same time.
        """
        batch = list(entries)
        with self._lock:
            first = len(self._entries)
            self._entries.extend(batch)
        return first

    def values_for(self, placeholder: str) -> list[str]:
        """All originals recorded under a placeholder, oldest first."""
        return [e.original for e in self.entries() if e.placeholder == placeholder]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def entries(self, start: int = 0) -> list[MappingEntry]:
        """Snapshot of the entries from index ``start`` on."""
        with self._lock:
            return self._entries[start:]

    @property
    def size(self) -> int:
        return len(self._entries)

    def dump(self) -> list[dict]:
        """Return a JSON-friendly copy of the log (for debugging)."""
        return [
            {"placeholder": e.placeholder, "original": e.original, "position": e.position}
            for e in self.entries()
        ]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
