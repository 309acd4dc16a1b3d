"""
String interning for identifiers and string literals.

Script files repeat the same keys and values thousands of times (owner,
culture, add_core, country tags). A StringPool hands out one shared str
object per distinct text and keeps a reference count and a stable integer
id for each entry.

The pool is passed to the Lexer explicitly; there is no global pool.
One pool may be shared by parsers on several threads.
"""

import sys
import threading
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class StringPoolStatistics:
    """Snapshot of pool usage."""
    unique_strings: int
    total_references: int
    estimated_memory_bytes: int
    memory_saved_estimate: int


@dataclass
class _Entry:
    value: str
    id: int
    ref_count: int = 1


class StringPool:
    """Thread-safe, reference-counted string interning cache."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, value: str) -> bool:
        with self._lock:
            return value in self._entries

    def intern(self, value: str) -> str:
        """Return the pooled instance of ``value``, adding it if new."""
        if not value:
            return value

        with self._lock:
            entry = self._entries.get(value)
            if entry is None:
                entry = _Entry(sys.intern(value), self._next_id)
                self._entries[value] = entry
                self._next_id += 1
            else:
                entry.ref_count += 1
            return entry.value

    def release(self, value: str) -> None:
        """Drop one reference; the entry is removed when none remain."""
        if not value:
            return

        with self._lock:
            entry = self._entries.get(value)
            if entry is None:
                return
            entry.ref_count -= 1
            if entry.ref_count <= 0:
                del self._entries[value]

    def get_id(self, value: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(value)
            return entry.id if entry is not None else None

    def statistics(self) -> StringPoolStatistics:
        with self._lock:
            entries = list(self._entries.values())

        unique = len(entries)
        references = sum(e.ref_count for e in entries)
        return StringPoolStatistics(
            unique_strings=unique,
            total_references=references,
            estimated_memory_bytes=sum(sys.getsizeof(e.value) for e in entries),
            # Rough per-duplicate saving of a small str object
            memory_saved_estimate=(references - unique) * 50,
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> Dict[str, int]:
        """Map of pooled text to id."""
        with self._lock:
            return {text: entry.id for text, entry in self._entries.items()}
