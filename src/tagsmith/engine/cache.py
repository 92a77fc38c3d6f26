"""
Shared, thread-safe state for one build: expanded fragments and failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional, Tuple


class ExpansionCache:
    """
    Memoizes resolved fragments by cache key.

    Entries are idempotent, so concurrent writers use insert-if-absent and
    the first stored fragment wins. Each entry also remembers the components
    that were missing while it was expanded, so later hits can tally them.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._missing: Dict[str, Tuple[str, ...]] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            fragment = self._entries.get(key)
            if fragment is None:
                self.misses += 1
            else:
                self.hits += 1
            return fragment

    def put(self, key: str, fragment: str, missing: Tuple[str, ...] = ()) -> str:
        with self._lock:
            self._missing.setdefault(key, tuple(missing))
            return self._entries.setdefault(key, fragment)

    def missing(self, key: str) -> Tuple[str, ...]:
        """Components that could not be resolved inside the fragment at ``key``."""
        with self._lock:
            return self._missing.get(key, ())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._missing.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


@dataclass(frozen=True)
class FailureSummary:
    """One row of the end-of-build report on missing components."""

    component: str
    first_file: str
    occurrences: int


class FailureRecord:
    """Tally of unresolved components keyed by (component, originating file)."""

    def __init__(self) -> None:
        self._counts: Dict[Tuple[str, str], int] = {}
        self._lock = Lock()

    def record(self, component: str, originating_file: str) -> None:
        key = (component, str(originating_file))
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1

    def count(self, component: str, originating_file: str) -> int:
        with self._lock:
            return self._counts.get((component, str(originating_file)), 0)

    def summary(self) -> List[FailureSummary]:
        """Rows per component in first-seen order, with the total occurrences."""
        with self._lock:
            items = list(self._counts.items())
        first_files: Dict[str, str] = {}
        totals: Dict[str, int] = {}
        for (component, originating_file), count in items:
            first_files.setdefault(component, originating_file)
            totals[component] = totals.get(component, 0) + count
        return [FailureSummary(name, first_files[name], totals[name]) for name in first_files]

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()

    def __bool__(self) -> bool:
        with self._lock:
            return bool(self._counts)
