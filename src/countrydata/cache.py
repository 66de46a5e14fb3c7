"""Process-lifetime memoization of parsed datasets."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator

_LOGGER = logging.getLogger("countrydata.cache")

_MISSING = object()


class DatasetCache:
    """Lazy cache keyed by dataset identifier.

    Entries are populated on first miss by a caller-supplied loader and served
    by reference afterwards. There is no TTL and no freshness check; entries
    only go away through ``invalidate`` or ``invalidate_all``. A loader that
    raises leaves no entry behind, so the next ``load`` retries.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def load(self, identifier: str, loader: Callable[[], Any]) -> Any:
        cached = self._entries.get(identifier, _MISSING)
        if cached is not _MISSING:
            return cached

        with self._lock_for(identifier):
            cached = self._entries.get(identifier, _MISSING)
            if cached is not _MISSING:
                return cached
            _LOGGER.debug("Cache miss for %s; loading", identifier)
            value = loader()
            self._entries[identifier] = value
            return value

    def get(self, identifier: str, default: Any = None) -> Any:
        return self._entries.get(identifier, default)

    def invalidate(self, identifier: str) -> bool:
        with self._lock_for(identifier):
            removed = self._entries.pop(identifier, _MISSING) is not _MISSING
        if removed:
            _LOGGER.debug("Invalidated cache entry %s", identifier)
        return removed

    def invalidate_all(self) -> None:
        with self._guard:
            count = len(self._entries)
            self._entries = {}
            self._locks = {}
        _LOGGER.debug("Cleared %d cache entries", count)

    def identifiers(self) -> list[str]:
        return sorted(self._entries)

    def _lock_for(self, identifier: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(identifier)
            if lock is None:
                lock = threading.Lock()
                self._locks[identifier] = lock
            return lock

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.identifiers())
