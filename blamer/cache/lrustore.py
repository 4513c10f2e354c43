# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class LruStore(Generic[_T]):
    """
    Bounded key-value store that evicts the least recently used key.

    Both get() hits and set() count as a use. All operations are O(1) except
    clearMatching(), and every operation holds the store's lock, so a store
    may be shared by several sessions.
    """

    def __init__(self, capacity: int, name: str = "LruStore"):
        if capacity < 1:
            raise ValueError(f"{name} capacity must be at least 1, got {capacity}")
        self.name = name
        self._capacity = capacity
        self._entries: OrderedDict[str, _T] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str):
        # Doesn't count as a use
        with self._lock:
            return key in self._entries

    def __repr__(self):
        return f"{self.name}({len(self)}/{self._capacity})"

    @property
    def capacity(self) -> int:
        return self._capacity

    def keys(self) -> list[str]:
        """ Keys from least to most recently used. """
        with self._lock:
            return list(self._entries)

    def get(self, key: str) -> _T | None:
        with self._lock:
            try:
                value = self._entries[key]
            except KeyError:
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: _T):
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._evictIfOverCapacity()

    def pop(self, key: str, expected: _T | None = None) -> _T | None:
        """
        Remove a key. If `expected` is given, only remove the key if it's
        still bound to that very object.
        """
        with self._lock:
            if expected is not None and self._entries.get(key) is not expected:
                return None
            return self._entries.pop(key, None)

    def evictIfOverCapacity(self):
        with self._lock:
            self._evictIfOverCapacity()

    def _evictIfOverCapacity(self):
        while len(self._entries) > self._capacity:
            oldestKey, _dummy = self._entries.popitem(last=False)
            logger.debug(f"{self.name}: evicted {oldestKey}")

    def clear(self):
        with self._lock:
            self._entries.clear()

    def clearMatching(self, predicate: Callable[[str], bool]) -> int:
        with self._lock:
            doomed = [key for key in self._entries if predicate(key)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)
