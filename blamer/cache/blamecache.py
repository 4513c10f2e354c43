# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
import hashlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from blamer.blame.blameentry import LineAttribution
from blamer.cache.lrustore import LruStore

if TYPE_CHECKING:
    from blamer.settings import Prefs

logger = logging.getLogger(__name__)

WORKING_COPY_MARKER = "(workdir)"


@dataclasses.dataclass(frozen=True)
class Freshness:
    """
    Snapshot of the state a working-copy blame was computed from.

    Any of these invalidates the blame, independently of one another:
    - the file was modified on disk;
    - HEAD moved (commit, checkout, pull, rebase...), even if the file's
      mtime didn't change;
    - the blame was computed from unsaved contents that have since changed.
    """

    mtimeNs: int = 0
    headId: str = ""
    contentDigest: str = ""

    @staticmethod
    def digestContent(lines: Sequence[str] | None) -> str:
        if lines is None:
            return ""
        return hashlib.sha1("\n".join(lines).encode("utf-8", errors="replace")).hexdigest()

    def isStale(self, live: Freshness) -> bool:
        return (live.mtimeNs > self.mtimeNs
                or live.headId != self.headId
                or live.contentDigest != self.contentDigest)


@dataclasses.dataclass(frozen=True)
class CacheEntry:
    value: tuple
    freshness: Freshness | None = None


@dataclasses.dataclass(frozen=True)
class CacheStats:
    attributionCount: int
    attributionCapacity: int
    contentCount: int
    contentCapacity: int


class BlameCache:
    """
    Two independent LRU stores: blame results, and file contents at
    historical revisions.

    Keys are "path:revision". Working-copy blames use WORKING_COPY_MARKER in
    place of the revision and carry a Freshness token. Contents only exist for
    actual revisions, so they never need revalidating.
    """

    def __init__(self, attributionCapacity: int = 50, contentCapacity: int = 100):
        self.attributions: LruStore[CacheEntry] = LruStore(attributionCapacity, "AttributionCache")
        self.contents: LruStore[CacheEntry] = LruStore(contentCapacity, "ContentCache")

    @classmethod
    def fromPrefs(cls, prefs: Prefs) -> BlameCache:
        return cls(prefs.attributionCacheSize, prefs.contentCacheSize)

    @staticmethod
    def attributionKey(path: str, revision: str | None) -> str:
        return f"{path}:{revision or WORKING_COPY_MARKER}"

    @staticmethod
    def contentKey(path: str, revision: str) -> str:
        assert revision, "file contents are only cached for actual revisions"
        return f"{path}:{revision}"

    def getAttribution(
            self,
            path: str,
            revision: str | None,
            freshness: Freshness | None = None
    ) -> tuple[LineAttribution, ...] | None:
        key = self.attributionKey(path, revision)
        entry = self.attributions.get(key)

        if entry is None:
            logger.debug(f"Attribution cache miss: {key}")
            return None

        if entry.freshness is not None and freshness is not None and entry.freshness.isStale(freshness):
            logger.debug(f"Attribution cache stale: {key}")
            self.attributions.pop(key, expected=entry)
            return None

        logger.debug(f"Attribution cache hit: {key}")
        return entry.value

    def setAttribution(
            self,
            path: str,
            revision: str | None,
            attributions: Sequence[LineAttribution],
            freshness: Freshness | None = None
    ) -> tuple[LineAttribution, ...]:
        if revision:
            # Revision-addressed blames are immutable
            freshness = None
        else:
            assert freshness is not None, "working-copy blames need a freshness token"

        value = tuple(attributions)
        self.attributions.set(self.attributionKey(path, revision), CacheEntry(value, freshness))
        return value

    def getContent(self, path: str, revision: str) -> tuple[str, ...] | None:
        entry = self.contents.get(self.contentKey(path, revision))
        return entry.value if entry is not None else None

    def setContent(self, path: str, revision: str, lines: Sequence[str]) -> tuple[str, ...]:
        value = tuple(lines)
        self.contents.set(self.contentKey(path, revision), CacheEntry(value))
        return value

    def clear(self):
        self.attributions.clear()
        self.contents.clear()

    def clearWorkingCopy(self, path: str) -> int:
        key = self.attributionKey(path, None)
        return self.attributions.clearMatching(lambda k: k == key)

    def clearForPath(self, path: str) -> int:
        """
        Drop every entry for this path, at any revision, from both stores.
        Entries for other paths are left intact.
        """
        prefix = path + ":"

        def matches(key: str):
            return key.startswith(prefix)

        count = self.attributions.clearMatching(matches)
        count += self.contents.clearMatching(matches)
        logger.debug(f"Cleared {count} cache entries for {path}")
        return count

    def stats(self) -> CacheStats:
        return CacheStats(
            attributionCount=len(self.attributions),
            attributionCapacity=self.attributions.capacity,
            contentCount=len(self.contents),
            contentCapacity=self.contents.capacity)
