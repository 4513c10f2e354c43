# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from .lrustore import LruStore
from .blamecache import BlameCache, CacheEntry, CacheStats, Freshness, WORKING_COPY_MARKER
