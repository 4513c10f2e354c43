# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from .benchmark import Benchmark, benchmark, BENCHMARK_LOGGING_LEVEL
from .gitutils import abbreviateCommit, formatDate, isUncommittedId, shortHash
