# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from .gitdriver import GitDriver
from .gitdriver import GitResult
from .gitdriver import argsIf
from .parsers import parseBlamePorcelain, parseCommitInfo, parseRenameHistory
