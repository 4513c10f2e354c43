# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

"""
Annotate (blame) a file at any point of its history, following renames.

The parsing of git's blame reports lives in gitdriver.parsers; import the
engine and the path resolver from their own modules (blamer.blame.engine,
blamer.blame.pathresolver).
"""

from blamer.blame.blameentry import (
    CommitInfo,
    LineAttribution,
    RenameEdge,
    UC_FAKEID,
)
from blamer.blame.hunks import (
    Hunk,
    groupHunks,
)
