# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import re
from datetime import datetime

_uncommittedPattern = re.compile(r"^0+$")


def isUncommittedId(commitId: str) -> bool:
    """
    True if this is git's all-zero placeholder for lines that haven't been
    committed yet (working tree or unsaved contents).
    """
    return bool(commitId) and _uncommittedPattern.match(commitId) is not None


def shortHash(commitId: str) -> str:
    from blamer.settings import prefs
    return commitId[:prefs.shortHashChars]


def abbreviateCommit(commitId: str) -> str:
    if isUncommittedId(commitId):
        return "Uncommitted"
    return shortHash(commitId)


def formatDate(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")
