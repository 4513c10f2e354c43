# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses

from blamer.toolbox.gitutils import isUncommittedId

UC_FAKEID = "0" * 40
"""
Placeholder commit ID that git blame assigns to lines that aren't committed yet.
"""


@dataclasses.dataclass(frozen=True)
class LineAttribution:
    """
    Which commit last touched a line of a file, as reported by git blame.
    """

    commitId: str
    author: str
    authorTime: int
    authorTz: str
    summary: str
    path: str
    originalLine: int
    finalLine: int
    content: str = ""
    previous: str = ""

    def __repr__(self):
        return f"({self.finalLine}:{self.commitId[:7]})"

    @property
    def isUncommitted(self) -> bool:
        return isUncommittedId(self.commitId)

    @property
    def parentRevision(self) -> str:
        assert not self.isUncommitted, "uncommitted lines have no parent"
        return self.commitId + "^"


@dataclasses.dataclass(frozen=True)
class RenameEdge:
    commitId: str
    oldPath: str
    newPath: str


@dataclasses.dataclass
class CommitInfo:
    commitId: str = ""
    author: str = ""
    authorEmail: str = ""
    authorDate: str = ""
    committer: str = ""
    committerEmail: str = ""
    committerDate: str = ""
    message: list[str] = dataclasses.field(default_factory=list)

    @property
    def summary(self) -> str:
        return self.message[0] if self.message else ""
