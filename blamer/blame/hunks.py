# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from blamer.blame.blameentry import LineAttribution


@dataclasses.dataclass
class Hunk:
    commitId: str
    author: str
    authorTime: int
    summary: str
    startLine: int
    lineCount: int = 1

    def continues(self, line: LineAttribution) -> bool:
        return (line.commitId == self.commitId
                and line.author == self.author
                and line.summary == self.summary)


def groupHunks(attributions: Iterable[LineAttribution]) -> list[Hunk]:
    """
    Collapse runs of consecutive lines that share the same commit, author and
    summary. A commit ID isn't assumed to imply the same author or summary
    (e.g. amended metadata), so all three are compared.
    """

    hunks: list[Hunk] = []
    hunk = None

    for line in attributions:
        if hunk is not None and hunk.continues(line):
            hunk.lineCount += 1
            continue

        hunk = Hunk(
            commitId=line.commitId,
            author=line.author,
            authorTime=line.authorTime,
            summary=line.summary,
            startLine=line.finalLine)
        hunks.append(hunk)

    return hunks
