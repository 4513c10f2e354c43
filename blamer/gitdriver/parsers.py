# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import dataclasses
import logging
import re
from collections.abc import Iterable

from blamer.appconsts import *
from blamer.blame.blameentry import CommitInfo, LineAttribution, RenameEdge

_logger = logging.getLogger(__name__)

# <sha> <orig-line> <final-line> [<num-lines>]
_blameHeaderPattern = re.compile(r"^([\da-f]+) (\d+) (\d+)(?: (\d+))?$")

_commitIdPattern = re.compile(r"^[\da-f]{7,64}$")

# R<score>\t<old-path>\t<new-path>
_renamePattern = re.compile(r"^R(\d*)\t([^\t]+)\t([^\t]+)$")

# Author: Jane Doe <jane@example.com>
_personPattern = re.compile(r"^(?:Author|Commit):\s+(.*?)\s+<(.*)>$")


@dataclasses.dataclass
class _CommitMetadata:
    """ Running snapshot of a commit's metadata while reading a blame report. """

    commitId: str
    author: str = ""
    authorTime: int = 0
    authorTz: str = ""
    summary: str = ""
    previous: str = ""
    filename: str = ""

    def update(self, key: str, value: str):
        if key == "author":
            self.author = value
        elif key == "author-time":
            try:
                self.authorTime = int(value)
            except ValueError:
                _logger.warning(f"blame: bad author-time for {self.commitId}: {value!r}")
        elif key == "author-tz":
            self.authorTz = value
        elif key == "summary":
            self.summary = value
        elif key == "previous":
            # previous <sha> <filename>
            self.previous = value.split(" ", 1)[0]
        elif key == "filename":
            self.filename = value
        # Ignore other keys (author-mail, committer, boundary...)

    def makeLine(self, originalLine: int, finalLine: int, content: str) -> LineAttribution:
        return LineAttribution(
            commitId=self.commitId,
            author=self.author,
            authorTime=self.authorTime,
            authorTz=self.authorTz,
            summary=self.summary,
            path=self.filename,
            originalLine=originalLine,
            finalLine=finalLine,
            content=content,
            previous=self.previous)


def parseBlamePorcelain(lines: Iterable[str]) -> list[LineAttribution]:
    """
    Parse the output of 'git blame --porcelain' or 'git blame --incremental'.

    In incremental mode, the entries for a commit may be scattered throughout
    the report, and the commit's metadata is only given the first time the
    commit appears. Lines may also come in any order, so they're sorted by
    final line number at the end. Line numbers missing from the report are
    skipped (not filled in).

    Lines that don't fit the grammar are skipped with a warning: a partial
    blame is more useful than none.
    """

    lines = list(lines)
    numLines = len(lines)
    commits: dict[str, _CommitMetadata] = {}
    attributions: dict[int, LineAttribution] = {}

    i = 0
    while i < numLines:
        line = lines[i]
        i += 1

        header = _blameHeaderPattern.match(line)
        if header is None:
            if line:
                _logger.warning(f"blame: skipping unexpected line {i}: {line!r}")
            continue

        commitId, origText, finalText, countText = header.groups()
        originalLine = int(origText)
        finalLine = int(finalText)
        count = int(countText) if countText else 1

        try:
            metadata = commits[commitId]
        except KeyError:
            metadata = _CommitMetadata(commitId)
            commits[commitId] = metadata

        # Read metadata until 'filename', which ends the block, or until the next header
        while i < numLines:
            line = lines[i]
            if line.startswith("\t") or _blameHeaderPattern.match(line):
                break
            i += 1
            key, _dummy, value = line.partition(" ")
            metadata.update(key, value)
            if key == "filename":
                break

        # Non-incremental mode: the first line of the run comes with its contents
        content = ""
        if i < numLines and lines[i].startswith("\t"):
            content = lines[i][1:]
            i += 1

        for offset in range(count):
            attributions[finalLine + offset] = metadata.makeLine(
                originalLine + offset,
                finalLine + offset,
                content if offset == 0 else "")

    result = [attributions[lineNumber] for lineNumber in sorted(attributions)]

    if APP_DEBUG:
        assert all(a.finalLine < b.finalLine for a, b in zip(result, result[1:]))

    return result


def parseRenameHistory(lines: Iterable[str]) -> list[RenameEdge]:
    """
    Parse the output of 'git log --follow --name-status --format=%H'.
    Bare commit IDs alternate with status lines; only renames are kept.
    No particular commit order is assumed.
    """

    edges = []
    commitId = ""

    for line in lines:
        if not line:
            continue

        if _commitIdPattern.match(line):
            commitId = line
            continue

        match = _renamePattern.match(line)
        if match is None:
            continue  # Other statuses (M, A, D...) aren't interesting

        if not commitId:
            _logger.warning(f"rename history: rename line without a commit: {line!r}")
            continue

        _score, oldPath, newPath = match.groups()
        edges.append(RenameEdge(commitId, oldPath, newPath))

    return edges


def parseCommitInfo(lines: Iterable[str]) -> CommitInfo:
    """
    Parse the header and message of 'git show --no-patch --format=fuller'.
    """

    info = CommitInfo()
    inMessage = False

    for line in lines:
        if inMessage:
            info.message.append(line.removeprefix("    "))
        elif line.startswith("commit "):
            info.commitId = line.split()[1]
        elif line.startswith("Author:"):
            match = _personPattern.match(line)
            if match:
                info.author, info.authorEmail = match.groups()
        elif line.startswith("AuthorDate:"):
            info.authorDate = line.removeprefix("AuthorDate:").strip()
        elif line.startswith("Commit:"):
            match = _personPattern.match(line)
            if match:
                info.committer, info.committerEmail = match.groups()
        elif line.startswith("CommitDate:"):
            info.committerDate = line.removeprefix("CommitDate:").strip()
        elif not line:
            inMessage = True

    while info.message and not info.message[-1]:
        info.message.pop()

    return info
