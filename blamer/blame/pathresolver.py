# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections.abc import Callable

from blamer.blame.blameentry import RenameEdge
from blamer.gitdriver import GitDriver, GitResult, parseRenameHistory
from blamer.toolbox.benchmark import benchmark

logger = logging.getLogger(__name__)

GitRunner = Callable[..., GitResult]


class PathResolver:
    """
    Find out what a file was called at a given revision, following renames.
    """

    def __init__(self, directory: str, runGit: GitRunner = GitDriver.runSync):
        self.directory = directory
        self.runGit = runGit

    def _git(self, *args: str) -> GitResult:
        return self.runGit(*args, directory=self.directory)

    def resolveRevision(self, revision: str) -> str:
        """
        Return the full commit ID that `revision` points to,
        or an empty string if it can't be resolved.
        """
        result = self._git("rev-parse", "--verify", "--quiet", revision + "^{commit}")
        if not result.ok or not result.stdoutLines:
            return ""
        return result.stdoutLines[0].strip()

    def existsAt(self, commitId: str, path: str) -> bool:
        return self._git("cat-file", "-e", f"{commitId}:{path}").ok

    def isStrictAncestor(self, ancestorId: str, descendantId: str) -> bool:
        if ancestorId == descendantId:
            return False
        result = self._git("merge-base", "--is-ancestor", ancestorId, descendantId)
        if result.exitCode not in (0, 1):
            result.raiseForStatus("Ancestry check failed")
        return result.exitCode == 0

    def renameHistory(self, path: str) -> list[RenameEdge]:
        result = self._git("log", "--follow", "--name-status", "--format=%H", "-M", "--diff-filter=R", "--", path)
        result.raiseForStatus("Could not read the file's rename history")
        return parseRenameHistory(result.stdoutLines)

    @benchmark
    def resolve(self, path: str, revision: str) -> str:
        """
        Return the path that the file currently at `path` had at `revision`.
        Return an empty string if the file didn't exist at that revision;
        this isn't an error (e.g. the file was created after the revision).
        """

        targetId = self.resolveRevision(revision)
        if not targetId:
            logger.debug(f"Can't resolve revision {revision}")
            return ""

        # Most common case: the file already had this name.
        if self.existsAt(targetId, path):
            return path

        edges = self.renameHistory(path)
        ancestry: dict[tuple[str, str], bool] = {}

        def isStrictAncestorCached(ancestorId: str, descendantId: str) -> bool:
            key = (ancestorId, descendantId)
            try:
                return ancestry[key]
            except KeyError:
                ancestry[key] = self.isStrictAncestor(ancestorId, descendantId)
                return ancestry[key]

        def findHop(currentPath: str, laterHop: RenameEdge | None) -> RenameEdge | None:
            for edge in edges:
                if edge in used or edge.newPath != currentPath:
                    continue
                if laterHop is not None and not isStrictAncestorCached(edge.commitId, laterHop.commitId):
                    continue
                if isStrictAncestorCached(targetId, edge.commitId):
                    return edge
            return None

        # Walk the rename chain backwards. Each edge is used at most once, and
        # every hop must be older than the one before it, so a file renamed
        # back and forth (a -> b -> a -> b) still resolves to the right name.
        candidate = path
        used: set[RenameEdge] = set()
        edge = None
        while True:
            edge = findHop(candidate, edge)
            if edge is None:
                break
            used.add(edge)
            logger.debug(f"{candidate} was renamed from {edge.oldPath} in {edge.commitId[:7]}")
            candidate = edge.oldPath

        if candidate != path and self.existsAt(targetId, candidate):
            return candidate

        logger.debug(f"{path} doesn't exist at {revision}")
        return ""
