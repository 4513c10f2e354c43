# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

import pygit2

from blamer.cache.blamecache import Freshness
from blamer.errors import NotARepository

logger = logging.getLogger(__name__)


class RepoContext:
    """
    The repository a blame session works in.

    Reading HEAD and file timestamps goes through libgit2 and the filesystem
    rather than spawning git, because freshness checks run on every cache
    lookup.
    """

    repo: pygit2.Repository
    workdir: str

    def __init__(self, path: str):
        startPath = path if os.path.isdir(path) else (os.path.dirname(path) or ".")

        try:
            repoPath = pygit2.discover_repository(startPath)
        except KeyError:
            repoPath = None

        if not repoPath:
            raise NotARepository(path)

        self.repo = pygit2.Repository(repoPath)

        if self.repo.is_bare:
            self.repo.free()
            raise NotARepository(path)

        self.workdir = os.path.normpath(self.repo.workdir)
        logger.debug(f"Opened repository at {self.workdir}")

    def __repr__(self):
        return f"RepoContext({self.workdir})"

    def close(self):
        self.repo.free()

    def relativePath(self, path: str) -> str:
        """
        Return a path relative to the root of the working directory, with
        forward slashes as git expects. Relative input paths are returned as-is.
        """
        if not os.path.isabs(path):
            return Path(path).as_posix()

        absPath = os.path.realpath(path)
        workdir = os.path.realpath(self.workdir)
        relPath = os.path.relpath(absPath, workdir)

        if relPath == ".." or relPath.startswith(".." + os.sep):
            raise NotARepository(path)

        return Path(relPath).as_posix()

    def absolutePath(self, relPath: str) -> str:
        return os.path.join(self.workdir, relPath)

    def headCommitId(self) -> str:
        if self.repo.head_is_unborn:
            return ""
        return str(self.repo.head.target)

    def fileMtimeNs(self, relPath: str) -> int:
        try:
            return os.stat(self.absolutePath(relPath)).st_mtime_ns
        except FileNotFoundError:
            return 0

    def freshness(self, relPath: str, workingContent: Sequence[str] | None = None) -> Freshness:
        return Freshness(
            mtimeNs=self.fileMtimeNs(relPath),
            headId=self.headCommitId(),
            contentDigest=Freshness.digestContent(workingContent))

    def readWorkingFile(self, relPath: str) -> list[str]:
        data = Path(self.absolutePath(relPath)).read_bytes()
        return data.decode("utf-8", errors="replace").splitlines()
