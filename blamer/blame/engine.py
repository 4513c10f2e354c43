# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from blamer import settings
from blamer.blame.blameentry import CommitInfo, LineAttribution
from blamer.blame.pathresolver import GitRunner, PathResolver
from blamer.cache.blamecache import BlameCache, CacheStats, Freshness
from blamer.errors import PathNotFoundAtRevision, ToolExecutionFailed, UncommittedRevisionError
from blamer.gitdriver import GitDriver, GitResult, argsIf, parseBlamePorcelain, parseCommitInfo
from blamer.qt import *
from blamer.repocontext import RepoContext
from blamer.toolbox.benchmark import Benchmark
from blamer.toolbox.gitutils import isUncommittedId

logger = logging.getLogger(__name__)

# A full commit hash, optionally followed by ancestry suffixes (abc...^, abc...~2).
# These always designate the same commit, so they're safe to use as cache keys.
_immutableRevisionPattern = re.compile(r"^(?:[\da-f]{40}|[\da-f]{64})(?:[\^~]\d*)*$")


class AttributionRequest(QObject):
    """
    Pending asynchronous blame.

    The result is cached as soon as it arrives, even if nobody is interested
    in it anymore. Callers that have moved on in the meantime should compare
    `revision` against their current state before using the result.
    """

    done = Signal()

    path: str
    revision: str | None
    attributions: tuple[LineAttribution, ...] | None
    error: Exception | None

    def __init__(self, path: str, revision: str | None, parent: QObject | None = None):
        super().__init__(parent)
        self.path = path
        self.revision = revision
        self.attributions = None
        self.error = None
        self.driver = None
        self.delayStart = None

    def __repr__(self):
        return f"AttributionRequest({self.path}:{self.revision or 'workdir'})"

    @property
    def isDone(self) -> bool:
        return self.attributions is not None or self.error is not None


class BlameEngine:
    """
    Fetch blames and historical file contents, with caching.

    Working-copy blames are revalidated against the file's mtime and HEAD on
    every lookup. Blames at a revision are immutable and never revalidated.
    Failures are never cached.
    """

    def __init__(
            self,
            repoContext: RepoContext,
            cache: BlameCache,
            runGit: GitRunner = GitDriver.runSync,
    ):
        self.repoContext = repoContext
        self.cache = cache
        self.runGit = runGit
        self.resolver = PathResolver(repoContext.workdir, runGit)
        self.pendingRequests: set[AttributionRequest] = set()

    @property
    def workdir(self) -> str:
        return self.repoContext.workdir

    def _git(self, *args: str, stdin: bytes = b"") -> GitResult:
        return self.runGit(*args, stdin=stdin, directory=self.workdir)

    # -------------------------------------------------------------------------
    # Revisions & paths

    def canonicalRevision(self, path: str, revision: str) -> str:
        """
        Return a revision string that's safe to use as a cache key.
        Symbolic names (branches, HEAD...) can move, so they're resolved to a
        commit ID first.
        """
        if _immutableRevisionPattern.match(revision):
            return revision

        commitId = self.resolver.resolveRevision(revision)
        if not commitId:
            raise PathNotFoundAtRevision(path, revision)
        return commitId

    def resolvePath(self, path: str, revision: str) -> str:
        resolvedPath = self.resolver.resolve(path, revision)
        if not resolvedPath:
            raise PathNotFoundAtRevision(path, revision)
        return resolvedPath

    @staticmethod
    def normalizeRevision(revision: str | None) -> str | None:
        """ The all-zero placeholder commit means the working copy. """
        if not revision or isUncommittedId(revision):
            return None
        return revision

    # -------------------------------------------------------------------------
    # Blame

    def buildBlameCommand(self, path: str, revision: str | None, workingContent: Sequence[str] | None):
        return [
            "blame", "--incremental", "--porcelain",
            *argsIf(workingContent is not None, "--contents", "-"),
            *argsIf(bool(revision), str(revision)),
            "--", path,
        ]

    @staticmethod
    def encodeWorkingContent(workingContent: Sequence[str] | None) -> bytes:
        if workingContent is None:
            return b""
        return ("\n".join(workingContent) + "\n").encode("utf-8")

    def getAttribution(
            self,
            path: str,
            revision: str | None = None,
            workingContent: Sequence[str] | None = None,
    ) -> tuple[LineAttribution, ...]:
        """
        Blame `path` at `revision` (None: working copy).

        `workingContent` lets you blame unsaved contents of the working copy.

        Raise PathNotFoundAtRevision if the file didn't exist at `revision`,
        ToolExecutionFailed if git fails.
        """
        revision = self.normalizeRevision(revision)

        if revision is None:
            return self._getWorkingCopyAttribution(path, workingContent)

        if workingContent is not None:
            raise ValueError("unsaved contents only apply to the working copy")

        revision = self.canonicalRevision(path, revision)

        cached = self.cache.getAttribution(path, revision)
        if cached is not None:
            return cached

        resolvedPath = self.resolvePath(path, revision)
        command = self.buildBlameCommand(resolvedPath, revision, None)
        attributions = self._runBlame(command, b"")
        return self.cache.setAttribution(path, revision, attributions)

    def _getWorkingCopyAttribution(self, path: str, workingContent: Sequence[str] | None):
        # Take the snapshot before running git so that any concurrent
        # modification makes the entry look stale later.
        freshness = self.repoContext.freshness(path, workingContent)

        cached = self.cache.getAttribution(path, None, freshness)
        if cached is not None:
            return cached

        command = self.buildBlameCommand(path, None, workingContent)
        attributions = self._runBlame(command, self.encodeWorkingContent(workingContent))
        return self.cache.setAttribution(path, None, attributions, freshness)

    def _runBlame(self, command: list[str], stdin: bytes) -> list[LineAttribution]:
        result = self._git(*command, stdin=stdin)
        result.raiseForStatus("Git blame failed")
        return self._parseBlame(result)

    @staticmethod
    def _parseBlame(result: GitResult) -> list[LineAttribution]:
        with Benchmark("parse blame"):
            return parseBlamePorcelain(result.stdoutLines)

    # -------------------------------------------------------------------------
    # Asynchronous blame (pre-warming)

    def fetchAttributionAsync(
            self,
            path: str,
            revision: str | None = None,
            workingContent: Sequence[str] | None = None,
            parent: QObject | None = None,
    ) -> AttributionRequest:
        """
        Blame a file without blocking the caller. Resolving the revision and
        the historical path still happens synchronously (and may raise);
        git blame itself runs in the background.

        The request emits `done` when finished. If the blame is already
        cached, the request is returned already done, without emitting.
        """
        revision = self.normalizeRevision(revision)
        freshness = None

        if revision is None:
            freshness = self.repoContext.freshness(path, workingContent)
            cached = self.cache.getAttribution(path, None, freshness)
            blamePath = path
        else:
            if workingContent is not None:
                raise ValueError("unsaved contents only apply to the working copy")
            revision = self.canonicalRevision(path, revision)
            cached = self.cache.getAttribution(path, revision)
            blamePath = self.resolvePath(path, revision) if cached is None else path

        request = AttributionRequest(path, revision, parent)

        if cached is not None:
            request.attributions = cached
            return request

        command = self.buildBlameCommand(blamePath, revision, workingContent)
        self._startAsyncBlame(request, command, self.encodeWorkingContent(workingContent), freshness)
        return request

    def _startAsyncBlame(self, request: AttributionRequest, command: list[str], stdin: bytes, freshness: Freshness | None):
        driver = GitDriver.runAsync(*command, stdin=stdin, directory=self.workdir, parent=request)
        driver.gitFinished.connect(lambda result: self._onAsyncBlameFinished(request, freshness, result))
        request.driver = driver
        self.pendingRequests.add(request)

    def _onAsyncBlameFinished(self, request: AttributionRequest, freshness: Freshness | None, result: GitResult):
        self.pendingRequests.discard(request)

        try:
            result.raiseForStatus("Git blame failed")
            attributions = self._parseBlame(result)
        except ToolExecutionFailed as exc:
            logger.info(f"{request} failed: {exc}")
            request.error = exc
        else:
            request.attributions = self.cache.setAttribution(request.path, request.revision, attributions, freshness)

        request.done.emit()

    def preload(self, path: str, delayMs: int | None = None) -> AttributionRequest | None:
        """
        Warm up the cache with the working-copy blame of a file.

        Git only starts after `delayMs` (default: the preloadDelayMs pref) so
        that opening a file isn't slowed down by its blame. The returned
        request is pending until then.
        Return None if there's nothing to do.
        """
        freshness = self.repoContext.freshness(path)
        if self.cache.getAttribution(path, None, freshness) is not None:
            return None
        if any(r.path == path and r.revision is None for r in self.pendingRequests):
            return None

        if delayMs is None:
            delayMs = settings.prefs.preloadDelayMs

        logger.debug(f"Preloading blame for {path} in {delayMs} ms")
        request = AttributionRequest(path, None)
        self.pendingRequests.add(request)

        request.delayStart = QTimer(request)
        request.delayStart.setSingleShot(True)
        request.delayStart.timeout.connect(lambda: self._startPreload(request))
        request.delayStart.start(delayMs)
        return request

    def _startPreload(self, request: AttributionRequest):
        # The file may have been blamed in the meantime
        freshness = self.repoContext.freshness(request.path)
        cached = self.cache.getAttribution(request.path, None, freshness)
        if cached is not None:
            self.pendingRequests.discard(request)
            request.attributions = cached
            request.done.emit()
            return

        command = self.buildBlameCommand(request.path, None, None)
        self._startAsyncBlame(request, command, b"", freshness)

    # -------------------------------------------------------------------------
    # File contents & commit details

    def getHistoricalContent(self, path: str, revision: str) -> tuple[str, ...]:
        """
        Return the lines of `path` as of `revision`, following renames.
        """
        if not revision or isUncommittedId(revision):
            raise ValueError("historical contents need an actual revision")

        revision = self.canonicalRevision(path, revision)

        cached = self.cache.getContent(path, revision)
        if cached is not None:
            return cached

        resolvedPath = self.resolvePath(path, revision)
        result = self._git("show", f"{revision}:{resolvedPath}")
        result.raiseForStatus("Failed to get file content")
        return self.cache.setContent(path, revision, result.stdoutLines)

    def getCommitInfo(self, revision: str) -> CommitInfo:
        if isUncommittedId(revision):
            raise UncommittedRevisionError("commit details")
        result = self._git("show", "--no-patch", "--format=fuller", revision)
        result.raiseForStatus("Failed to show commit")
        return parseCommitInfo(result.stdoutLines)

    def getCommitDiff(self, revision: str, path: str = "") -> list[str]:
        if isUncommittedId(revision):
            raise UncommittedRevisionError("diffs")
        result = self._git("show", revision, *argsIf(bool(path), "--", path))
        result.raiseForStatus("Failed to get diff")
        return result.stdoutLines

    # -------------------------------------------------------------------------
    # Cache maintenance

    def invalidatePath(self, path: str):
        """
        Call this after saving a file. Only the working-copy blame goes away;
        historical entries stay valid.
        """
        self.cache.clearWorkingCopy(path)

    def cacheStats(self) -> CacheStats:
        return self.cache.stats()

    def cacheClear(self):
        self.cache.clear()

    def cacheClearForPath(self, path: str) -> int:
        return self.cache.clearForPath(path)
