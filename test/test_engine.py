# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import pytest

from blamer.blame.blameentry import UC_FAKEID
from blamer.blame.engine import BlameEngine
from blamer.cache import BlameCache
from blamer.errors import PathNotFoundAtRevision, ToolExecutionFailed, UncommittedRevisionError
from .util import *

FULL = "f" * 40
OLDER = "e" * 40


def makeEngine(git: FakeGit, repoContext=None, **cacheKwargs):
    repoContext = repoContext or FakeRepoContext()
    return BlameEngine(repoContext, BlameCache(**cacheKwargs), git)


def serveRevision(git: FakeGit, revision: str, commitId: str, path="f.lua", numLines=3):
    git.on("rev-parse", "--verify", "--quiet", revision + "^{commit}", stdout=[commitId])
    git.on("cat-file", "-e", f"{commitId}:{path}")
    git.on("blame", "--incremental", "--porcelain", commitId, "--", path, stdout=incrementalBlame(commitId, numLines, path))


def testHistoricalIsCachedAndIdempotent():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    engine = makeEngine(git)

    first = engine.getAttribution("f.lua", FULL)
    numCalls = len(git.calls)
    second = engine.getAttribution("f.lua", FULL)

    assert len(first) == 3
    assert second is first
    assert len(git.calls) == numCalls
    assert git.count("blame") == 1


def testSymbolicRevisionIsCanonicalized():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    git.on("rev-parse", "--verify", "--quiet", "main^{commit}", stdout=[FULL])
    engine = makeEngine(git)

    viaBranch = engine.getAttribution("f.lua", "main")
    viaId = engine.getAttribution("f.lua", FULL)

    assert viaId is viaBranch
    assert git.count("blame") == 1
    assert BlameCache.attributionKey("f.lua", FULL) in engine.cache.attributions


def testSymbolicRevisionMovesWithBranch():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    serveRevision(git, OLDER, OLDER)
    git.on("rev-parse", "--verify", "--quiet", "main^{commit}", stdout=[FULL])
    engine = makeEngine(git)

    assert engine.getAttribution("f.lua", "main")[0].commitId == FULL

    # Branch moves (e.g. reset): the next lookup must not serve the old blame
    git.on("rev-parse", "--verify", "--quiet", "main^{commit}", stdout=[OLDER])
    assert engine.getAttribution("f.lua", "main")[0].commitId == OLDER


def testParentRefIsKeyedAsIs():
    git = FakeGit()
    serveRevision(git, FULL + "^", OLDER)
    git.on("blame", "--incremental", "--porcelain", FULL + "^", "--", "f.lua", stdout=incrementalBlame(OLDER, 2))
    engine = makeEngine(git)

    attributions = engine.getAttribution("f.lua", FULL + "^")

    assert len(attributions) == 2
    assert BlameCache.attributionKey("f.lua", FULL + "^") in engine.cache.attributions
    # Only the path resolver needed rev-parse
    assert git.count("rev-parse") == 1


def testFailureIsNotCached():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    git.on("blame", exitCode=128, stderr=["fatal: something went wrong"])
    engine = makeEngine(git)

    with pytest.raises(ToolExecutionFailed, match="something went wrong"):
        engine.getAttribution("f.lua", FULL)
    assert len(engine.cache.attributions) == 0

    serveRevision(git, FULL, FULL)
    assert len(engine.getAttribution("f.lua", FULL)) == 3
    assert git.count("blame") == 2


def testPathNotFoundAtRevision():
    git = FakeGit()
    git.on("rev-parse", "--verify", "--quiet", FULL + "^{commit}", stdout=[FULL])
    git.on("log", stdout=[])
    engine = makeEngine(git)

    with pytest.raises(PathNotFoundAtRevision):
        engine.getAttribution("f.lua", FULL)
    assert git.count("blame") == 0


def testUnknownRevision():
    git = FakeGit()
    git.on("rev-parse", exitCode=1)
    engine = makeEngine(git)

    with pytest.raises(PathNotFoundAtRevision):
        engine.getAttribution("f.lua", "no-such-branch")


def testBlameFollowsRename():
    git = FakeGit()
    git.on("rev-parse", "--verify", "--quiet", OLDER + "^{commit}", stdout=[OLDER])
    git.on("cat-file", "-e", f"{OLDER}:old.lua")
    git.on("log", stdout=[FULL, "", "R100\told.lua\tnew.lua"])
    git.on("merge-base", "--is-ancestor", OLDER, FULL)
    git.on("blame", "--incremental", "--porcelain", OLDER, "--", "old.lua", stdout=incrementalBlame(OLDER, 2, "old.lua"))
    engine = makeEngine(git)

    attributions = engine.getAttribution("new.lua", OLDER)
    assert [a.path for a in attributions] == ["old.lua", "old.lua"]

    # Cached under the path the caller knows
    assert BlameCache.attributionKey("new.lua", OLDER) in engine.cache.attributions


def testWorkingCopyRevalidation():
    git = FakeGit()
    git.on("blame", "--incremental", "--porcelain", "--", "f.lua", stdout=incrementalBlame(FULL, 3))
    repoContext = FakeRepoContext()
    engine = makeEngine(git, repoContext)

    first = engine.getAttribution("f.lua")
    assert engine.getAttribution("f.lua") is first
    assert git.count("blame") == 1

    repoContext.mtimeNs += 1
    second = engine.getAttribution("f.lua")
    assert second is not first
    assert git.count("blame") == 2

    # HEAD moves on its own (e.g. checkout that leaves the file alone)
    repoContext.headId = "d" * 40
    engine.getAttribution("f.lua")
    assert git.count("blame") == 3


def testZeroIdMeansWorkingCopy():
    git = FakeGit()
    git.on("blame", "--incremental", "--porcelain", "--", "f.lua", stdout=incrementalBlame(FULL, 3))
    engine = makeEngine(git)

    assert engine.getAttribution("f.lua", UC_FAKEID) is engine.getAttribution("f.lua", None)
    assert git.count("blame") == 1
    assert git.count("rev-parse") == 0


def testUnsavedContents():
    git = FakeGit()
    git.on("blame", "--incremental", "--porcelain", "--contents", "-", "--", "f.lua", stdout=incrementalBlame(UC_FAKEID, 2))
    engine = makeEngine(git)

    contents = ["local x = 1", "return x"]
    attributions = engine.getAttribution("f.lua", None, contents)

    assert all(a.isUncommitted for a in attributions)
    assert git.stdins[-1] == b"local x = 1\nreturn x\n"

    assert engine.getAttribution("f.lua", None, list(contents)) is attributions
    assert git.count("blame") == 1

    engine.getAttribution("f.lua", None, contents + ["-- more"])
    assert git.count("blame") == 2


def testUnsavedContentsNeedWorkingCopy():
    engine = makeEngine(FakeGit())
    with pytest.raises(ValueError):
        engine.getAttribution("f.lua", FULL, ["x"])


def testBuildBlameCommand():
    engine = makeEngine(FakeGit())
    assert engine.buildBlameCommand("f.lua", None, None) == [
        "blame", "--incremental", "--porcelain", "--", "f.lua"]
    assert engine.buildBlameCommand("f.lua", FULL, None) == [
        "blame", "--incremental", "--porcelain", FULL, "--", "f.lua"]
    assert engine.buildBlameCommand("f.lua", None, ["x"]) == [
        "blame", "--incremental", "--porcelain", "--contents", "-", "--", "f.lua"]


def testHistoricalContent():
    git = FakeGit()
    git.on("rev-parse", "--verify", "--quiet", FULL + "^{commit}", stdout=[FULL])
    git.on("cat-file", "-e", f"{FULL}:f.lua")
    git.on("show", f"{FULL}:f.lua", stdout=["hello", "world"])
    engine = makeEngine(git)

    content = engine.getHistoricalContent("f.lua", FULL)
    assert content == ("hello", "world")
    assert engine.getHistoricalContent("f.lua", FULL) is content
    assert git.count("show") == 1

    with pytest.raises(ValueError):
        engine.getHistoricalContent("f.lua", UC_FAKEID)
    with pytest.raises(ValueError):
        engine.getHistoricalContent("f.lua", "")


def testCommitDetails():
    git = FakeGit()
    git.on("show", "--no-patch", "--format=fuller", FULL, stdout=[
        f"commit {FULL}",
        "Author:     Alice <alice@example.com>",
        "AuthorDate: Tue Nov 14 22:13:20 2023 +0000",
        "Commit:     Alice <alice@example.com>",
        "CommitDate: Tue Nov 14 22:13:20 2023 +0000",
        "",
        "    Fix bug",
    ])
    git.on("show", FULL, "--", "f.lua", stdout=["diff --git a/f.lua b/f.lua"])
    engine = makeEngine(git)

    assert engine.getCommitInfo(FULL).summary == "Fix bug"
    assert engine.getCommitDiff(FULL, "f.lua") == ["diff --git a/f.lua b/f.lua"]

    with pytest.raises(UncommittedRevisionError):
        engine.getCommitInfo(UC_FAKEID)
    with pytest.raises(UncommittedRevisionError):
        engine.getCommitDiff(UC_FAKEID, "f.lua")


def testInvalidatePathKeepsHistory():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    git.on("blame", "--incremental", "--porcelain", "--", "f.lua", stdout=incrementalBlame(FULL, 3))
    engine = makeEngine(git)

    engine.getAttribution("f.lua", FULL)
    engine.getAttribution("f.lua")
    assert engine.cacheStats().attributionCount == 2

    engine.invalidatePath("f.lua")
    assert engine.cacheStats().attributionCount == 1
    engine.getAttribution("f.lua", FULL)
    assert git.count("blame") == 2

    engine.getAttribution("f.lua")
    assert git.count("blame") == 3


def testCacheClearing():
    git = FakeGit()
    serveRevision(git, FULL, FULL)
    serveRevision(git, FULL, FULL, path="g.lua")
    engine = makeEngine(git, attributionCapacity=10)

    engine.getAttribution("f.lua", FULL)
    engine.getAttribution("g.lua", FULL)

    assert engine.cacheClearForPath("f.lua") == 1
    stats = engine.cacheStats()
    assert stats.attributionCount == 1
    assert stats.attributionCapacity == 10

    engine.cacheClear()
    assert engine.cacheStats().attributionCount == 0
