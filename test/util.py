# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import itertools
import os
import tempfile
from collections.abc import Sequence

import pygit2

from blamer.blame.blameentry import LineAttribution
from blamer.cache.blamecache import Freshness
from blamer.gitdriver import GitDriver, GitResult

TEST_SIGNATURE = pygit2.Signature("Test Person", "toto@example.com", 1672600000, 0)

_commitClock = itertools.count(1)


def writeFile(path, text):
    # Prevent accidental littering of current working directory
    assert os.path.isabs(path), "pass me an absolute path"

    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(text.encode("utf-8"))


def readTextFile(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


def bumpMtime(path, seconds=10):
    # Filesystem timestamps are coarse; don't rely on the clock ticking between two writes
    mtime = os.stat(path).st_mtime_ns + seconds * 1_000_000_000
    os.utime(path, ns=(mtime, mtime))


def makeRepo(tempDir: tempfile.TemporaryDirectory | str, name="TestRepo") -> str:
    tempDirPath = tempDir if isinstance(tempDir, str) else tempDir.name
    path = os.path.realpath(os.path.join(tempDirPath, name))
    pygit2.init_repository(path, initial_head="main")
    return path


def commitFiles(workdir: str, files: dict[str, str | None], message: str) -> str:
    """
    Write (or delete, if the contents are None) files in the working
    directory, then commit them on top of HEAD. Return the new commit's ID.
    """
    repo = pygit2.Repository(workdir)
    index = repo.index

    try:
        for relPath, contents in files.items():
            absPath = os.path.join(workdir, relPath)
            if contents is None:
                os.unlink(absPath)
                index.remove(relPath)
            else:
                writeFile(absPath, contents)
                index.add(relPath)

        index.write()
        tree = index.write_tree()

        # Space out the commits so that their order is unambiguous
        when = TEST_SIGNATURE.time + 60 * next(_commitClock)
        signature = pygit2.Signature(TEST_SIGNATURE.name, TEST_SIGNATURE.email, when, 0)

        parents = [] if repo.head_is_unborn else [repo.head.target]
        oid = repo.create_commit("HEAD", signature, signature, message, tree, parents)
        return str(oid)
    finally:
        repo.free()


def makeAttribution(finalLine: int, commitId: str = "a" * 40, **kwargs) -> LineAttribution:
    fields = dict(
        commitId=commitId,
        author="Alice",
        authorTime=1700000000,
        authorTz="+0000",
        summary="Fix bug",
        path="f.lua",
        originalLine=finalLine,
        finalLine=finalLine)
    fields.update(kwargs)
    return LineAttribution(**fields)


def incrementalBlame(commitId: str, numLines: int, path="f.lua", author="Alice", summary="Fix bug") -> list[str]:
    """ Fake 'git blame --incremental' report attributing every line to one commit. """
    return [
        f"{commitId} 1 1 {numLines}",
        f"author {author}",
        "author-mail <alice@example.com>",
        "author-time 1700000000",
        "author-tz +0000",
        f"summary {summary}",
        f"filename {path}",
    ]


class FakeGit:
    """
    Stands in for GitDriver.runSync. Commands are matched against canned
    responses by argument prefix; the most recently added rule wins.
    Unknown commands fail like git would.
    """

    def __init__(self):
        self.calls: list[tuple[str, ...]] = []
        self.stdins: list[bytes] = []
        self.rules: list[tuple[tuple[str, ...], int, list[str], list[str]]] = []

    def on(self, *prefix: str, stdout: Sequence[str] = (), exitCode: int = 0, stderr: Sequence[str] = ()):
        self.rules.insert(0, (prefix, exitCode, list(stdout), list(stderr)))

    def __call__(self, *args: str, stdin: bytes = b"", directory: str = "") -> GitResult:
        self.calls.append(args)
        self.stdins.append(stdin)
        command = ["git", *args]

        for prefix, exitCode, stdout, stderr in self.rules:
            if args[:len(prefix)] == prefix:
                return GitResult(command, exitCode, list(stdout), list(stderr))

        return GitResult(command, 128, [], [f"fatal: no canned response for {' '.join(args)}"])

    def count(self, *prefix: str) -> int:
        return sum(1 for call in self.calls if call[:len(prefix)] == prefix)


class GitSpy:
    """ Runs real git commands, and records them. """

    def __init__(self):
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, *args: str, stdin: bytes = b"", directory: str = "") -> GitResult:
        self.calls.append(args)
        return GitDriver.runSync(*args, stdin=stdin, directory=directory)

    def count(self, *prefix: str) -> int:
        return sum(1 for call in self.calls if call[:len(prefix)] == prefix)


class FakeRepoContext:
    """ Bare minimum of RepoContext for engine tests that don't touch the disk. """

    def __init__(self, workdir="/fake/workdir"):
        self.workdir = workdir
        self.mtimeNs = 1000
        self.headId = "c" * 40
        self.files: dict[str, list[str]] = {}

    def freshness(self, relPath: str, workingContent: Sequence[str] | None = None) -> Freshness:
        return Freshness(self.mtimeNs, self.headId, Freshness.digestContent(workingContent))

    def readWorkingFile(self, relPath: str) -> list[str]:
        return self.files[relPath]
