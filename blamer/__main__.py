# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import logging
import os
import sys

import pygit2

from blamer import settings
from blamer.appconsts import *
from blamer.blame.blameentry import LineAttribution
from blamer.blame.engine import BlameEngine
from blamer.blame.hunks import groupHunks
from blamer.cache.blamecache import BlameCache
from blamer.errors import BlamerError
from blamer.gitdriver import GitDriver
from blamer.qt import *
from blamer.repocontext import RepoContext
from blamer.session import BlameSession
from blamer.toolbox.benchmark import Benchmark
from blamer.toolbox.gitutils import abbreviateCommit, formatDate

logger = logging.getLogger(__name__)


def makeParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_SYSTEM_NAME, description=f"{APP_DISPLAY_NAME} {APP_VERSION} - annotate a file's history")
    parser.add_argument("path", help="File path")
    parser.add_argument("-r", "--revision", default="", help="Blame at this revision instead of the working copy")
    parser.add_argument("-l", "--line", type=int, default=1, help="Line to follow when walking up parents")
    parser.add_argument("-p", "--parents", type=int, default=0, metavar="N", help="Walk N parents up from the commit that last touched --line")
    parser.add_argument("--hunks", action="store_true", help="Print one row per hunk instead of one per line")
    parser.add_argument("--stats", action="store_true", help="Print cache statistics")
    parser.add_argument("-q", "--quiet", action="store_true", help="Don't print annotations")
    parser.add_argument("--prefs", default="", help="Path to a prefs.json file")
    parser.add_argument("--version", action="version", version=f"{APP_DISPLAY_NAME} {APP_VERSION} ({QT_BINDING} {QT_BINDING_VERSION}, pygit2 {pygit2.__version__})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def formatAttribution(attribution: LineAttribution, content: str) -> str:
    return (f"{abbreviateCommit(attribution.commitId):10} "
            f"{attribution.author[:16]:16} "
            f"{formatDate(attribution.authorTime) if attribution.authorTime else '':10} "
            f"{attribution.finalLine:5}| {content}")


def printAnnotations(session: BlameSession, hunksOnly: bool):
    attributions = session.attributions

    if hunksOnly:
        for hunk in groupHunks(attributions):
            print(f"{abbreviateCommit(hunk.commitId):10} {hunk.startLine:5} +{hunk.lineCount:<4} "
                  f"{hunk.author[:16]:16} {hunk.summary}")
        return

    content = session.currentContent()
    for attribution in attributions:
        index = attribution.finalLine - 1
        text = content[index] if 0 <= index < len(content) else attribution.content
        print(formatAttribution(attribution, text))


def main(argv: list[str] | None = None):
    args = makeParser().parse_args(argv)

    settings.prefs.load(args.prefs)

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else settings.prefs.verbosity,
        format='%(levelname).1s %(asctime)s %(filename)-16s | %(message)s',
        datefmt="%H:%M:%S")
    logging.captureWarnings(True)

    # QProcess wants an application instance
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv)
        app.setApplicationName(APP_SYSTEM_NAME)
        app.setApplicationVersion(APP_VERSION)

    GitDriver.setGitPath(settings.prefs.gitPath)

    try:
        repoContext = RepoContext(args.path)
    except BlamerError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    try:
        relPath = repoContext.relativePath(os.path.abspath(args.path))
        engine = BlameEngine(repoContext, BlameCache.fromPrefs(settings.prefs))
        session = BlameSession(engine, relPath, args.line)

        with Benchmark("Blame"):
            if args.revision:
                session.visit(args.revision, args.line)
            else:
                session.open()

        for i in range(args.parents):
            with Benchmark(f"Parent {i + 1}"):
                session.goToParent(session.currentState.line)

        logger.debug(session.history.getTextLog())

        if not args.quiet:
            printAnnotations(session, args.hunks)

        if args.stats:
            stats = engine.cacheStats()
            print(f"Attribution cache: {stats.attributionCount}/{stats.attributionCapacity}", file=sys.stderr)
            print(f"Content cache: {stats.contentCount}/{stats.contentCapacity}", file=sys.stderr)

        session.close()
    except (BlamerError, ValueError) as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    finally:
        repoContext.close()


if __name__ == "__main__":
    main()
