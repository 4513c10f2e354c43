# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Literal

from blamer.blame.blameentry import CommitInfo, LineAttribution
from blamer.blame.engine import BlameEngine
from blamer.errors import BlamerError, NavigationBoundary, SessionClosed, UncommittedRevisionError
from blamer.nav import NavHistory, NavState

logger = logging.getLogger(__name__)

NavDirection = Literal["back", "forward"]

_navDeltas = {"back": -1, "forward": 1}


class BlameSession:
    """
    One exploration of a file's history.

    The session starts on the working copy at the line the caller was on.
    Every successful visit to another revision is recorded in a back/forward
    history. A visit that fails leaves the history untouched.

    Visits are serialized: a visit never starts while another one is in
    flight in the same session.
    """

    path: str
    history: NavHistory
    attributions: tuple[LineAttribution, ...]

    def __init__(
            self,
            engine: BlameEngine,
            path: str,
            line: int = 1,
            workingContent: Sequence[str] | None = None,
    ):
        self.engine = engine
        self.path = path
        self.workingContent = workingContent
        self.attributions = ()
        self._lock = threading.RLock()

        self.history = NavHistory()
        self.history.push(NavState(None, line))

    def __repr__(self):
        return f"BlameSession({self.path}, {self.history.current})"

    @property
    def isClosed(self) -> bool:
        return not self.history

    @property
    def currentState(self) -> NavState:
        state = self.history.current
        if state is None:
            raise SessionClosed(self.path)
        return state

    @property
    def currentRevision(self) -> str | None:
        return self.currentState.revision

    def _load(self, revision: str | None) -> tuple[LineAttribution, ...]:
        if revision is None:
            return self.engine.getAttribution(self.path, None, self.workingContent)
        else:
            return self.engine.getAttribution(self.path, revision)

    def open(self) -> tuple[LineAttribution, ...]:
        """ Load the blame for the current state (the working copy, initially). """
        with self._lock:
            self.attributions = self._load(self.currentRevision)
            return self.attributions

    def setWorkingContent(self, workingContent: Sequence[str] | None):
        with self._lock:
            self.workingContent = workingContent

    def setCursorLine(self, line: int):
        with self._lock:
            if self.isClosed:
                raise SessionClosed(self.path)
            self.history.updateCurrentLine(line)

    def visit(self, revision: str | None, line: int) -> tuple[LineAttribution, ...]:
        revision = BlameEngine.normalizeRevision(revision)

        with self._lock:
            if self.isClosed:
                raise SessionClosed(self.path)

            # Symbolic names (HEAD, branches) move; record the commit they point to now
            if revision is not None:
                revision = self.engine.canonicalRevision(self.path, revision)

            # Fetch first: don't touch the history if this fails
            attributions = self._load(revision)

            self.history.push(NavState(revision, line))
            self.attributions = attributions
            logger.debug(self.history.getTextLog())
            return attributions

    def navigate(self, direction: NavDirection) -> NavState:
        try:
            delta = _navDeltas[direction]
        except KeyError as exc:
            raise ValueError(f"unknown direction: {direction}") from exc

        with self._lock:
            if self.isClosed:
                raise SessionClosed(self.path)

            previousIndex = self.history.index

            state = self.history.navigateDelta(delta)
            if state is None:
                raise NavigationBoundary(direction)

            try:
                self.attributions = self._load(state.revision)
            except BlamerError:
                self.history.seek(previousIndex)
                raise

            return state

    def goBack(self) -> NavState:
        return self.navigate("back")

    def goForward(self) -> NavState:
        return self.navigate("forward")

    def attributionAt(self, line: int) -> LineAttribution | None:
        """ Return the blame for a (1-based) line number in the current blame. """
        attributions = self.attributions

        # Full-file blames are dense, so try direct indexing first
        if 1 <= line <= len(attributions) and attributions[line - 1].finalLine == line:
            return attributions[line - 1]

        for attribution in attributions:
            if attribution.finalLine == line:
                return attribution

        return None

    def _committedAttributionAt(self, line: int, what: str) -> LineAttribution:
        attribution = self.attributionAt(line)
        if attribution is None:
            raise ValueError(f"no blame for line {line}")
        if attribution.isUncommitted:
            raise UncommittedRevisionError(what)
        return attribution

    def goToParent(self, line: int) -> tuple[LineAttribution, ...]:
        """
        Blame the file as it was just before the commit that last touched
        this line.
        """
        attribution = self._committedAttributionAt(line, "parent navigation")
        return self.visit(attribution.parentRevision, line)

    def commitInfo(self, line: int) -> CommitInfo:
        attribution = self._committedAttributionAt(line, "commit details")
        return self.engine.getCommitInfo(attribution.commitId)

    def commitDiff(self, line: int) -> list[str]:
        attribution = self._committedAttributionAt(line, "diffs")
        return self.engine.getCommitDiff(attribution.commitId, attribution.path)

    def currentContent(self) -> Sequence[str]:
        revision = self.currentRevision
        if revision is not None:
            return self.engine.getHistoricalContent(self.path, revision)
        if self.workingContent is not None:
            return self.workingContent
        return self.engine.repoContext.readWorkingFile(self.path)

    def close(self):
        with self._lock:
            self.history.clear()
            self.attributions = ()
