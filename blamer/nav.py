# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
import logging

from blamer.toolbox.gitutils import abbreviateCommit

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class NavState:
    revision: str | None  # None for the working copy
    line: int = 1

    def __str__(self):
        return f"{abbreviateCommit(self.revision) if self.revision else 'Working copy'}@{self.line}"

    def isSameRevision(self, other: NavState | None) -> bool:
        return other is not None and other.revision == self.revision


class NavHistory:
    """
    History of visited states, like a web browser's.

    Pushing a new state while not at the tip of the history discards
    everything after the current position ("forward" history).
    """

    def __init__(self):
        self.states: list[NavState] = []
        self.index = -1

    def __len__(self):
        return len(self.states)

    def __bool__(self):
        return bool(self.states)

    @property
    def current(self) -> NavState | None:
        if not self.states:
            return None
        assert 0 <= self.index < len(self.states)
        return self.states[self.index]

    def isAtTip(self) -> bool:
        return self.index == len(self.states) - 1

    def push(self, state: NavState) -> bool:
        """
        Record a newly visited state.

        Revisiting the revision that's already current doesn't add an entry;
        the current entry's line is refreshed instead.
        Return True if a new entry was added.
        """
        if state.isSameRevision(self.current):
            self.updateCurrentLine(state.line)
            return False

        if not self.isAtTip():
            del self.states[self.index + 1:]

        self.states.append(state)
        self.index = len(self.states) - 1
        return True

    def updateCurrentLine(self, line: int):
        """ Remember where the cursor is in the current state. """
        current = self.current
        if current is None:
            return
        self.states[self.index] = dataclasses.replace(current, line=line)

    def canGoBack(self) -> bool:
        return self.index > 0

    def canGoForward(self) -> bool:
        return 0 <= self.index < len(self.states) - 1

    def navigateDelta(self, delta: int) -> NavState | None:
        """
        Move the cursor by `delta` states and return the new current state.
        Return None (and don't move) if that would go past either end.
        """
        newIndex = self.index + delta
        if not self.states or not 0 <= newIndex < len(self.states):
            return None
        self.index = newIndex
        return self.states[newIndex]

    def seek(self, index: int):
        assert 0 <= index < len(self.states)
        self.index = index

    def clear(self):
        self.states.clear()
        self.index = -1

    def getTextLog(self):
        s = "------------------------- NAV LOG -------------------------"
        for i, state in enumerate(self.states):
            s += "\n"
            s += "---> " if i == self.index else "     "
            s += str(state)
        return s
