# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

class BlamerError(Exception):
    pass


class NotARepository(BlamerError):
    def __init__(self, path: str):
        super().__init__(f"Not in a git repository: {path}")
        self.path = path


class ToolExecutionFailed(BlamerError):
    """ Git exited with a non-zero code (or couldn't start at all). """

    def __init__(self, command: str, exitCode: int, stderr: str, what: str = "Git command failed"):
        message = f"{what} (exit code {exitCode})"
        if stderr:
            message += ":\n" + stderr
        super().__init__(message)
        self.command = command
        self.exitCode = exitCode
        self.stderr = stderr


class PathNotFoundAtRevision(BlamerError):
    """
    The file didn't exist (under any of its known names) at the given revision.
    This is a normal outcome, e.g. when the file was created after the revision.
    """

    def __init__(self, path: str, revision: str):
        super().__init__(f"{path} does not exist at revision {revision}")
        self.path = path
        self.revision = revision


class UncommittedRevisionError(BlamerError):
    def __init__(self, what: str = "this operation"):
        super().__init__(f"Uncommitted changes don't support {what}")


class NavigationBoundary(BlamerError):
    def __init__(self, direction: str):
        if direction == "back":
            message = "Already at beginning of history"
        else:
            message = "Already at end of history"
        super().__init__(message)
        self.direction = direction


class SessionClosed(BlamerError):
    def __init__(self, path: str):
        super().__init__(f"Blame session for {path} is closed")
        self.path = path
