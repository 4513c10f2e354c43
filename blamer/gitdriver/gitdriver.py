# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
import logging
import shlex
import signal

from blamer.errors import ToolExecutionFailed
from blamer.qt import *
from blamer.toolbox.benchmark import Benchmark

logger = logging.getLogger(__name__)


def argsIf(condition: bool, *args: str) -> tuple[str, ...]:
    if condition:
        return args
    else:
        return ()


def splitOutputLines(raw: bytes) -> list[str]:
    if not raw:
        return []
    lines = raw.decode("utf-8", errors="replace").split("\n")
    if lines[-1] == "":
        del lines[-1]
    return lines


@dataclasses.dataclass
class GitResult:
    command: list[str]
    exitCode: int
    stdoutLines: list[str]
    stderrLines: list[str]

    @property
    def ok(self) -> bool:
        return self.exitCode == 0

    @property
    def stderrText(self) -> str:
        return "\n".join(self.stderrLines).strip()

    def formatCommandLine(self) -> str:
        return shlex.join(self.command)

    def formatExitCode(self) -> str:
        code = self.exitCode
        if code < 0:
            return f"{code} (failed to start)"
        try:
            s = signal.Signals(code)
            return f"{code} ({s.name})"
        except ValueError:
            return f"{code}"

    def raiseForStatus(self, what: str = "Git command failed"):
        if self.exitCode != 0:
            raise ToolExecutionFailed(self.formatCommandLine(), self.exitCode, self.stderrText, what)


class GitDriver(QProcess):
    """
    Runs a git command in a subprocess.

    Use runSync() for commands you must block on (rev-parse, cat-file, etc.)
    Use runAsync() to keep the calling thread responsive: the returned driver
    emits gitFinished(GitResult) once the process has exited.

    A non-zero exit code is reported as data in GitResult, not as an error.
    """

    _commandStem = ["git"]

    gitFinished = Signal(object)

    @classmethod
    def setGitPath(cls, gitPath: str):
        cls._commandStem = shlex.split(gitPath, posix=True)

    @classmethod
    def buildCommand(cls, *args: str) -> list[str]:
        return cls._commandStem + ["--no-pager", *args]

    @classmethod
    def runSync(
            cls,
            *args: str,
            stdin: bytes = b"",
            directory: str = "",
    ) -> GitResult:
        tokens = cls.buildCommand(*args)

        process = QProcess(None)
        process.setProgram(tokens[0])
        process.setArguments(tokens[1:])
        if directory:
            process.setWorkingDirectory(directory)

        logger.info(f"runSync: {shlex.join(tokens)}")

        with Benchmark("git " + (args[0] if args else "")):
            process.start()

            if not process.waitForStarted(-1):
                return GitResult(tokens, -1, [], [process.errorString()])

            if stdin:
                process.write(stdin)
            process.closeWriteChannel()

            process.waitForFinished(-1)

        stdout = process.readAllStandardOutput().data()
        stderr = process.readAllStandardError().data()

        if process.exitStatus() == QProcess.ExitStatus.CrashExit:
            exitCode = -1
        else:
            exitCode = process.exitCode()

        return GitResult(tokens, exitCode, splitOutputLines(stdout), splitOutputLines(stderr))

    @classmethod
    def runAsync(
            cls,
            *args: str,
            stdin: bytes = b"",
            directory: str = "",
            parent: QObject | None = None,
    ) -> GitDriver:
        driver = GitDriver(*args, stdin=stdin, directory=directory, parent=parent)
        driver.startWithInput()
        return driver

    def __init__(self, *args: str, stdin: bytes = b"", directory: str = "", parent: QObject | None = None):
        super().__init__(parent)

        self.setObjectName("GitDriver")

        tokens = GitDriver.buildCommand(*args)
        self.setProgram(tokens[0])
        self.setArguments(tokens[1:])
        if directory:
            self.setWorkingDirectory(directory)

        self._stdin = stdin
        self._reported = False

        self.finished.connect(self._onFinished)
        self.errorOccurred.connect(self._onErrorOccurred)

    def formatCommandLine(self):
        return shlex.join([self.program()] + self.arguments())

    def startWithInput(self):
        logger.info(f"runAsync: {self.formatCommandLine()}")
        self.start()
        if self._stdin:
            self.write(self._stdin)
        self.closeWriteChannel()

    def _report(self, result: GitResult):
        # QProcess may report both an error and a finish for the same run
        if self._reported:
            return
        self._reported = True
        self.gitFinished.emit(result)

    def _onFinished(self, exitCode: int, exitStatus: QProcess.ExitStatus):
        stdout = self.readAllStandardOutput().data()
        stderr = self.readAllStandardError().data()
        if exitStatus == QProcess.ExitStatus.CrashExit:
            exitCode = -1
        command = [self.program()] + self.arguments()
        self._report(GitResult(command, exitCode, splitOutputLines(stdout), splitOutputLines(stderr)))

    def _onErrorOccurred(self, error: QProcess.ProcessError):
        # Only FailedToStart prevents finished() from ever being emitted
        if error != QProcess.ProcessError.FailedToStart:
            return
        command = [self.program()] + self.arguments()
        self._report(GitResult(command, -1, [], [self.errorString()]))
