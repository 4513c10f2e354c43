# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator

import pygit2
import pytest

# Tests never need a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def setUpGitConfigSearchPaths(prefix: str):
    """
    Prevent unit tests from accessing the host system's git config files.
    This modifies libgit2 search paths and GIT_CONFIG environment variables
    for vanilla git.
    """
    ConfigLevel = pygit2.enums.ConfigLevel

    levels = [
        ConfigLevel.GLOBAL,
        ConfigLevel.XDG,
        ConfigLevel.SYSTEM,
        ConfigLevel.PROGRAMDATA,
    ]

    for level in levels:
        path = f"{prefix}_{level.name}"
        os.makedirs(path, exist_ok=True)
        pygit2.settings.search_path[level] = path

    globalConfigPath = os.path.join(pygit2.settings.search_path[ConfigLevel.GLOBAL], ".gitconfig")
    with open(globalConfigPath, "w", encoding="utf-8") as f:
        f.write("[user]\n\tname = Test Person\n\temail = toto@example.com\n")

    os.environ["GIT_CONFIG_NOSYSTEM"] = "1"
    os.environ["GIT_CONFIG_GLOBAL"] = globalConfigPath


@pytest.fixture(scope='session', autouse=True)
def maskHostGitConfig(tmp_path_factory):
    setUpGitConfigSearchPaths(str(tmp_path_factory.mktemp("MaskedGitConfig") / "config"))


@pytest.fixture(scope='session', autouse=True)
def setUpLogging():
    rootLogger = logging.root
    rootLogger.setLevel(logging.DEBUG)

    yield

    # Chatty destructors may cause spam after pytest has wound down.
    # Work around https://github.com/pytest-dev/pytest/issues/5502
    for handler in rootLogger.handlers:
        rootLogger.removeHandler(handler)


@pytest.fixture(autouse=True)
def appInstance(qapp):
    """ QProcess needs an application instance, even in synchronous mode. """
    yield qapp


@pytest.fixture(autouse=True)
def pristinePrefs(monkeypatch):
    from blamer import settings
    from blamer.gitdriver import GitDriver

    monkeypatch.setattr(settings, "prefs", settings.Prefs())
    monkeypatch.setattr(GitDriver, "_commandStem", ["git"])


@pytest.fixture
def tempDir() -> Generator[tempfile.TemporaryDirectory, None, None]:
    td = tempfile.TemporaryDirectory(prefix="blamertest-")
    yield td
    td.cleanup()
