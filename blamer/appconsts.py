# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import os as _os
import sys as _sys


def _envBool(key: str) -> bool:
    return _os.environ.get(key, "") not in ("", "0")


APP_VERSION = "0.3.0"

APP_TESTMODE = _envBool("APP_TESTMODE") or "pytest" in _sys.modules
"""
Set while running the test suite, so that tests never read or clobber
the user's real prefs file. Force it with APP_TESTMODE=1.
"""

APP_DEBUG = _envBool("APP_DEBUG") or APP_TESTMODE
""" Turns on sanity checks that are too slow for everyday use (e.g. parser consistency). """

_suffix = "_testmode" if APP_TESTMODE else ""
APP_SYSTEM_NAME = "blamer" + _suffix
APP_DISPLAY_NAME = "Blamer" + ("TestMode" if APP_TESTMODE else "")
