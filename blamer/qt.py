# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

"""
QtCore import shim for PyQt6 and PySide6.

Blamer only needs QtCore (QProcess, signals, QStandardPaths), so this
module never pulls in QtGui or QtWidgets. PyQt6 is tried first; set
QT_API=pyside6 to prefer PySide6. The test suite reads PYTEST_QT_API.
"""

import logging as _logging
import os as _os
import sys as _sys
from contextlib import suppress as _suppress

_logger = _logging.getLogger(__name__)

_SUPPORTED_BINDINGS = ("pyqt6", "pyside6")

PYQT6 = False
PYSIDE6 = False
QT_BINDING = ""
QT_BINDING_VERSION = ""


def _bindingCandidates() -> list[str]:
    candidates = list(_SUPPORTED_BINDINGS)
    preferred = _os.environ.get("QT_API", "").lower()

    if not preferred:
        pass
    elif preferred in candidates:
        candidates.remove(preferred)
        candidates.insert(0, preferred)
    else:
        _logger.warning(f"Ignoring unsupported QT_API value: '{preferred}'")

    return candidates


for _candidate in _bindingCandidates():
    with _suppress(ImportError):
        if _candidate == "pyqt6":
            from PyQt6.QtCore import *
            QT_BINDING, QT_BINDING_VERSION = "PyQt6", PYQT_VERSION_STR
            PYQT6 = True
        elif _candidate == "pyside6":
            from PySide6.QtCore import *
            from PySide6 import __version__ as QT_BINDING_VERSION
            QT_BINDING = "PySide6"
            PYSIDE6 = True
    if QT_BINDING:
        break
else:
    _sys.stderr.write("Blamer needs a Qt binding. Please install PyQt6 or PySide6.\n")
    _sys.exit(1)

_logger.debug(f"Using Qt binding {QT_BINDING} {QT_BINDING_VERSION}")

# PySide6 spelling for signals
if PYQT6:
    Signal = pyqtSignal
