#!/usr/bin/env python3
# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

"""
Runs Blamer's test suite headless and in parallel.
Any argument not listed below goes straight to pytest.
"""

import argparse
import os
import sys
from pathlib import Path

import pytest


def makeParser():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--qt", choices=["pyqt6", "pyside6"], default="pyqt6",
                        help="Qt binding to test against (default: pyqt6)")
    parser.add_argument("--cov", action="store_true",
                        help="measure coverage of the blamer package")
    parser.add_argument("-1", dest="serial", action="store_true",
                        help="don't spread tests across worker processes")
    return parser


def run():
    args, pytestArgs = makeParser().parse_known_args()
    os.chdir(Path(__file__).parent)

    # No display needed: Blamer only uses QtCore, but pytest-qt spins up a QApplication
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    os.environ["QT_API"] = os.environ["PYTEST_QT_API"] = args.qt

    extra = []
    if args.cov:
        extra += ["--cov=blamer", "--cov-report=term", "--cov-report=html"]
    if not args.serial:
        extra += ["-n", "auto"]

    sys.exit(pytest.main(extra + pytestArgs))


if __name__ == "__main__":
    run()
