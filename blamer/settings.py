# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import dataclasses
import enum
import json
import logging
import os

from blamer.appconsts import *
from blamer.qt import *
from blamer.toolbox.benchmark import BENCHMARK_LOGGING_LEVEL

logger = logging.getLogger(__name__)


class LoggingLevel(enum.IntEnum):
    Benchmark = BENCHMARK_LOGGING_LEVEL
    Debug = logging.DEBUG
    Info = logging.INFO
    Warning = logging.WARNING


@dataclasses.dataclass
class Prefs:
    _filename = "prefs.json"

    # Smallest acceptable value for numeric prefs
    _minimums = {
        "attributionCacheSize": 1,
        "contentCacheSize": 1,
        "preloadDelayMs": 0,
        "shortHashChars": 4,
    }

    _category_git               : int                   = 0
    gitPath                     : str                   = "git"

    _category_cache             : int                   = 0
    attributionCacheSize        : int                   = 50
    contentCacheSize            : int                   = 100
    preloadDelayMs              : int                   = 100

    _category_display           : int                   = 0
    shortHashChars              : int                   = 8

    _category_advanced          : int                   = 0
    verbosity                   : LoggingLevel          = LoggingLevel.Debug if APP_TESTMODE else LoggingLevel.Warning

    @classmethod
    def defaultPath(cls) -> str:
        configDir = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericConfigLocation)
        return os.path.join(configDir, APP_SYSTEM_NAME, cls._filename)

    def load(self, path: str = "") -> bool:
        """
        Load prefs from a JSON file. Unknown keys are ignored; keys whose
        values don't match the expected type keep their current value.
        Return False if the file couldn't be read.
        """
        path = path or self.defaultPath()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No prefs file at {path}")
            return False
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read prefs file {path}: {exc}")
            return False

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed prefs file {path}")
            return False

        for field in dataclasses.fields(self):
            if field.name.startswith("_") or field.name not in data:
                continue

            value = data[field.name]
            currentValue = getattr(self, field.name)

            try:
                if isinstance(currentValue, enum.Enum):
                    value = type(currentValue)(value)
                elif type(value) is not type(currentValue):
                    raise ValueError(f"expected {type(currentValue).__name__}")
                elif field.name in self._minimums and value < self._minimums[field.name]:
                    raise ValueError(f"must be at least {self._minimums[field.name]}")
            except ValueError as exc:
                logger.warning(f"Ignoring pref {field.name}={value!r}: {exc}")
                continue

            setattr(self, field.name, value)

        return True

    def write(self, path: str = ""):
        path = path or self.defaultPath()
        os.makedirs(os.path.dirname(path), exist_ok=True)

        data = {field.name: getattr(self, field.name)
                for field in dataclasses.fields(self)
                if not field.name.startswith("_")}

        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent="\t")

        logger.debug(f"Wrote prefs to {path}")


# Initialize default prefs.
# The app should load the user's prefs with prefs.load().
prefs = Prefs()
