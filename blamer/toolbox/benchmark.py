# -----------------------------------------------------------------------------
# Copyright (C) 2025 Iliyas Jorio.
# This file is part of Blamer, distributed under the GNU GPL v3.
# For full terms, see the included LICENSE file.
# -----------------------------------------------------------------------------

import functools
import logging
import threading
import time

import psutil

BENCHMARK_LOGGING_LEVEL = 5

logger = logging.getLogger(__name__)
logging.addLevelName(BENCHMARK_LOGGING_LEVEL, "BENCHMARK")

_process = psutil.Process()


def residentBytes() -> int:
    return _process.memory_info().rss


class Benchmark:
    """
    Times a block of code and logs the wall-clock duration along with the
    growth in resident memory. Benchmarks may nest within a thread; the log
    line shows the full path, e.g. "Open session/Blame new.lua".
    """

    _local = threading.local()

    @classmethod
    def nesting(cls) -> list[str]:
        """ Names of the benchmarks running on the calling thread, outermost first. """
        try:
            return cls._local.nesting
        except AttributeError:
            cls._local.nesting = []
            return cls._local.nesting

    def __init__(self, name: str):
        self.name = name
        self.startTime = 0.0
        self.startBytes = 0

    def enter(self):
        Benchmark.nesting().append(self.name)
        self.startBytes = residentBytes()
        self.startTime = time.perf_counter()

    def exit(self, exc_type=None):
        elapsed = time.perf_counter() - self.startTime
        growthKb = (residentBytes() - self.startBytes) // 1024

        nesting = Benchmark.nesting()
        label = "/".join(nesting)
        if exc_type is not None:
            label = f"{label} (EXCEPTION RAISED! {exc_type.__name__})"

        logger.log(BENCHMARK_LOGGING_LEVEL, "%8.1f ms %6dK %s", elapsed * 1000, growthKb, label)
        nesting.pop()

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.exit(exc_type)


def benchmark(func):
    """ Decorator version of Benchmark, labeled with the function's qualified name. """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with Benchmark(func.__qualname__):
            return func(*args, **kwargs)
    return wrapper
