"""Optional CPU profiling of a whole benchmark run.

The profile is written in :mod:`pstats` format and can be read with
``python -m pstats FILE`` or tools such as snakeviz.  Worker threads
are only covered on interpreters whose cProfile hooks every thread
(3.12 and later, where it is built on :mod:`sys.monitoring`).
"""

from __future__ import annotations

import cProfile
import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

log = logging.getLogger("parbench")


def open_profile(path: Path) -> None:
    """Create (or truncate) the profile output file.

    Raises:
        OSError: If *path* cannot be created.
    """
    path.open("wb").close()


@contextlib.contextmanager
def cpu_profile(path: Path | None) -> Iterator[cProfile.Profile | None]:
    """Profile the enclosed block and write the stats to *path*.

    Does nothing when *path* is None.  The file is created before
    profiling starts so an unwritable path fails before any benchmark
    runs.

    Raises:
        OSError: If *path* cannot be created.
    """
    if path is None:
        yield None
        return

    open_profile(path)

    profiler = cProfile.Profile()
    profiler.enable()
    try:
        yield profiler
    finally:
        profiler.disable()
        profiler.dump_stats(str(path))
        log.info("CPU profile written to %s", path)
