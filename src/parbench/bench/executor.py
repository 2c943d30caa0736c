"""Timed parallel execution of a workload.

:func:`run_timed` fans a workload out to N worker threads, lets each one
loop until a shared deadline, and fans the per-worker iteration counts
back in as a single total.

Each worker builds its own iteration step by calling the workload
factory once, inside its own thread.  The deadline is checked after
every iteration, never by interrupting one, so each worker completes at
least one iteration and may overrun the deadline by at most one.

A failure in any worker is fatal to the whole run: the remaining
workers stop after their current iteration, every worker is joined, and
the first exception is re-raised.  No partial total is ever returned.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

log = logging.getLogger("parbench")

IterationStep = Callable[[], object]
WorkloadFactory = Callable[[], IterationStep]


def run_timed(factory: WorkloadFactory, workers: int, duration: float) -> int:
    """Run *factory*'s workload on *workers* threads for *duration* seconds.

    Args:
        factory: Zero-argument callable returning the zero-argument
            iteration step.  Called exactly once per worker.
        workers: Number of worker threads (must be >= 1).
        duration: Wall-clock span in seconds (must be > 0).

    Returns:
        Total number of iterations completed by all workers.

    Raises:
        ValueError: If *workers* or *duration* is out of range.
        RuntimeError: If a worker thread cannot be started.
        Exception: Whatever the factory or an iteration step raised.
    """
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ValueError(f"workers must be a positive integer (got {workers!r})")
    if not duration > 0:
        raise ValueError(f"duration must be positive (got {duration!r})")

    start = time.monotonic()
    abort = threading.Event()
    # Every worker waits here, so the pool never reuses a thread and all
    # workers really run side by side.
    barrier = threading.Barrier(workers)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parbench-worker") as pool:
        futures = []
        try:
            for _ in range(workers):
                futures.append(pool.submit(_worker, factory, start, duration, barrier, abort))
        except BaseException:
            abort.set()
            barrier.abort()
            raise

        try:
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        except BaseException:
            # Interrupted while joining; let the workers wind down.
            abort.set()
            raise
        failed = [f for f in done if f.exception() is not None]
        if failed:
            abort.set()
            barrier.abort()
            wait(futures)
            log.debug("Worker failed; %d worker(s) joined", len(futures))
            failed[0].result()

        counts = [f.result() for f in futures]

    total = sum(counts)
    log.debug(
        "run_timed: %d worker(s), %.3fs elapsed, counts=%s, total=%d",
        workers,
        time.monotonic() - start,
        counts,
        total,
    )
    return total


def _worker(
    factory: WorkloadFactory,
    start: float,
    duration: float,
    barrier: threading.Barrier,
    abort: threading.Event,
) -> int:
    """Body of one worker thread; returns its completed-iteration count."""
    try:
        barrier.wait()
    except threading.BrokenBarrierError:
        # Another worker failed to start; this one never runs.
        return 0

    step = factory()
    total = 0
    while True:
        step()
        total += 1
        if time.monotonic() - start >= duration or abort.is_set():
            return total
