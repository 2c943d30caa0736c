"""Benchmark runner and reporter.

For each registered benchmark whose name matches the run filter:

1. Load its input once (corpus file or generated data).
2. Run it with :func:`run_timed` on the configured number of workers.
3. Format the total with the benchmark's report formatter and emit one
   ``name,report`` line.

A workload failure propagates out of :func:`run_benchmarks` so the run
stops without a line for the failing benchmark.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from typing import Any

from parbench.bench.config import RunConfig, check_config
from parbench.bench.executor import run_timed
from parbench.bench.registry import Benchmark, select_benchmarks
from parbench.bench.system import available_parallelism, gil_enabled, resolve_workers

log = logging.getLogger("parbench")


@dataclass
class BenchmarkResult:
    """Outcome of one benchmark."""

    name: str
    total: int
    workers: int
    duration: float
    elapsed: float
    input_size: int
    report: str

    def format_line(self) -> str:
        """The reported line: ``name,report``."""
        return f"{self.name},{self.report}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def run_benchmark(
    benchmark: Benchmark,
    data: bytes,
    workers: int,
    duration: float,
) -> BenchmarkResult:
    """Run one benchmark on already-loaded input and format its report."""
    log.debug("Running %s on %d worker(s) for %ss", benchmark.name, workers, duration)
    started = time.monotonic()
    total = run_timed(benchmark.factory(data), workers, duration)
    elapsed = time.monotonic() - started
    return BenchmarkResult(
        name=benchmark.name,
        total=total,
        workers=workers,
        duration=duration,
        elapsed=round(elapsed, 6),
        input_size=len(data),
        report=benchmark.report(total, duration, len(data)),
    )


def run_benchmarks(
    config: RunConfig,
    benchmarks: Iterable[Benchmark] | None = None,
    emit: Callable[[str], Any] | None = None,
) -> list[BenchmarkResult]:
    """Run every benchmark selected by ``config.pattern``.

    Args:
        config: Run configuration.
        benchmarks: Candidates; defaults to the built-in registry.
        emit: Called with each formatted result line as soon as the
            benchmark finishes.

    Returns:
        Results for the benchmarks that ran, in registry order.

    Raises:
        ValueError: If the configuration is invalid.
        WorkloadError: If a workload detects a wrong result.
    """
    if benchmarks is None:
        from parbench.bench.workloads import BENCHMARKS

        benchmarks = BENCHMARKS

    available = available_parallelism()
    check_config(config, available=available)
    selected = select_benchmarks(benchmarks, config.pattern)

    workers = resolve_workers(config.workers)
    log.info("Max threads: %d ; CPUs available: %d", workers, available)
    if workers > 1 and gil_enabled():
        log.debug("GIL is enabled; only workloads that release it will scale")

    results: list[BenchmarkResult] = []
    for benchmark in selected:
        try:
            data = benchmark.load_input(config.corpus_dir)
        except OSError as exc:
            log.error("Skipping %s: %s", benchmark.name, exc)
            continue

        result = run_benchmark(benchmark, data, workers, config.duration)
        results.append(result)
        if emit is not None:
            emit(result.format_line())

    if not selected:
        log.info("No benchmarks match %r", config.pattern)
    return results
