"""Benchmark records, report formatters and filter selection."""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from parbench.bench.corpus import DEFAULT_CORPUS_DIR, load_corpus
from parbench.bench.executor import IterationStep, WorkloadFactory

MIB = 1024 * 1024


class WorkloadError(RuntimeError):
    """A workload detected that it produced a wrong result.

    Raised from a setup or iteration step.  It is never caught by the
    executor: the run that hit it produces no throughput number.
    """


# A report formatter receives (total iterations, duration in seconds,
# input size in bytes) and returns the text after the comma.
ReportFormatter = Callable[[int, float, int], str]


def report_mib_per_sec(total: int, duration: float, input_size: int) -> str:
    """Input bytes processed per second, in MiB/s."""
    return f"{total * input_size / MIB / duration:.2f} MiB/s"


def report_ops_per_sec(total: int, duration: float, input_size: int) -> str:
    """Iterations completed per second."""
    return f"{total / duration:.2f} ops/s"


@dataclass(frozen=True)
class Benchmark:
    """A named workload plus how to feed it and how to report it.

    ``setup`` is called once per worker with the shared input data and
    returns the iteration step.  The input comes from a corpus file when
    ``corpus`` is set, otherwise from ``source``.
    """

    name: str
    setup: Callable[[bytes], IterationStep]
    report: ReportFormatter = report_mib_per_sec
    corpus: str | None = None
    source: Callable[[], bytes] | None = None
    description: str = ""

    def load_input(self, corpus_dir: Path = DEFAULT_CORPUS_DIR) -> bytes:
        """Return the read-only input shared by every worker."""
        if self.corpus is not None:
            return load_corpus(self.corpus, corpus_dir)
        if self.source is not None:
            return self.source()
        return b""

    def factory(self, data: bytes) -> WorkloadFactory:
        """Bind *data* into a zero-argument workload factory."""
        return functools.partial(self.setup, data)


def compile_filter(pattern: str) -> re.Pattern[str]:
    """Compile a benchmark filter pattern.

    Raises:
        ValueError: If *pattern* is not a valid regular expression.
    """
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"Invalid benchmark filter {pattern!r}: {exc}") from exc


def select_benchmarks(benchmarks: Iterable[Benchmark], pattern: str = ".*") -> list[Benchmark]:
    """Return the benchmarks whose name matches *pattern*, in registry order.

    The pattern matches anywhere in the name (``re.search``).
    """
    match = compile_filter(pattern)
    return [b for b in benchmarks if match.search(b.name)]
