"""Built-in workloads.

Each ``setup_*`` function is the per-worker half of a workload: it gets
the shared input, prepares private buffers or compiled patterns, and
returns the iteration step that the executor calls in its hot loop.
"""

from __future__ import annotations

import functools
import gzip
import html
import io
import re

from parbench.bench.executor import IterationStep
from parbench.bench.registry import Benchmark, WorkloadError, report_mib_per_sec
from parbench.bench.textgen import make_text

MATCH_TEXT_SIZE = 1 << 18

ESCAPE_DATA = ("AAAAA < BBBBB > CCCCC & DDDDD ' EEEEE \" " * 10000).encode("ascii")

EASY_RE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ$"
EASY_RE_I = "(?i)ABCDEFGHIJklmnopqrstuvwxyz$"
EASY_RE2 = "A[AB]B[BC]C[CD]D[DE]E[EF]F[FG]G[GH]H[HI]I[IJ]J$"
MEDIUM_RE = "[XYZ]ABCDEFGHIJKLMNOPQRSTUVWXYZ$"
HARD_RE = "[ -~]*ABCDEFGHIJKLMNOPQRSTUVWXYZ$"
HARD_RE2 = "ABCD|CDEF|EFGH|GHIJ|IJKL|KLMN|MNOP|OPQR|QRST|STUV|UVWX|WXYZ"


# ---------------------------------------------------------------------------
# compress/gzip
# ---------------------------------------------------------------------------


def setup_gzip(data: bytes, level: int = 8) -> IterationStep:
    """Compress *data* into a reused in-memory buffer on every iteration."""
    buf = io.BytesIO()

    # zlib compressors cannot be reset, so only the output buffer is reused.
    def step() -> None:
        buf.seek(0)
        buf.truncate()
        with gzip.GzipFile(fileobj=buf, mode="wb", compresslevel=level, mtime=0) as w:
            w.write(data)

    # Check one round trip before the timed loop starts.
    step()
    if gzip.decompress(buf.getvalue()) != data:
        raise WorkloadError(f"gzip level {level} round trip does not reproduce the input")
    return step


# ---------------------------------------------------------------------------
# regexp
# ---------------------------------------------------------------------------


def setup_match(pattern: str, text: bytes) -> IterationStep:
    """Search *text* for *pattern*, which must never match."""
    regex = re.compile(pattern.encode("ascii"))

    def step() -> None:
        if regex.search(text):
            raise WorkloadError("Match")

    return step


def match_text() -> bytes:
    return make_text(MATCH_TEXT_SIZE)


# ---------------------------------------------------------------------------
# html
# ---------------------------------------------------------------------------


def setup_escape(data: bytes) -> IterationStep:
    text = data.decode("ascii")

    def step() -> None:
        html.escape(text)

    return step


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _match_benchmark(label: str, pattern: str) -> Benchmark:
    return Benchmark(
        name=f"regexp/match {label}",
        setup=functools.partial(setup_match, pattern),
        source=match_text,
        description=f"Search {MATCH_TEXT_SIZE} bytes of generated text for {pattern!r}.",
    )


BENCHMARKS: list[Benchmark] = [
    Benchmark(
        name="compress/gzip compression digits, -8",
        setup=setup_gzip,
        report=report_mib_per_sec,
        corpus="e",
        description="gzip level 8 of the digits of e.",
    ),
    Benchmark(
        name="compress/gzip compression twain, -8",
        setup=setup_gzip,
        report=report_mib_per_sec,
        corpus="mt",
        description="gzip level 8 of Mark Twain prose.",
    ),
    _match_benchmark("easy", EASY_RE),
    _match_benchmark("easy-i", EASY_RE_I),
    _match_benchmark("easy2", EASY_RE2),
    _match_benchmark("medium", MEDIUM_RE),
    _match_benchmark("hard", HARD_RE),
    _match_benchmark("hard2", HARD_RE2),
    Benchmark(
        name="html/escape",
        setup=setup_escape,
        source=lambda: ESCAPE_DATA,
        description="html.escape of a string dense in metacharacters.",
    ),
]
