"""Tests for parbench.bench.profiling — optional CPU profiling."""

from __future__ import annotations

import pstats
import tempfile
import unittest
from pathlib import Path

from parbench.bench.profiling import cpu_profile, open_profile


def _busy() -> int:
    return sum(i * i for i in range(10_000))


class TestCpuProfile(unittest.TestCase):
    def test_disabled(self) -> None:
        with cpu_profile(None) as profiler:
            self.assertIsNone(profiler)

    def test_writes_pstats_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.prof"
            with cpu_profile(path):
                _busy()
            stats = pstats.Stats(str(path))
            functions = {name for (_, _, name) in stats.stats}  # type: ignore[attr-defined]
            self.assertIn("_busy", functions)

    def test_written_even_when_block_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.prof"
            with self.assertRaises(RuntimeError):
                with cpu_profile(path):
                    raise RuntimeError("boom")
            self.assertGreater(path.stat().st_size, 0)

    def test_unwritable_path_fails_before_block(self) -> None:
        entered = False
        with self.assertRaises(OSError):
            with cpu_profile(Path("/nonexistent/dir/run.prof")):
                entered = True
        self.assertFalse(entered)

    def test_open_profile_truncates(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.prof"
            path.write_bytes(b"stale")
            open_profile(path)
            self.assertEqual(path.read_bytes(), b"")

    def test_open_profile_unwritable(self) -> None:
        with self.assertRaises(OSError):
            open_profile(Path("/nonexistent/dir/run.prof"))


if __name__ == "__main__":
    unittest.main()
