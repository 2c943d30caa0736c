"""Tests for parbench.cli — click entry point."""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from bench_test_helpers import failing_setup, make_benchmark
from click.testing import CliRunner

from parbench.cli import main


def _result_lines(output: str, prefix: str) -> list[str]:
    return [line for line in output.splitlines() if line.startswith(prefix)]


class _CliTestCase(unittest.TestCase):
    def tearDown(self) -> None:
        logging.getLogger("parbench").handlers.clear()


class TestHelp(_CliTestCase):
    def test_main_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for cmd in ("run", "list", "system"):
            self.assertIn(cmd, result.output)

    def test_run_help(self) -> None:
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        for opt in ("--workers", "--duration", "--run", "--cpuprofile", "--corpus-dir"):
            self.assertIn(opt, result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


class TestList(_CliTestCase):
    def test_list_all(self) -> None:
        result = CliRunner().invoke(main, ["list"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("compress/gzip compression digits, -8", result.output)
        self.assertIn("html/escape", result.output)

    def test_list_filtered(self) -> None:
        result = CliRunner().invoke(main, ["list", "-r", "^regexp/"])
        self.assertEqual(result.exit_code, 0)
        self.assertNotIn("compress/", result.output)
        self.assertEqual(len(result.output.splitlines()), 6)

    def test_list_no_match(self) -> None:
        result = CliRunner().invoke(main, ["list", "-r", "^zstd"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "")

    def test_list_bad_pattern(self) -> None:
        result = CliRunner().invoke(main, ["list", "-r", "("])
        self.assertEqual(result.exit_code, 2)


class TestRun(_CliTestCase):
    def test_run_escape(self) -> None:
        result = CliRunner().invoke(main, ["run", "-q", "-r", "^html/", "-c", "2", "-t", "0.05"])
        self.assertEqual(result.exit_code, 0, result.output)
        lines = _result_lines(result.output, "html/escape,")
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].endswith(" MiB/s"))

    def test_run_gzip_with_corpus(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "e.txt").write_text("2.7182818284590452353602874713527" * 100)
            result = CliRunner().invoke(
                main,
                ["run", "-q", "-r", "digits", "-c", "1", "-t", "0.05", "--corpus-dir", tmp],
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            len(_result_lines(result.output, "compress/gzip compression digits, -8,")), 1
        )

    def test_run_no_match(self) -> None:
        result = CliRunner().invoke(main, ["run", "-q", "-r", "^zstd", "-t", "0.05"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), "")

    def test_run_zero_duration(self) -> None:
        result = CliRunner().invoke(main, ["run", "-q", "-t", "0"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Duration must be positive", result.output)

    def test_run_bad_pattern(self) -> None:
        result = CliRunner().invoke(main, ["run", "-q", "-r", "[", "-t", "0.05"])
        self.assertEqual(result.exit_code, 2)

    def test_run_workload_failure(self) -> None:
        benchmarks = [make_benchmark("broken", failing_setup)]
        with patch("parbench.bench.workloads.BENCHMARKS", benchmarks):
            result = CliRunner().invoke(main, ["run", "-q", "-c", "2", "-t", "0.05"])
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(_result_lines(result.output, "broken,"), [])

    def test_run_with_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            profile = Path(tmp) / "profile.yaml"
            profile.write_text("workers: 1\nduration: 0.05\nrun: '^html/'\n")
            result = CliRunner().invoke(main, ["run", "-q", "--profile", str(profile)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(_result_lines(result.output, "html/escape,")), 1)

    def test_run_bad_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            profile = Path(tmp) / "profile.yaml"
            profile.write_text("threads: 4\n")
            result = CliRunner().invoke(main, ["run", "-q", "--profile", str(profile)])
        self.assertEqual(result.exit_code, 2)

    def test_run_cpuprofile(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "cpu.prof"
            result = CliRunner().invoke(
                main,
                ["run", "-q", "-r", "^html/", "-c", "1", "-t", "0.05", "--cpuprofile", str(out)],
            )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(out.exists())

    def test_run_cpuprofile_unwritable(self) -> None:
        result = CliRunner().invoke(
            main,
            ["run", "-q", "-r", "^html/", "-t", "0.05", "--cpuprofile", "/nonexistent/x.prof"],
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("could not create CPU profile", result.output)

    def test_run_workload_os_error_is_not_a_profile_error(self) -> None:
        def setup(data: bytes):  # type: ignore[no-untyped-def]
            def step() -> None:
                raise OSError("disk full")

            return step

        with patch("parbench.bench.workloads.BENCHMARKS", [make_benchmark("io", setup)]):
            result = CliRunner().invoke(main, ["run", "-q", "-c", "1", "-t", "0.05"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("disk full", result.output)
        self.assertNotIn("CPU profile", result.output)
        self.assertEqual(_result_lines(result.output, "io,"), [])


class TestSystem(_CliTestCase):
    def test_system(self) -> None:
        result = CliRunner().invoke(main, ["system"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("CPU:", result.output)

    def test_system_json(self) -> None:
        result = CliRunner().invoke(main, ["system", "--json"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertIn("cpu_available", data)


if __name__ == "__main__":
    unittest.main()
