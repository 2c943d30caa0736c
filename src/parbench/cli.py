"""Command-line interface for parbench.

Subcommands:
    parbench run       Run the selected benchmarks and print throughput
    parbench list      List registered benchmarks
    parbench system    Print system characterization
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml

from parbench import __version__
from parbench.logging import setup_logging

log = logging.getLogger("parbench")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """parbench — run micro-benchmarks on parallel workers for a fixed time."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command("run")
@click.option(
    "-c",
    "--workers",
    type=int,
    default=None,
    help="Number of worker threads (default: 0 = one per available CPU).",
)
@click.option(
    "-t",
    "--duration",
    type=float,
    default=None,
    help="Duration of each benchmark in seconds (default: 10).",
)
@click.option(
    "-r",
    "--run",
    "pattern",
    type=str,
    default=None,
    help="Regular expression selecting benchmarks to run (default: '.*').",
)
@click.option(
    "--corpus-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the text corpora (default: ./corp).",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile with default run options.",
)
@click.option(
    "--cpuprofile",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write a cProfile CPU profile of the run to this file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also log at DEBUG level to this file.",
)
def run_cmd(
    workers: int | None,
    duration: float | None,
    pattern: str | None,
    corpus_dir: Path | None,
    profile_path: Path | None,
    cpuprofile: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run benchmarks and print one 'name,throughput' line per benchmark.

    \b
    Examples:
        # Everything, one worker per CPU, 10 seconds each
        parbench run

        # gzip only, 4 workers, 2 seconds each
        parbench run -r '^compress/' -c 4 -t 2
    """
    from parbench.bench.config import config_from_profile, load_profile, validate_config
    from parbench.bench.profiling import cpu_profile, open_profile
    from parbench.bench.registry import WorkloadError
    from parbench.bench.runner import run_benchmarks

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        profile_data = load_profile(profile_path) if profile_path else None
        config = config_from_profile(
            profile_data,
            cli_overrides={
                "workers": workers,
                "duration": duration,
                "run": pattern,
                "corpus_dir": corpus_dir,
                "cpuprofile": cpuprofile,
            },
        )
    except (ValueError, yaml.YAMLError) as exc:
        raise click.UsageError(str(exc)) from exc

    fatal = [e for e in validate_config(config) if e.severity == "error"]
    if fatal:
        raise click.UsageError("; ".join(e.message for e in fatal))

    if config.cpuprofile is not None:
        try:
            open_profile(config.cpuprofile)
        except OSError as exc:
            raise click.ClickException(f"could not create CPU profile: {exc}") from exc

    try:
        with cpu_profile(config.cpuprofile):
            run_benchmarks(config, emit=click.echo)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    except WorkloadError as exc:
        log.error("Workload failed: %s", exc)
        raise SystemExit(1) from exc
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@main.command("list")
@click.option(
    "-r",
    "--run",
    "pattern",
    type=str,
    default=".*",
    show_default=True,
    help="Regular expression selecting benchmarks.",
)
@click.option("-l", "--long", "long_format", is_flag=True, help="Show descriptions.")
def list_cmd(pattern: str, long_format: bool) -> None:
    """List registered benchmarks."""
    from parbench.bench.registry import select_benchmarks
    from parbench.bench.workloads import BENCHMARKS

    try:
        selected = select_benchmarks(BENCHMARKS, pattern)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    for b in selected:
        if long_format and b.description:
            click.echo(f"{b.name}\t{b.description}")
        else:
            click.echo(b.name)


# ---------------------------------------------------------------------------
# system
# ---------------------------------------------------------------------------


@main.command("system")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def system_cmd(as_json: bool) -> None:
    """Print the system profile used to contextualize results."""
    from parbench.bench.system import capture_system_profile, format_system_profile

    profile = capture_system_profile()
    if as_json:
        click.echo(profile.to_json())
    else:
        click.echo(format_system_profile(profile))
