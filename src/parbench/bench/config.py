"""Run configuration and YAML profile loading.

Handles:
- Loading run profiles from YAML files.
- Merging CLI options with profile defaults.
- Validating the final configuration before any worker is spawned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from parbench.bench.corpus import DEFAULT_CORPUS_DIR
from parbench.bench.registry import compile_filter

log = logging.getLogger("parbench")

DEFAULT_DURATION = 10.0
DEFAULT_PATTERN = ".*"


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    """Configuration for one invocation of the runner."""

    workers: int = 0  # 0 = all detected parallelism
    duration: float = DEFAULT_DURATION  # seconds per benchmark
    pattern: str = DEFAULT_PATTERN  # benchmark name filter
    corpus_dir: Path = DEFAULT_CORPUS_DIR
    cpuprofile: Path | None = None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: RunConfig, *, available: int | None = None) -> list[ValidationError]:
    """Validate a run configuration.

    *available* is the detected parallelism; when given, asking for
    more workers than that produces a warning (never an error).

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if isinstance(config.workers, bool) or not isinstance(config.workers, int):
        errors.append(
            ValidationError(
                field="workers",
                message=f"Worker count must be an integer (got {config.workers!r}).",
            )
        )
    elif available and config.workers > available:
        errors.append(
            ValidationError(
                field="workers",
                message=(
                    f"{config.workers} workers requested but only {available} "
                    f"CPUs are available; workers will share CPUs."
                ),
                severity="warning",
            )
        )

    if isinstance(config.duration, bool) or not isinstance(config.duration, (int, float)):
        errors.append(
            ValidationError(
                field="duration",
                message=f"Duration must be a number of seconds (got {config.duration!r}).",
            )
        )
    elif not config.duration > 0:
        errors.append(
            ValidationError(
                field="duration",
                message=f"Duration must be positive (got {config.duration}).",
            )
        )

    try:
        compile_filter(config.pattern)
    except ValueError as exc:
        errors.append(ValidationError(field="run", message=str(exc)))

    return errors


def check_config(config: RunConfig, *, available: int | None = None) -> None:
    """Log warnings and raise if *config* has any fatal error.

    Raises:
        ValueError: If any validation error has severity ``"error"``.
    """
    errors = validate_config(config, available=available)
    for w in errors:
        if w.severity == "warning":
            log.warning("Config warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ValueError("Invalid run configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a run profile from a YAML file.

    Profile format::

        workers: 4
        duration: 5
        run: "^compress/"
        corpus_dir: "./corp"
        cpuprofile: "parbench.prof"

    Returns:
        The parsed YAML as a dict.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    unknown = set(data) - {"workers", "duration", "run", "corpus_dir", "cpuprofile"}
    if unknown:
        raise ValueError(f"Unknown profile key(s): {', '.join(sorted(unknown))}")

    return data


def config_from_profile(
    profile_data: dict[str, Any] | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> RunConfig:
    """Build a RunConfig from a parsed profile and CLI options.

    CLI values that are not None take precedence over profile values,
    which take precedence over the defaults.  A negative worker count is
    treated as 0.
    """
    profile = profile_data or {}
    cli = cli_overrides or {}

    def pick(cli_key: str, profile_key: str, default: Any) -> Any:
        if cli.get(cli_key) is not None:
            return cli[cli_key]
        if profile.get(profile_key) is not None:
            return profile[profile_key]
        return default

    workers = pick("workers", "workers", 0)
    if isinstance(workers, int) and not isinstance(workers, bool) and workers < 0:
        workers = 0

    cpuprofile = pick("cpuprofile", "cpuprofile", None)

    return RunConfig(
        workers=workers,
        duration=pick("duration", "duration", DEFAULT_DURATION),
        pattern=str(pick("run", "run", DEFAULT_PATTERN)),
        corpus_dir=Path(pick("corpus_dir", "corpus_dir", DEFAULT_CORPUS_DIR)),
        cpuprofile=Path(cpuprofile) if cpuprofile else None,
    )
