"""Host characterization for benchmark runs.

Detects how much parallelism the process can use and captures enough
about the CPU and interpreter to make throughput numbers comparable.
Thread-level scaling depends heavily on whether the interpreter has a
GIL, so that is recorded too.

Supports Linux and macOS; other platforms get defaults.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import subprocess
import sys
import sysconfig
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

log = logging.getLogger("parbench")


# ---------------------------------------------------------------------------
# SystemProfile
# ---------------------------------------------------------------------------


@dataclass
class SystemProfile:
    """Characterization of the machine and interpreter running benchmarks."""

    # CPU
    cpu_model: str = "unknown"
    cpu_cores_physical: int = 0
    cpu_cores_logical: int = 0
    cpu_available: int = 0  # usable by this process (affinity-aware)
    cpu_architecture: str = ""

    # OS
    os_name: str = ""
    os_kernel_version: str = ""

    # Python
    python_version: str = ""
    python_implementation: str = ""
    gil_disabled: bool = False  # free-threaded build
    gil_enabled: bool = True  # GIL active at runtime

    # System state at capture time
    load_avg_1m: float = 0.0

    hostname: str = ""
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ---------------------------------------------------------------------------
# Parallelism
# ---------------------------------------------------------------------------


def available_parallelism() -> int:
    """Number of CPUs this process may run on (at least 1)."""
    process_cpu_count = getattr(os, "process_cpu_count", None)
    if process_cpu_count is not None:
        count = process_cpu_count()
    elif hasattr(os, "sched_getaffinity"):
        count = len(os.sched_getaffinity(0))
    else:
        count = os.cpu_count()
    return max(1, count or 1)


def gil_enabled() -> bool:
    """Whether the GIL is active in this interpreter right now."""
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    if is_gil_enabled is None:
        return True
    return bool(is_gil_enabled())


def resolve_workers(requested: int) -> int:
    """Map a requested worker count to the number of threads to start.

    0 (or a negative value) means one worker per available CPU.  Counts
    above the available parallelism are kept as requested.
    """
    if requested <= 0:
        return available_parallelism()
    return requested


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


def capture_system_profile() -> SystemProfile:
    """Capture a system profile.

    All operations are best-effort; individual failures leave default
    values rather than raising.
    """
    profile = SystemProfile(
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        hostname=platform.node(),
        cpu_architecture=platform.machine(),
        cpu_cores_logical=os.cpu_count() or 0,
        cpu_available=available_parallelism(),
        os_name=platform.system(),
        os_kernel_version=platform.release(),
        python_version=platform.python_version(),
        python_implementation=platform.python_implementation(),
        gil_disabled=bool(sysconfig.get_config_var("Py_GIL_DISABLED")),
        gil_enabled=gil_enabled(),
    )

    if sys.platform == "linux":
        _capture_cpu_info_linux(profile)
    elif sys.platform == "darwin":
        _capture_cpu_info_darwin(profile)
    else:
        log.debug("CPU info capture not supported on %s", sys.platform)

    try:
        profile.load_avg_1m = round(os.getloadavg()[0], 2)
    except (AttributeError, OSError):
        pass

    return profile


def _capture_cpu_info_linux(profile: SystemProfile) -> None:
    """Populate CPU model and physical cores from /proc/cpuinfo."""
    try:
        cpuinfo = Path("/proc/cpuinfo").read_text()
    except OSError:
        return

    for line in cpuinfo.splitlines():
        if line.startswith("model name"):
            profile.cpu_model = line.split(":", 1)[1].strip()
            break

    # Physical cores: count unique (physical id, core id) pairs.
    physical_ids: set[tuple[str, str]] = set()
    current_physical: str | None = None
    for line in cpuinfo.splitlines():
        if line.startswith("physical id"):
            current_physical = line.split(":", 1)[1].strip()
        elif line.startswith("core id") and current_physical is not None:
            physical_ids.add((current_physical, line.split(":", 1)[1].strip()))
            current_physical = None
    if physical_ids:
        profile.cpu_cores_physical = len(physical_ids)
    else:
        profile.cpu_cores_physical = profile.cpu_cores_logical


def _capture_cpu_info_darwin(profile: SystemProfile) -> None:
    """Populate CPU model and physical cores using sysctl on macOS."""
    model = _sysctl("machdep.cpu.brand_string")
    if model:
        profile.cpu_model = model

    phys = _sysctl("hw.physicalcpu")
    if phys is not None and phys.isdigit():
        profile.cpu_cores_physical = int(phys)
    else:
        profile.cpu_cores_physical = profile.cpu_cores_logical


def _sysctl(key: str) -> str | None:
    """Read a sysctl string value. Returns None on failure."""
    try:
        proc = subprocess.run(
            ["sysctl", "-n", key],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if proc.returncode == 0 and proc.stdout.strip():
        return proc.stdout.strip()
    return None


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_system_profile(profile: SystemProfile) -> str:
    """Format a system profile for terminal display."""
    lines = [
        "System Profile",
        "─" * 14,
    ]

    cores = f"{profile.cpu_cores_physical} cores"
    if profile.cpu_cores_logical != profile.cpu_cores_physical:
        cores += f" / {profile.cpu_cores_logical} threads"
    lines.append(f"CPU:      {profile.cpu_model} ({cores}, {profile.cpu_architecture})")
    lines.append(f"Usable:   {profile.cpu_available} CPUs")
    lines.append(f"OS:       {profile.os_name} {profile.os_kernel_version}")

    flags = []
    if profile.gil_disabled:
        flags.append("free-threaded build")
    flags.append("GIL enabled" if profile.gil_enabled else "GIL disabled")
    lines.append(
        f"Python:   {profile.python_version} ({profile.python_implementation}, "
        f"{', '.join(flags)})"
    )
    lines.append(f"Load:     {profile.load_avg_1m}")
    lines.append(f"Hostname: {profile.hostname}")
    lines.append(f"Time:     {profile.timestamp}")

    return "\n".join(lines)
