"""Text corpora shared read-only by all workers.

A corpus is a file ``<corpus_dir>/<name>.txt``.  Each one is read once
per process into an immutable ``bytes`` object; every workload instance
takes the same object by reference and never copies or mutates it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

log = logging.getLogger("parbench")

DEFAULT_CORPUS_DIR = Path("corp")

_lock = threading.Lock()
_cache: dict[Path, bytes] = {}


def corpus_path(name: str, corpus_dir: Path = DEFAULT_CORPUS_DIR) -> Path:
    """Return the file path for corpus *name* under *corpus_dir*."""
    return corpus_dir / f"{name}.txt"


def load_corpus(name: str, corpus_dir: Path = DEFAULT_CORPUS_DIR) -> bytes:
    """Load corpus *name*, reading the file only on first use.

    Raises:
        FileNotFoundError: If the corpus file does not exist.
    """
    path = corpus_path(name, corpus_dir).resolve()
    with _lock:
        data = _cache.get(path)
        if data is None:
            if not path.is_file():
                raise FileNotFoundError(f"Corpus '{name}' not found: {path}")
            data = path.read_bytes()
            _cache[path] = data
            log.debug("Loaded corpus '%s' (%d bytes) from %s", name, len(data), path)
    return data


def clear_cache() -> None:
    """Forget every loaded corpus."""
    with _lock:
        _cache.clear()
