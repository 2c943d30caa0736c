"""Deterministic pseudo-random text for workloads that need synthetic input.

The generator is a 32-bit shift register seeded with all ones.  It emits
printable ASCII with a newline roughly every 31 bytes, and always emits
the same bytes, so throughput numbers are comparable across runs and
machines.
"""

from __future__ import annotations

import threading

_MASK32 = 0xFFFFFFFF
_TAP = 0x88888EEF
_PRINTABLE_FIRST = 0x20
_PRINTABLE_SPAN = 0x7E + 1 - 0x20

_lock = threading.Lock()
_text = b""


def make_text(n: int) -> bytes:
    """Return the first *n* bytes of the deterministic text stream.

    The longest text generated so far is kept for the life of the
    process; shorter requests get a prefix of it.
    """
    global _text
    if n < 0:
        raise ValueError(f"text length cannot be negative (got {n})")
    with _lock:
        if len(_text) < n:
            _text = _generate(n)
        return _text[:n]


def _generate(n: int) -> bytes:
    out = bytearray(n)
    x = _MASK32
    for i in range(n):
        x = (x + x) & _MASK32
        x ^= 1
        if x & 0x80000000:
            x ^= _TAP
        if x % 31 == 0:
            out[i] = 0x0A
        else:
            out[i] = x % _PRINTABLE_SPAN + _PRINTABLE_FIRST
    return bytes(out)
