"""Human readable sizes."""

from __future__ import annotations

import re

_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "m": 1000**2,
    "mb": 1000**2,
    "g": 1000**3,
    "gb": 1000**3,
    "t": 1000**4,
    "tb": 1000**4,
    "p": 1000**5,
    "pb": 1000**5,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
    "pib": 1024**5,
}

_SIZE_RE = re.compile(r"^\s*(?P<number>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>[a-zA-Z]*)\s*$")

_DISPLAY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


def parse_size(text: str) -> int:
    """Parse ``50MB``, ``1.5 GiB`` or ``4096`` into a number of bytes.

    SI units are powers of 1000, IEC units (``KiB``...) powers of 1024.
    """
    match = _SIZE_RE.match(text)
    if match is None:
        raise ValueError(f"invalid size: {text!r}")
    unit = match.group("unit").lower()
    factor = _UNITS.get(unit)
    if factor is None:
        raise ValueError(f"unknown size unit: {match.group('unit')!r}")
    return int(float(match.group("number")) * factor)


def format_size(size: int) -> str:
    """Render a byte count with IEC units, ``1.5 KiB``."""
    value = float(max(size, 0))
    for unit in _DISPLAY_UNITS:
        if value < 1024.0 or unit == _DISPLAY_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{size} B"


__all__ = ["format_size", "parse_size"]
