"""Parsing and formatting of human-readable byte sizes."""

from __future__ import annotations

import math

_SUFFIXES = (
    ("TB", 1024**4),
    ("GB", 1024**3),
    ("MB", 1024**2),
    ("KB", 1024),
    ("B", 1),
)

_UNIT = 1024
_PREFIXES = "KMGTPE"
_MAX_BYTES = 2**64 - 1


def _parse_number(text: str) -> float:
    if "_" in text:
        raise ValueError(text)
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(text)
    return value


def parse_size(text: str) -> int:
    """Parse a size such as ``"1.5GB"`` or ``"512"`` into a number of bytes.

    Units are binary (1 KB = 1024 bytes) and case-insensitive.
    """
    normalized = text.strip().upper()
    multiplier = 1
    number_text = normalized
    for suffix, factor in _SUFFIXES:
        if normalized.endswith(suffix):
            multiplier = factor
            number_text = normalized[: -len(suffix)]
            break

    try:
        number = _parse_number(number_text)
    except ValueError:
        raise ValueError(f"invalid size format: {normalized}") from None

    if number < 0:
        raise ValueError(f"size cannot be negative: {normalized}")

    return int(number * float(multiplier))


def format_size(num_bytes: int) -> str:
    """Format a byte count as a readable string such as ``"1.5 KB"``."""
    if num_bytes < 0 or num_bytes > _MAX_BYTES:
        raise ValueError(f"size out of range: {num_bytes}")
    if num_bytes < _UNIT:
        return f"{num_bytes} B"

    divisor, exponent = _UNIT, 0
    remaining = num_bytes // _UNIT
    while remaining >= _UNIT:
        divisor *= _UNIT
        exponent += 1
        remaining //= _UNIT

    return f"{float(num_bytes) / float(divisor):.1f} {_PREFIXES[exponent]}B"