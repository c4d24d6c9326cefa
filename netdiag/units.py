"""File size units and fixed-decimal rounding helpers."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Tuple

UNITS: Tuple[str, ...] = ("bytes", "KB", "MB", "GB", "TB")

# Binary (IEC) multipliers, not decimal SI.
UNIT_SIZES = {
    "bytes": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
    "TB": 1024 * 1024 * 1024 * 1024,
}


def validate_unit(unit: str) -> str:
    if unit not in UNIT_SIZES:
        raise ValueError(f"Unknown size unit {unit!r}; expected one of {', '.join(UNITS)}")
    return unit


def round_half_up(value: float, places: int = 2) -> float:
    """Round the exact binary value of ``value`` to ``places`` decimals, ties away from zero.

    Matches what a fixed-decimal formatter prints (``0.125`` becomes ``0.13``),
    unlike :func:`round` which rounds ties to even. Non-finite values are
    returned unchanged.
    """
    if not math.isfinite(value):
        return value
    exact = Decimal(value)
    quantum = Decimal(1).scaleb(-places)
    # Enough digits for the integer part plus the kept decimals.
    context = Context(prec=max(28, exact.adjusted() + places + 2))
    return float(exact.quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def convert_to_bytes(size: float, unit: str) -> float:
    return size * UNIT_SIZES[validate_unit(unit)]


def convert_from_bytes(num_bytes: float) -> Tuple[float, str]:
    """Express a byte count in the largest unit not exceeding it, rounded to 2 decimals."""
    unit_index = 0
    size = num_bytes
    while size >= 1024 and unit_index < len(UNITS) - 1:
        size /= 1024
        unit_index += 1
    return round_half_up(size, 2), UNITS[unit_index]
