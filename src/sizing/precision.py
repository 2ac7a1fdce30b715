"""Decimal rounding for reported sizes."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from constants import Constants


def round_to_precision(value: float, precision: Optional[int] = None) -> float:
    """Round ``value`` half-away-from-zero at ``precision`` decimal places.

    The float is converted through its shortest repr so that ``0.0005``
    rounds to ``0.001`` rather than being skewed by binary representation.
    Negative values keep their sign; no clamping is applied.

    Args:
        value: Size to round.
        precision: Decimal places; defaults to ``Constants.SIZE_PRECISION`` (3).
    """
    places = Constants.SIZE_PRECISION if precision is None else precision
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def bytes_to_megabytes(size_bytes: int) -> float:
    """Convert a byte count to (unrounded) megabytes."""
    return size_bytes / Constants.BYTES_PER_MB
