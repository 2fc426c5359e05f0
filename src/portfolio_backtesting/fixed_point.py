"""Scaled-integer arithmetic shared by the simulator and the metrics engine.

Money, prices and ratios are plain Python ``int`` values:
- ``WAD``-scaled (1e18) for prices, returns and ratios
- basis points (1e4) for weights and annual rates

Division truncates toward zero so repeated runs reproduce identical integers.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

WAD = 10**18
BPS = 10_000


def div_trunc(a: int, b: int) -> int:
    """Signed integer division truncating toward zero."""
    if b == 0:
        raise ZeroDivisionError("division by zero")
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def mul_div(a: int, b: int, d: int) -> int:
    """Return ``a * b / d`` with truncating division."""
    return div_trunc(a * b, d)


def babylonian_sqrt(x: int) -> int:
    """Integer square root via Newton (Babylonian) iteration.

    ``y = x; z = (x + 1) // 2; while z < y: y = z; z = (x // z + z) // 2``
    """
    if x < 0:
        raise ValueError("cannot take the square root of a negative number")
    if x == 0:
        return 0
    y = x
    z = (x + 1) // 2
    while z < y:
        y = z
        z = (x // z + z) // 2
    return y


def wad_sqrt(x: int) -> int:
    """Square root of a WAD-scaled value, returned in WAD scale."""
    return babylonian_sqrt(x * WAD)


def bps_to_wad(bps: int) -> int:
    return bps * WAD // BPS


def to_wad(value: float | int | str | Decimal) -> int:
    """Convert a decimal quantity to a WAD-scaled int without float drift."""
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"cannot convert {value!r} to a fixed-point value") from exc
    if not dec.is_finite():
        raise ValueError(f"cannot convert {value!r} to a fixed-point value")
    return int(dec * WAD)


def from_wad(value: int | None) -> float | None:
    """Convert a WAD-scaled int to ``float`` (display only)."""
    if value is None:
        return None
    return float(Decimal(value) / WAD)
