"""Monetary arithmetic: the single place where rounding happens.

Every derived money field (liability, result, commission, balance terms,
averages, percentages) goes through :func:`round_money` at the point it is
computed, never at display time.  Repeated reads of a persisted value are
therefore stable to the cent.

Inputs arrive as ``int``, ``float``, ``str`` or ``Decimal`` (SQLAlchemy
``Numeric`` columns return ``Decimal``; JSON payloads give ``float``).
:func:`to_decimal` normalizes them via ``str()`` so that ``2.5`` becomes
``Decimal("2.5")`` rather than the binary expansion of the float.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final, Iterable, Optional, Union

Number = Union[int, float, str, Decimal]

#: Two decimal places, the resolution of every stored money value.
CENT: Final[Decimal] = Decimal("0.01")

#: Three decimal places, the resolution of stored odds.
ODDS_STEP: Final[Decimal] = Decimal("0.001")

ZERO: Final[Decimal] = Decimal("0")
ONE: Final[Decimal] = Decimal("1")
HUNDRED: Final[Decimal] = Decimal("100")


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce a numeric value to ``Decimal``; ``None`` becomes zero.

    Raises:
        InvalidOperation: if ``value`` is not numeric.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"{value!r} is not a monetary value")
    return Decimal(str(value))


def round_money(value: Optional[Number]) -> Decimal:
    """Round half-up to 2 decimal places.

    >>> round_money(2.675)
    Decimal('2.68')
    >>> round_money(-7.125)
    Decimal('-7.13')
    """
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_odds(value: Optional[Number]) -> Decimal:
    """Round decimal odds half-up to the 3 places the bets table keeps."""
    return to_decimal(value).quantize(ODDS_STEP, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Optional[Number]]) -> Decimal:
    """Exact sum of ``values`` (``None`` counts as zero), then rounded."""
    total = ZERO
    for v in values:
        total += to_decimal(v)
    return round_money(total)


def safe_percentage(numerator: Optional[Number], denominator: Optional[Number]) -> Decimal:
    """``numerator / denominator × 100`` rounded; 0 when the denominator is 0."""
    den = to_decimal(denominator)
    if den == ZERO:
        return round_money(ZERO)
    return round_money(to_decimal(numerator) / den * HUNDRED)


def safe_average(total: Optional[Number], count: int) -> Decimal:
    """``total / count`` rounded; 0 when ``count`` is 0."""
    if not count:
        return round_money(ZERO)
    return round_money(to_decimal(total) / count)
