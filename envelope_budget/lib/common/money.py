"""Decimal money helpers.

Amounts cross the engine boundary as :class:`decimal.Decimal`.  Floats are
accepted for convenience but converted through ``str`` so that ``0.1``
becomes ``Decimal('0.1')`` rather than its binary expansion.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Union

from ...exceptions import InvalidAmount

MoneyLike = Union[Decimal, int, float, str]

CENT = Decimal('0.01')
ZERO = Decimal('0')


def to_money(value: Any) -> Decimal:
    """Coerce ``value`` to a finite Decimal.

    Args:
        value: Decimal, int, float or numeric string

    Returns:
        The value as a Decimal (not rounded)

    Raises:
        InvalidAmount: For booleans, ``None``, non-numeric strings, NaN or infinity

    Example:
        >>> to_money(0.1)
        Decimal('0.1')
        >>> to_money('12.50')
        Decimal('12.50')
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(value, "not a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmount(value, "not a number") from None
    else:
        raise InvalidAmount(value, "not a number")

    if not amount.is_finite():
        raise InvalidAmount(value, "amount must be finite")
    return amount


def non_negative_money(value: Any) -> Decimal:
    """Coerce ``value`` with :func:`to_money` and reject negatives."""
    amount = to_money(value)
    if amount < 0:
        raise InvalidAmount(value, "amount must not be negative")
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    """Round to whole cents, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)
