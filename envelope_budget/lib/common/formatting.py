"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

from .money import quantize_cents

Number = Union[Decimal, float, int]


def format_currency(amount: Number, include_sign: bool = True) -> str:
    """Format a currency amount with comma separators and two decimals.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(Decimal('1234.56'))
        '$1,234.56'
        >>> format_currency(-50)
        '-$50.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    value = quantize_cents(Decimal(str(amount)))
    formatted = f"{abs(value):,.2f}"
    prefix = '-' if value < 0 else ''
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def format_signed_currency(amount: Number) -> str:
    """Format an amount with an explicit ``+`` for positive values.

    Example:
        >>> format_signed_currency(Decimal('300'))
        '+$300.00'
        >>> format_signed_currency(Decimal('-12.5'))
        '-$12.50'
    """
    text = format_currency(amount)
    return text if text.startswith('-') else f"+{text}"


def format_percentage(fraction: Optional[Number], signed: bool = False) -> str:
    """Format a fraction (``0.1`` for 10%) with one decimal place.

    ``None`` renders as ``'n/a'``, which is what an undefined percentage
    (for example a variance against a zero expected amount) displays as.

    Example:
        >>> format_percentage(Decimal('0.1'))
        '10.0%'
        >>> format_percentage(Decimal('-0.125'), signed=True)
        '-12.5%'
    """
    if fraction is None:
        return 'n/a'
    percent = Decimal(str(fraction)) * 100
    text = f"{percent:.1f}%"
    if signed and percent > 0:
        return f"+{text}"
    return text
