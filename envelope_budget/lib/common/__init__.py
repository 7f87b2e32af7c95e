"""Common utilities shared across the engine.

This module provides money coercion, rounding and display formatting used
by every budget component.
"""

from .formatting import format_currency, format_percentage, format_signed_currency
from .money import (
    CENT,
    ZERO,
    non_negative_money,
    quantize_cents,
    sum_money,
    to_money,
)

__all__ = [
    'format_currency',
    'format_percentage',
    'format_signed_currency',
    'CENT',
    'ZERO',
    'non_negative_money',
    'quantize_cents',
    'sum_money',
    'to_money',
]
