"""Frequency normalization.

Converts money between recurrence frequencies through an implied annual
amount: ``amount × occurrences(from) / occurrences(to)``, kept as exact Decimal
ratios so that converting back and forth is lossless.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Tuple

from ...models import Envelope, Frequency, require_cadence
from ..common.money import ZERO, non_negative_money, quantize_cents

logger = logging.getLogger(__name__)

OCCURRENCES_PER_YEAR: Dict[Frequency, int] = {
    Frequency.WEEKLY: 52,
    Frequency.FORTNIGHTLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.ANNUALLY: 1,
}

SHORT_LABELS: Dict[Frequency, str] = {
    Frequency.WEEKLY: 'Wkly',
    Frequency.FORTNIGHTLY: 'F/N',
    Frequency.MONTHLY: 'Mthly',
    Frequency.QUARTERLY: 'Qtly',
    Frequency.ANNUALLY: 'Ann',
    Frequency.NONE: 'None',
}


def occurrences_per_year(frequency: Any) -> int:
    """Number of times a ``frequency`` recurs in a year.

    Raises:
        InvalidFrequency: For unknown values or ``none``
    """
    return OCCURRENCES_PER_YEAR[require_cadence(frequency)]


def annualize(amount: Any, frequency: Any) -> Decimal:
    """Total of ``amount`` recurring at ``frequency`` over a year."""
    return non_negative_money(amount) * occurrences_per_year(frequency)


def normalize(amount: Any, from_frequency: Any, to_frequency: Any) -> Decimal:
    """Convert ``amount`` from one recurrence frequency to another.

    The result is not rounded so that converting back recovers the input
    up to Decimal precision.

    Args:
        amount: Finite, non-negative amount per ``from_frequency``
        from_frequency: Cadence ``amount`` is expressed in
        to_frequency: Cadence to express the result in

    Returns:
        Equivalent amount per ``to_frequency``

    Raises:
        InvalidAmount: If ``amount`` is negative or not finite
        InvalidFrequency: If either frequency is unknown or ``none``

    Example:
        >>> normalize(1000, 'fortnightly', 'monthly').quantize(Decimal('0.01'))
        Decimal('2166.67')
    """
    value = non_negative_money(amount)
    source = occurrences_per_year(from_frequency)
    target = occurrences_per_year(to_frequency)
    if source == target:
        return value
    return value * source / target


def to_pay_cycle(amount: Any, frequency: Any, pay_cycle: Any) -> Decimal:
    """Normalize ``amount`` onto a pay cycle and round to cents.

    Example:
        >>> to_pay_cycle(3000, 'monthly', 'fortnightly')
        Decimal('1384.62')
    """
    return quantize_cents(normalize(amount, frequency, pay_cycle))


def ideal_per_pay(envelope: Envelope, pay_cycle: Any) -> Decimal:
    """Steady-state amount to set aside each pay for ``envelope``.

    Depends only on the target and its cadence, never on balances or due
    dates.  Envelopes without a recurring target need nothing per pay.
    """
    if not envelope.frequency.is_recurring:
        return ZERO
    return to_pay_cycle(envelope.target_amount, envelope.frequency, pay_cycle)


def combine_to_pay_cycle(amounts: Iterable[Tuple[Any, Any]], pay_cycle: Any) -> Decimal:
    """Sum ``(amount, frequency)`` pairs expressed in a single pay cycle.

    Used when an envelope is funded from several income sources paid on
    different schedules.

    Example:
        >>> combine_to_pay_cycle([(100, 'weekly'), (200, 'fortnightly')], 'fortnightly')
        Decimal('400.00')
    """
    cycle = require_cadence(pay_cycle)
    annual_total = sum((annualize(amount, frequency) for amount, frequency in amounts), ZERO)
    logger.debug("Combined annual total %s onto %s pay cycle", annual_total, cycle.value)
    return quantize_cents(annual_total / OCCURRENCES_PER_YEAR[cycle])


def frequency_short_label(frequency: Any) -> str:
    return SHORT_LABELS[Frequency.parse(frequency)]
