"""Bill urgency measured in paydays.

Households think in pays rather than calendar days ("can I fund this
before it's due?"), so this module counts the pays left before an
envelope's due date, rolls stale next-pay dates forward, picks the
primary pay schedule from the income sources, and works backward from a
due date to the opening balance an envelope needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_CEILING, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from ...cycles import CYCLE_DAYS, CYCLE_MONTHS, as_date, resolve_due_date
from ...models import Envelope, Frequency, IncomeSource, require_cadence
from ..common.money import ZERO, quantize_cents
from .frequency import ideal_per_pay

logger = logging.getLogger(__name__)

# Days between paydays when counting pays; months are approximated.
PAY_INTERVAL_DAYS: Dict[Frequency, int] = {
    Frequency.WEEKLY: 7,
    Frequency.FORTNIGHTLY: 14,
    Frequency.MONTHLY: 30,
    Frequency.QUARTERLY: 91,
    Frequency.ANNUALLY: 365,
}

# Average pay cycle length used when working back from a due date.
AVERAGE_CYCLE_DAYS: Dict[Frequency, Decimal] = {
    Frequency.WEEKLY: Decimal('7'),
    Frequency.FORTNIGHTLY: Decimal('14'),
    Frequency.MONTHLY: Decimal('30.42'),
    Frequency.QUARTERLY: Decimal('91.25'),
    Frequency.ANNUALLY: Decimal('365'),
}


class PayUrgency(str, Enum):
    OVERDUE = 'overdue'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    NONE = 'none'


@dataclass(frozen=True)
class PaySchedule:
    next_pay_date: date
    pay_frequency: Frequency

    def __post_init__(self) -> None:
        object.__setattr__(self, 'next_pay_date', as_date(self.next_pay_date))
        object.__setattr__(self, 'pay_frequency', require_cadence(self.pay_frequency))


@dataclass(frozen=True)
class PaysUntilDue:
    pays: int  # -1 when overdue
    days_until_due: int
    urgency: PayUrgency
    display_text: str

    @property
    def is_overdue(self) -> bool:
        return self.pays < 0


def advance_pay_date(stored: date, frequency: Any, as_of: date) -> date:
    """Roll a stored pay date forward by whole pay cycles until it is on or after ``as_of``.

    Monthly and longer cadences step in calendar months from the stored
    date, so a pay on the 31st lands on the last day of shorter months
    without drifting.

    Example:
        >>> advance_pay_date(date(2024, 5, 3), 'fortnightly', date(2024, 6, 1))
        datetime.date(2024, 6, 14)
    """
    cadence = require_cadence(frequency)
    stored = as_date(stored)
    as_of = as_date(as_of)
    if stored >= as_of:
        return stored

    if cadence in CYCLE_DAYS:
        step = CYCLE_DAYS[cadence]
        cycles = -(-(as_of - stored).days // step)
        return stored + timedelta(days=cycles * step)

    months = CYCLE_MONTHS[cadence]
    n = 1
    while True:
        candidate = (pd.Timestamp(stored) + pd.DateOffset(months=months * n)).date()
        if candidate >= as_of:
            return candidate
        n += 1


def _urgency(pays: int, is_funded: bool) -> Tuple[PayUrgency, str]:
    if is_funded:
        if pays < 0:
            return PayUrgency.NONE, 'Overdue'
        if pays == 0:
            return PayUrgency.NONE, 'Due soon'
        return PayUrgency.NONE, f"{pays} pay{'s' if pays != 1 else ''}"

    if pays < 0:
        return PayUrgency.OVERDUE, 'Overdue!'
    if pays == 0:
        return PayUrgency.HIGH, 'Due now!'
    if pays == 1:
        return PayUrgency.HIGH, '1 pay!'
    if pays == 2:
        return PayUrgency.MEDIUM, '2 pays'
    if pays <= 4:
        return PayUrgency.LOW, f"{pays} pays"
    return PayUrgency.NONE, f"{pays} pays"


def pays_until_due(due: date, schedule: PaySchedule, as_of: date, is_funded: bool = False) -> PaysUntilDue:
    """Count the paydays left before ``due``.

    Args:
        due: Calendar due date
        schedule: Next payday and pay frequency
        as_of: Reference date
        is_funded: Funded envelopes report the count without urgency

    Returns:
        PaysUntilDue where ``pays`` is -1 when overdue, 0 when the bill
        falls on or before the next payday, otherwise the number of pays
        that land before it

    Example:
        >>> schedule = PaySchedule(date(2024, 6, 7), 'fortnightly')
        >>> pays_until_due(date(2024, 6, 30), schedule, date(2024, 6, 1)).pays
        2
    """
    due = as_date(due)
    as_of = as_date(as_of)
    next_pay = advance_pay_date(schedule.next_pay_date, schedule.pay_frequency, as_of)

    days_until_due = (due - as_of).days
    days_until_next_pay = (next_pay - as_of).days
    interval = PAY_INTERVAL_DAYS[schedule.pay_frequency]

    if days_until_due < 0:
        pays = -1
    elif days_until_due <= days_until_next_pay:
        pays = 0
    else:
        pays = 1 + (days_until_due - days_until_next_pay) // interval

    urgency, text = _urgency(pays, is_funded)
    return PaysUntilDue(pays=pays, days_until_due=days_until_due, urgency=urgency, display_text=text)


def envelope_pays_until_due(
    envelope: Envelope,
    schedule: PaySchedule,
    as_of: date,
    is_funded: bool = False,
) -> Optional[PaysUntilDue]:
    """:func:`pays_until_due` for an envelope, or ``None`` without a due date."""
    due = resolve_due_date(envelope.due_date, as_of)
    if due is None:
        return None
    return pays_until_due(due, schedule, as_of, is_funded)


def primary_pay_schedule(sources: Iterable[IncomeSource], as_of: date) -> Optional[PaySchedule]:
    """Schedule of the active income source paid soonest.

    Sources without a next pay date are ignored; ``None`` when none
    remain.  The chosen pay date is rolled forward to ``as_of``.
    """
    candidates = [source for source in sources if source.is_active and source.next_pay_date is not None]
    if not candidates:
        return None
    primary = min(candidates, key=lambda source: (source.next_pay_date, source.id))
    logger.debug("Primary pay schedule from income source %s", primary.id)
    return PaySchedule(
        next_pay_date=advance_pay_date(primary.next_pay_date, primary.frequency, as_of),
        pay_frequency=primary.frequency,
    )


def pay_cycles_until_due(due: date, pay_cycle: Any, as_of: date) -> int:
    """Whole pay cycles (rounded up) between ``as_of`` and ``due``; 0 once due."""
    cycle = require_cadence(pay_cycle)
    days = (as_date(due) - as_date(as_of)).days
    if days <= 0:
        return 0
    return int((Decimal(days) / AVERAGE_CYCLE_DAYS[cycle]).to_integral_value(rounding=ROUND_CEILING))


def suggested_opening_balance(envelope: Envelope, pay_cycle: Any, as_of: date) -> Decimal:
    """Amount to seed ``envelope`` with so steady per-pay funding meets the due date.

    ``target - ideal_per_pay × pay cycles until due``, never negative.
    Envelopes without a due date need no opening balance.

    Example:
        >>> rego = Envelope('rego', 'Car rego', 'essential', 'bill', 780, 'annually',
        ...                 due_date=date(2024, 9, 1))
        >>> suggested_opening_balance(rego, 'fortnightly', date(2024, 6, 1))
        Decimal('570.00')
    """
    due = resolve_due_date(envelope.due_date, as_of)
    if due is None:
        return ZERO
    cycles = pay_cycles_until_due(due, pay_cycle, as_of)
    accumulated = ideal_per_pay(envelope, pay_cycle) * cycles
    return max(ZERO, quantize_cents(envelope.target_amount - accumulated))
