"""Funding-cycle date math shared by the allocator and the gap analyzer.

A funding cycle ends on the envelope's next due date and starts one
cadence earlier.  Weekly and fortnightly cycles are a fixed number of days;
monthly, quarterly and annual cycles step back whole calendar months so
that a bill due on the 1st always has a cycle starting on the 1st of the
previous month.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional, Union

import pandas as pd

from .exceptions import InvalidFrequency
from .models import DueDate, Envelope, Frequency

CYCLE_DAYS: Dict[Frequency, int] = {
    Frequency.WEEKLY: 7,
    Frequency.FORTNIGHTLY: 14,
}

CYCLE_MONTHS: Dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 12,
}


@dataclass(frozen=True)
class CycleWindow:
    start: date
    end: date

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days

    def progress(self, as_of: date) -> Decimal:
        """Fraction of the window elapsed at ``as_of``, clamped to [0, 1]."""
        if as_of < self.start:
            return Decimal(0)
        if as_of >= self.end:
            return Decimal(1)
        return Decimal((as_of - self.start).days) / Decimal(self.length_days)


def as_date(value: Union[date, datetime, pd.Timestamp]) -> date:
    """Drop any time component so comparisons happen on calendar days."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    return value


def _clamped_day(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def resolve_due_date(due_date: DueDate, as_of: date) -> Optional[date]:
    """Turn an envelope due date into a calendar date.

    Absolute dates are returned unchanged.  A day-of-month resolves to its
    next occurrence on or after ``as_of``; days past the end of a short
    month fall on that month's last day.

    Example:
        >>> resolve_due_date(15, date(2024, 6, 20))
        datetime.date(2024, 7, 15)
        >>> resolve_due_date(31, date(2024, 2, 10))
        datetime.date(2024, 2, 29)
    """
    if due_date is None:
        return None
    if isinstance(due_date, date):
        return as_date(due_date)

    as_of = as_date(as_of)
    candidate = _clamped_day(as_of.year, as_of.month, due_date)
    if candidate >= as_of:
        return candidate
    year, month = (as_of.year + 1, 1) if as_of.month == 12 else (as_of.year, as_of.month + 1)
    return _clamped_day(year, month, due_date)


def cycle_start(due: date, frequency: Frequency) -> date:
    """Start of the funding cycle that ends on ``due``.

    Raises:
        InvalidFrequency: For ``Frequency.NONE``
    """
    if frequency in CYCLE_DAYS:
        return due - timedelta(days=CYCLE_DAYS[frequency])
    if frequency in CYCLE_MONTHS:
        return (pd.Timestamp(due) - pd.DateOffset(months=CYCLE_MONTHS[frequency])).date()
    raise InvalidFrequency(frequency, "a concrete cadence is required")


def cycle_window(envelope: Envelope, as_of: date) -> Optional[CycleWindow]:
    """Funding window for ``envelope`` at ``as_of``, or ``None`` without a schedule."""
    if not envelope.has_schedule:
        return None
    due = resolve_due_date(envelope.due_date, as_of)
    return CycleWindow(start=cycle_start(due, envelope.frequency), end=due)


def days_until_due(envelope: Envelope, as_of: date) -> Optional[int]:
    """Days from ``as_of`` to the resolved due date (negative when overdue)."""
    due = resolve_due_date(envelope.due_date, as_of)
    if due is None:
        return None
    return (due - as_date(as_of)).days
