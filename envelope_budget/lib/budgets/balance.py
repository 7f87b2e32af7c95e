"""Zero-based budget balance checks.

A zero-based budget is balanced when every dollar of income has been given
a job: income minus allocations is zero within the currency tolerance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence

from ...config import get_epsilon
from ...models import AllocationMap, Envelope, IncomeSource, Subtype, require_cadence
from ..common.formatting import format_currency
from ..common.money import sum_money, to_money
from .frequency import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetBalance:
    is_balanced: bool
    has_surplus: bool
    is_overspent: bool
    difference: Decimal


@dataclass(frozen=True)
class SourceBreakdown:
    source_id: str
    name: str
    amount: Decimal
    allocated: Decimal
    remaining: Decimal
    is_balanced: bool


def validate(total_income: Any, total_allocated: Any, *, epsilon: Optional[Decimal] = None) -> BudgetBalance:
    """Classify ``total_income - total_allocated``.

    Exactly one of the three flags is set.  Within the tolerance the budget
    is balanced; at or beyond it the sign decides between surplus and
    overspent.

    Example:
        >>> validate(5000, Decimal('5000.005')).is_balanced
        True
    """
    income = to_money(total_income)
    allocated = to_money(total_allocated)
    epsilon = get_epsilon() if epsilon is None else epsilon

    difference = income - allocated
    balanced = abs(difference) < epsilon
    return BudgetBalance(
        is_balanced=balanced,
        has_surplus=not balanced and difference > 0,
        is_overspent=not balanced and difference < 0,
        difference=difference,
    )


def calculate_unallocated_by_source(
    sources: Iterable[IncomeSource],
    allocations: AllocationMap,
) -> List[SourceBreakdown]:
    """Per-source allocated and remaining amounts, in input order.

    Amounts stay in each source's own frequency, matching how allocations
    from that source are recorded.
    """
    epsilon = get_epsilon()
    breakdowns = []
    for source in sources:
        allocated = allocations.total_for_source(source.id)
        remaining = source.typical_amount - allocated
        breakdowns.append(SourceBreakdown(
            source_id=source.id,
            name=source.name,
            amount=source.typical_amount,
            allocated=allocated,
            remaining=remaining,
            is_balanced=abs(remaining) < epsilon,
        ))
    return breakdowns


def all_sources_balanced(breakdowns: Iterable[SourceBreakdown]) -> bool:
    return all(breakdown.is_balanced for breakdown in breakdowns)


def total_income(sources: Iterable[IncomeSource], pay_cycle: Any) -> Decimal:
    """Income from active sources expressed per ``pay_cycle`` (unrounded)."""
    cycle = require_cadence(pay_cycle)
    return sum_money(
        normalize(source.typical_amount, source.frequency, cycle)
        for source in sources
        if source.is_active
    )


def total_envelope_targets(envelopes: Iterable[Envelope], pay_cycle: Any) -> Decimal:
    """Recurring envelope targets expressed per ``pay_cycle`` (unrounded).

    Tracking envelopes and envelopes without a recurring target are left
    out.
    """
    cycle = require_cadence(pay_cycle)
    return sum_money(
        normalize(envelope.target_amount, envelope.frequency, cycle)
        for envelope in envelopes
        if envelope.subtype is not Subtype.TRACKING and envelope.frequency.is_recurring
    )


def validate_budget(
    sources: Sequence[IncomeSource],
    envelopes: Sequence[Envelope],
    pay_cycle: Any,
) -> BudgetBalance:
    """Check planned envelope targets against active income for one pay cycle."""
    income = total_income(sources, pay_cycle)
    targets = total_envelope_targets(envelopes, pay_cycle)
    balance = validate(income, targets)
    logger.debug("Budget income %s vs targets %s -> difference %s", income, targets, balance.difference)
    return balance


def describe_balance(balance: BudgetBalance, pay_cycle: Any) -> str:
    """One-line summary of ``balance`` for display.

    Example:
        >>> describe_balance(validate(3000, 3200), 'fortnightly')
        'Over budget: need to reduce expenses by $200.00 per fortnight'
    """
    period = {
        'weekly': 'week',
        'fortnightly': 'fortnight',
        'monthly': 'month',
        'quarterly': 'quarter',
        'annually': 'year',
    }[require_cadence(pay_cycle).value]
    if balance.is_balanced:
        return 'Budget balanced: every dollar has a job'
    amount = format_currency(abs(balance.difference))
    if balance.is_overspent:
        return f"Over budget: need to reduce expenses by {amount} per {period}"
    return f"Unallocated: {amount} per {period} to allocate"
