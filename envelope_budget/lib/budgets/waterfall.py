"""Waterfall allocation of available funds across envelopes.

Envelopes are funded in priority tiers:

1. Essential Bills (essential envelopes with the ``bill`` subtype)
2. Essential Other (every other essential envelope)
3. Important
4. Flexible (discretionary)

Within a tier the envelope due soonest is funded first; envelopes without
a due date come last and ties break on name.  Each envelope receives at
most its cycle-relative need, and funds are consumed strictly in that
order.  Whatever is left over is reported as ``remaining`` and never
assigned automatically: committing surplus is the user's decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ...config import get_labels
from ...cycles import as_date, cycle_window, days_until_due
from ...exceptions import InvalidRecord
from ...models import Envelope, Priority, Subtype, index_by_id, require_cadence
from ..common.money import ZERO, non_negative_money, quantize_cents, sum_money, to_money
from ..config.defaults import get_config_value
from .frequency import to_pay_cycle

logger = logging.getLogger(__name__)

DEFAULT_TIER_NAMES = {
    1: 'Essential Bills',
    2: 'Essential Other',
    3: 'Important',
    4: 'Flexible',
}


class AllocationStrategy(str, Enum):
    CREDIT_FIRST = 'credit_first'
    ENVELOPES_ONLY = 'envelopes_only'
    HYBRID = 'hybrid'


@dataclass(frozen=True)
class EnvelopeAllocationResult:
    envelope_id: str
    envelope_name: str
    priority: Priority
    subtype: Subtype
    tier: int
    tier_name: str
    suggested: Decimal
    allocated: Decimal

    @property
    def shortfall(self) -> Decimal:
        return max(ZERO, self.suggested - self.allocated)

    @property
    def is_fully_funded(self) -> bool:
        return self.allocated >= self.suggested


@dataclass(frozen=True)
class WaterfallResult:
    available_funds: Decimal
    allocations: Dict[str, Decimal]
    results: Tuple[EnvelopeAllocationResult, ...]
    total_allocated: Decimal
    remaining: Decimal

    @property
    def by_tier(self) -> Dict[int, List[EnvelopeAllocationResult]]:
        tiers: Dict[int, List[EnvelopeAllocationResult]] = {tier: [] for tier in DEFAULT_TIER_NAMES}
        for row in self.results:
            tiers[row.tier].append(row)
        return tiers

    @property
    def by_priority(self) -> Dict[Priority, Decimal]:
        totals = {priority: ZERO for priority in Priority}
        for row in self.results:
            totals[row.priority] += row.allocated
        return totals

    @property
    def unfunded(self) -> List[EnvelopeAllocationResult]:
        return [row for row in self.results if row.allocated == 0 and row.suggested > 0]


@dataclass(frozen=True)
class AllocationSummary:
    total_suggested: Decimal
    total_allocated: Decimal
    total_shortfall: Decimal
    fully_funded_count: int
    partially_funded_count: int
    unfunded_count: int


@dataclass(frozen=True)
class AvailableFunds:
    available_for_envelopes: Decimal
    credit_card_allocation: Decimal


@dataclass(frozen=True)
class StrategyRecommendation:
    strategy: AllocationStrategy
    reason: str
    suggested_hybrid_amount: Optional[Decimal] = None


def envelope_tier(envelope: Envelope) -> int:
    """Waterfall tier (1-4) for ``envelope`` based on priority and subtype."""
    if envelope.priority is Priority.ESSENTIAL:
        return 1 if envelope.subtype is Subtype.BILL else 2
    if envelope.priority is Priority.IMPORTANT:
        return 3
    return 4


def tier_name(tier: int) -> str:
    names = get_labels('waterfall', 'tier_names')
    return names.get(str(tier), DEFAULT_TIER_NAMES[tier])


def _urgency_key(envelope: Envelope, as_of: date) -> Tuple[int, int, str, str]:
    days = days_until_due(envelope, as_of)
    if days is None:
        return (1, 0, envelope.name, envelope.id)
    return (0, days, envelope.name, envelope.id)


def order_envelopes(envelopes: Iterable[Envelope], as_of: date) -> List[Envelope]:
    """Sort envelopes into waterfall order: tier, due date, then name."""
    as_of = as_date(as_of)
    return sorted(envelopes, key=lambda env: (envelope_tier(env), _urgency_key(env, as_of)))


def cycle_relative_need(envelope: Envelope, pay_cycle: Any, as_of: date) -> Decimal:
    """Amount ``envelope`` should hold now, rounded to cents.

    * An explicit per-pay allocation wins when set.
    * Tracking envelopes and envelopes without a recurring target need
      nothing.
    * With a due date, the need is the share of the target matching the
      elapsed part of the funding cycle.
    * Without a due date, one pay cycle's worth of the target is needed.
    """
    if envelope.per_pay_allocation:
        return quantize_cents(envelope.per_pay_allocation)
    if envelope.subtype is Subtype.TRACKING or not envelope.frequency.is_recurring:
        return ZERO
    window = cycle_window(envelope, as_date(as_of))
    if window is not None:
        return quantize_cents(envelope.target_amount * window.progress(as_date(as_of)))
    return to_pay_cycle(envelope.target_amount, envelope.frequency, pay_cycle)


def allocate(
    available_funds: Any,
    envelopes: Iterable[Envelope],
    target_pay_cycle: Any,
    *,
    as_of: date,
) -> WaterfallResult:
    """Distribute ``available_funds`` across ``envelopes`` in waterfall order.

    Tiers are strict: an essential bill without a due date is still funded
    before an essential spending envelope due tomorrow.  Urgency only
    orders envelopes inside one tier.

    Args:
        available_funds: Pool to distribute; negative values (existing debt)
            are valid and simply fund nothing
        envelopes: Envelopes to consider; every one appears in the result
        target_pay_cycle: User's pay cycle, used for envelopes without a due date
        as_of: Reference date for due-date urgency and cycle progress

    Returns:
        WaterfallResult where ``sum(allocations) + remaining == available_funds``

    Raises:
        InvalidAmount: If ``available_funds`` is not a finite number
        InvalidFrequency: If ``target_pay_cycle`` is not a concrete cadence
        InvalidRecord: If two envelopes share an id

    Example:
        >>> result = allocate(500, envelopes, 'fortnightly', as_of=date(2024, 6, 1))
        >>> result.remaining
        Decimal('0')
    """
    funds = to_money(available_funds)
    pay_cycle = require_cadence(target_pay_cycle)
    as_of = as_date(as_of)
    envelopes = list(envelopes)
    index_by_id(envelopes)  # rejects duplicate ids

    remaining = funds
    allocations: Dict[str, Decimal] = {}
    results: List[EnvelopeAllocationResult] = []

    for envelope in order_envelopes(envelopes, as_of):
        tier = envelope_tier(envelope)
        suggested = cycle_relative_need(envelope, pay_cycle, as_of)
        allocated = min(suggested, max(ZERO, remaining))
        remaining -= allocated
        allocations[envelope.id] = allocated
        results.append(EnvelopeAllocationResult(
            envelope_id=envelope.id,
            envelope_name=envelope.name,
            priority=envelope.priority,
            subtype=envelope.subtype,
            tier=tier,
            tier_name=tier_name(tier),
            suggested=suggested,
            allocated=allocated,
        ))
        if allocated < suggested:
            logger.debug(
                "Envelope %s (tier %d) short by %s", envelope.id, tier, suggested - allocated
            )

    total_allocated = sum_money(allocations.values())
    return WaterfallResult(
        available_funds=funds,
        allocations=allocations,
        results=tuple(results),
        total_allocated=total_allocated,
        remaining=funds - total_allocated,
    )


def allocate_today(available_funds: Any, envelopes: Sequence[Envelope], target_pay_cycle: Any) -> WaterfallResult:
    """Run :func:`allocate` against today's date."""
    return allocate(available_funds, envelopes, target_pay_cycle, as_of=date.today())


def allocation_summary(result: WaterfallResult) -> AllocationSummary:
    """Count fully, partially and un-funded envelopes in ``result``."""
    fully = partially = unfunded = 0
    for row in result.results:
        if row.is_fully_funded:
            fully += 1
        elif row.allocated > 0:
            partially += 1
        else:
            unfunded += 1
    return AllocationSummary(
        total_suggested=sum_money(row.suggested for row in result.results),
        total_allocated=result.total_allocated,
        total_shortfall=sum_money(row.shortfall for row in result.results),
        fully_funded_count=fully,
        partially_funded_count=partially,
        unfunded_count=unfunded,
    )


def calculate_available_funds(
    bank_balance: Any,
    credit_card_debt: Any,
    strategy: Any,
    hybrid_amount: Any = None,
) -> AvailableFunds:
    """Split a bank balance between credit card repayment and envelopes.

    Args:
        bank_balance: Cash on hand (may be negative)
        credit_card_debt: Outstanding card balance (non-negative)
        strategy: ``credit_first``, ``envelopes_only`` or ``hybrid``
        hybrid_amount: Card payment chosen by the user for ``hybrid``
    """
    balance = to_money(bank_balance)
    debt = non_negative_money(credit_card_debt)
    try:
        chosen = AllocationStrategy(strategy)
    except ValueError:
        raise InvalidRecord(f"Unknown allocation strategy {strategy!r}") from None

    if chosen is AllocationStrategy.CREDIT_FIRST:
        card = max(ZERO, min(debt, balance))
        return AvailableFunds(max(ZERO, balance - debt), card)
    if chosen is AllocationStrategy.HYBRID:
        requested = non_negative_money(hybrid_amount) if hybrid_amount is not None else ZERO
        card = max(ZERO, min(requested, balance))
        return AvailableFunds(max(ZERO, balance - card), card)
    return AvailableFunds(balance, ZERO)


def recommend_strategy(bank_balance: Any, credit_card_debt: Any) -> StrategyRecommendation:
    """Suggest how to split funds between card debt and envelopes."""
    balance = to_money(bank_balance)
    debt = non_negative_money(credit_card_debt)

    if debt <= 0:
        return StrategyRecommendation(AllocationStrategy.ENVELOPES_ONLY, 'No credit card debt to cover')
    if balance >= debt * 2:
        return StrategyRecommendation(
            AllocationStrategy.CREDIT_FIRST,
            'You have enough to fully cover your credit card debt and still fund your envelopes',
        )
    if balance >= debt * Decimal('1.2'):
        return StrategyRecommendation(
            AllocationStrategy.CREDIT_FIRST,
            'Covering your credit card debt will help you avoid interest charges',
        )
    if balance >= debt * Decimal('0.5'):
        share = Decimal(str(get_config_value('engine', 'waterfall', 'hybrid_credit_share', default='0.40')))
        return StrategyRecommendation(
            AllocationStrategy.HYBRID,
            'Split your funds between credit card and essential envelopes',
            suggested_hybrid_amount=(balance * share).quantize(Decimal('1'), rounding=ROUND_HALF_UP),
        )
    return StrategyRecommendation(
        AllocationStrategy.ENVELOPES_ONLY,
        'Focus on essential envelopes first - you can work on the credit card debt over time',
    )
