"""Income variance detection and reconciliation.

When a pay arrives that differs from the income source's typical amount,
the household either treats it as a one-off (a bonus parked in a surplus
envelope, or a shortfall taken out of chosen envelopes) or as a permanent
change to the income.  This module detects the variance, lists the valid
actions, suggests and validates shortfall reductions, and builds the
resulting plan.  Nothing is applied here; the caller persists the plan the
user confirms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...config import VarianceThresholds, get_epsilon, get_labels, get_reduction_tolerance
from ...exceptions import (
    ExceedsEnvelopeAllocation,
    InvalidReconciliationAction,
    InvalidRecord,
    NoVarianceDetected,
    UnbalancedReduction,
)
from ...models import AllocationMap, Envelope, IncomeSource, IncomeVariance, Priority
from ..common.formatting import format_currency
from ..common.money import non_negative_money, sum_money

logger = logging.getLogger(__name__)

REDUCTION_ORDER: Tuple[Priority, ...] = (
    Priority.DISCRETIONARY,
    Priority.IMPORTANT,
    Priority.ESSENTIAL,
)

DEFAULT_PRIORITY_LABELS = {
    'discretionary': 'Flexible',
    'important': 'Important',
    'essential': 'Essential (last resort)',
}

ONE_TIME = 'one_time'
PERMANENT_CHANGE = 'permanent_change'


@dataclass(frozen=True)
class VarianceAction:
    id: str
    label: str
    description: str
    kind: str


@dataclass(frozen=True)
class ReductionCandidate:
    envelope: Envelope
    allocation_from_source: Decimal


@dataclass(frozen=True)
class PriorityGroup:
    priority: Priority
    label: str
    envelopes: Tuple[ReductionCandidate, ...]

    @property
    def total_allocation(self) -> Decimal:
        return sum_money(candidate.allocation_from_source for candidate in self.envelopes)


@dataclass(frozen=True)
class ReconciliationPlan:
    """Outcome of a chosen variance action.

    ``adjustments`` maps envelope ids to signed one-time balance changes;
    ``new_typical_amount`` is set for permanent income changes.
    """
    action: str
    income_source_id: str
    adjustments: Dict[str, Decimal] = field(default_factory=dict)
    new_typical_amount: Optional[Decimal] = None


def detect_variance(
    expected: Any,
    actual: Any,
    income_source_id: str,
    *,
    epsilon: Optional[Decimal] = None,
    thresholds: Optional[VarianceThresholds] = None,
) -> Optional[IncomeVariance]:
    """Compare expected and received income for one source.

    Args:
        expected: Typical amount per the source's own frequency
        actual: Amount actually received this cycle
        income_source_id: Source being evaluated
        epsilon: Differences smaller than this are not a variance
            (defaults to the configured currency tolerance)
        thresholds: Optional significance thresholds; when given, both the
            percentage and the absolute difference must be reached

    Returns:
        IncomeVariance, or ``None`` when there is no variance

    Raises:
        InvalidAmount: For negative or non-finite amounts

    Example:
        >>> variance = detect_variance(3000, 3300, 'salary')
        >>> variance.difference, variance.percentage
        (Decimal('300'), Decimal('0.1'))
    """
    expected_amount = non_negative_money(expected)
    actual_amount = non_negative_money(actual)
    epsilon = get_epsilon() if epsilon is None else epsilon

    difference = actual_amount - expected_amount
    if abs(difference) < epsilon:
        return None

    percentage = difference / expected_amount if expected_amount > 0 else None

    if thresholds is not None:
        if abs(difference) < thresholds.absolute:
            return None
        if percentage is not None and abs(percentage) < thresholds.percentage:
            return None

    logger.debug(
        "Income source %s varied by %s (expected %s, received %s)",
        income_source_id, difference, expected_amount, actual_amount,
    )
    return IncomeVariance(
        income_source_id=income_source_id,
        expected_amount=expected_amount,
        actual_amount=actual_amount,
        difference=difference,
        percentage=percentage,
    )


def detect_source_variance(
    source: IncomeSource,
    actual: Any,
    *,
    thresholds: Optional[VarianceThresholds] = None,
) -> Optional[IncomeVariance]:
    """:func:`detect_variance` against ``source.typical_amount``."""
    return detect_variance(source.typical_amount, actual, source.id, thresholds=thresholds)


def _require_variance(variance: Optional[IncomeVariance]) -> IncomeVariance:
    if variance is None or abs(variance.difference) < get_epsilon():
        raise NoVarianceDetected("No income variance to reconcile")
    return variance


def suggested_actions(variance: IncomeVariance) -> List[VarianceAction]:
    """Menu of valid actions for ``variance``; nothing is applied."""
    variance = _require_variance(variance)
    new_amount = format_currency(variance.actual_amount)
    permanent_description = f"Update income to {new_amount} and review the budget"

    if variance.is_surplus:
        return [
            VarianceAction(
                'one_time_bonus',
                'One-time bonus',
                f"Add {format_currency(variance.difference)} to the surplus envelope for later allocation",
                ONE_TIME,
            ),
            VarianceAction('permanent_increase', 'My pay has permanently changed', permanent_description, PERMANENT_CHANGE),
        ]
    return [
        VarianceAction(
            'one_time_reduction',
            'One-time reduction',
            f"Choose which envelopes to reduce by {format_currency(-variance.difference)} this cycle",
            ONE_TIME,
        ),
        VarianceAction('permanent_decrease', 'My pay has permanently changed', permanent_description, PERMANENT_CHANGE),
    ]


def group_by_priority(
    envelopes: Iterable[Envelope],
    allocations: AllocationMap,
    income_source_id: str,
) -> List[PriorityGroup]:
    """Envelopes funded by ``income_source_id``, bucketed for shortfall reduction.

    Groups run discretionary → important → essential so the least critical
    envelopes are offered first.  Within a group the envelope with the
    largest allocation from the source comes first.  Envelopes with no
    allocation from the source, and empty groups, are left out.
    """
    labels = {**DEFAULT_PRIORITY_LABELS, **get_labels('reconciliation', 'priority_labels')}
    buckets: Dict[Priority, List[ReductionCandidate]] = {priority: [] for priority in REDUCTION_ORDER}

    for envelope in envelopes:
        amount = allocations.amount_for(envelope.id, income_source_id)
        if amount > 0:
            buckets[envelope.priority].append(ReductionCandidate(envelope, amount))

    groups = []
    for priority in REDUCTION_ORDER:
        candidates = sorted(
            buckets[priority],
            key=lambda c: (-c.allocation_from_source, c.envelope.name, c.envelope.id),
        )
        if candidates:
            groups.append(PriorityGroup(priority, labels[priority.value], tuple(candidates)))
    return groups


def suggest_reductions(variance: IncomeVariance, groups: Sequence[PriorityGroup]) -> Dict[str, Decimal]:
    """Greedy reduction proposal covering the shortfall in group order.

    Each envelope gives up at most its allocation from the source.  When
    the allocations cannot cover the whole shortfall the proposal is
    partial, and :func:`validate_reductions` will reject it unchanged.
    """
    variance = _require_variance(variance)
    if variance.is_surplus:
        raise InvalidReconciliationAction("A surplus has no shortfall to reduce")

    outstanding = -variance.difference
    proposal: Dict[str, Decimal] = {}
    for group in groups:
        for candidate in group.envelopes:
            if outstanding <= 0:
                return proposal
            take = min(outstanding, candidate.allocation_from_source)
            proposal[candidate.envelope.id] = take
            outstanding -= take
    if outstanding > 0:
        logger.debug("Allocations leave %s of the shortfall uncovered", outstanding)
    return proposal


def validate_reductions(
    variance: Optional[IncomeVariance],
    reductions: Mapping[str, Any],
    allocations: AllocationMap,
) -> Dict[str, Decimal]:
    """Check proposed one-time reductions against the shortfall.

    Args:
        variance: Detected shortfall variance
        reductions: Envelope ids mapped to the amount to take out
        allocations: Current allocation map (bounds each reduction)

    Returns:
        The reductions as Decimals, zero entries dropped

    Raises:
        NoVarianceDetected: No variance, or one below the tolerance
        InvalidReconciliationAction: The variance is a surplus
        InvalidAmount: A reduction is negative or not a number
        ExceedsEnvelopeAllocation: A reduction exceeds the envelope's
            allocation from the income source
        UnbalancedReduction: The reductions do not sum to the shortfall
    """
    variance = _require_variance(variance)
    if variance.is_surplus:
        raise InvalidReconciliationAction("One-time reductions only apply to a shortfall")

    source_id = variance.income_source_id
    cleaned: Dict[str, Decimal] = {}
    for envelope_id, raw_amount in reductions.items():
        amount = non_negative_money(raw_amount)
        if amount == 0:
            continue
        available = allocations.amount_for(envelope_id, source_id)
        if available <= 0:
            logger.warning("Rejected reduction for %s: no allocation from %s", envelope_id, source_id)
            raise ExceedsEnvelopeAllocation(envelope_id, amount, None)
        if amount > available:
            logger.warning("Rejected reduction for %s: %s exceeds %s", envelope_id, amount, available)
            raise ExceedsEnvelopeAllocation(envelope_id, amount, available)
        cleaned[envelope_id] = amount

    shortfall = -variance.difference
    total = sum_money(cleaned.values())
    if abs(total - shortfall) > get_reduction_tolerance():
        logger.warning("Rejected reductions totalling %s against a shortfall of %s", total, shortfall)
        raise UnbalancedReduction(shortfall, total)
    return cleaned


def plan_one_time_bonus(variance: IncomeVariance, surplus_envelope_id: str) -> ReconciliationPlan:
    """Route the whole surplus into the holding envelope."""
    variance = _require_variance(variance)
    if not variance.is_surplus:
        raise InvalidReconciliationAction("A shortfall cannot be treated as a bonus")
    if not surplus_envelope_id:
        raise InvalidRecord("A surplus envelope is required for a one-time bonus")
    return ReconciliationPlan(
        action='one_time_bonus',
        income_source_id=variance.income_source_id,
        adjustments={surplus_envelope_id: variance.difference},
    )


def plan_one_time_reduction(
    variance: IncomeVariance,
    reductions: Mapping[str, Any],
    allocations: AllocationMap,
) -> ReconciliationPlan:
    """Validate ``reductions`` and express them as negative adjustments."""
    cleaned = validate_reductions(variance, reductions, allocations)
    return ReconciliationPlan(
        action='one_time_reduction',
        income_source_id=variance.income_source_id,
        adjustments={envelope_id: -amount for envelope_id, amount in cleaned.items()},
    )


def plan_permanent_change(variance: IncomeVariance) -> ReconciliationPlan:
    """Adopt the received amount as the source's new typical amount."""
    variance = _require_variance(variance)
    return ReconciliationPlan(
        action='permanent_increase' if variance.is_surplus else 'permanent_decrease',
        income_source_id=variance.income_source_id,
        new_typical_amount=variance.actual_amount,
    )


def resolve_active_source(sources: Iterable[IncomeSource], source_id: str) -> IncomeSource:
    """Follow ``replaced_by_id`` links from ``source_id`` to the current source.

    Raises:
        InvalidRecord: Unknown ids or a replacement cycle
    """
    by_id = {source.id: source for source in sources}
    if source_id not in by_id:
        raise InvalidRecord(f"Unknown income source {source_id!r}")

    seen = set()
    current = by_id[source_id]
    while current.replaced_by_id:
        seen.add(current.id)
        successor_id = current.replaced_by_id
        if successor_id in seen:
            raise InvalidRecord(f"Income source replacement cycle through {successor_id!r}")
        if successor_id not in by_id:
            raise InvalidRecord(f"Income source {current.id!r} is replaced by unknown source {successor_id!r}")
        current = by_id[successor_id]
    return current
