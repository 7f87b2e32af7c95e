"""Budget engine components.

This module provides the zero-based envelope budgeting logic:
- Frequency normalization between recurrence cadences
- Waterfall allocation of available funds across envelopes
- Gap analysis of envelope balances against their schedule
- Income variance detection and reconciliation
- Zero-based balance validation
- Bill urgency counted in paydays
"""

from .frequency import (
    annualize,
    combine_to_pay_cycle,
    frequency_short_label,
    ideal_per_pay,
    normalize,
    occurrences_per_year,
    to_pay_cycle,
)
from .waterfall import (
    AllocationStrategy,
    AllocationSummary,
    AvailableFunds,
    EnvelopeAllocationResult,
    StrategyRecommendation,
    WaterfallResult,
    allocate,
    allocate_today,
    allocation_summary,
    calculate_available_funds,
    cycle_relative_need,
    envelope_tier,
    order_envelopes,
    recommend_strategy,
    tier_name,
)
from .gap_analysis import (
    analyze_gap,
    analyze_gaps,
    analyze_gaps_today,
    classify_gap,
    count_by_status,
    expected_balance,
    filter_by_status,
    gap_label,
    gap_status_symbol,
    gap_status_text,
)
from .variance import (
    PriorityGroup,
    ReconciliationPlan,
    ReductionCandidate,
    VarianceAction,
    detect_source_variance,
    detect_variance,
    group_by_priority,
    plan_one_time_bonus,
    plan_one_time_reduction,
    plan_permanent_change,
    resolve_active_source,
    suggest_reductions,
    suggested_actions,
    validate_reductions,
)
from .balance import (
    BudgetBalance,
    SourceBreakdown,
    all_sources_balanced,
    calculate_unallocated_by_source,
    describe_balance,
    total_envelope_targets,
    total_income,
    validate,
    validate_budget,
)
from .schedule import (
    PaySchedule,
    PaysUntilDue,
    PayUrgency,
    advance_pay_date,
    envelope_pays_until_due,
    pay_cycles_until_due,
    pays_until_due,
    primary_pay_schedule,
    suggested_opening_balance,
)

__all__ = [
    # Frequency
    'annualize',
    'combine_to_pay_cycle',
    'frequency_short_label',
    'ideal_per_pay',
    'normalize',
    'occurrences_per_year',
    'to_pay_cycle',
    # Waterfall
    'AllocationStrategy',
    'AllocationSummary',
    'AvailableFunds',
    'EnvelopeAllocationResult',
    'StrategyRecommendation',
    'WaterfallResult',
    'allocate',
    'allocate_today',
    'allocation_summary',
    'calculate_available_funds',
    'cycle_relative_need',
    'envelope_tier',
    'order_envelopes',
    'recommend_strategy',
    'tier_name',
    # Gap analysis
    'analyze_gap',
    'analyze_gaps',
    'analyze_gaps_today',
    'classify_gap',
    'count_by_status',
    'expected_balance',
    'filter_by_status',
    'gap_label',
    'gap_status_symbol',
    'gap_status_text',
    # Variance
    'PriorityGroup',
    'ReconciliationPlan',
    'ReductionCandidate',
    'VarianceAction',
    'detect_source_variance',
    'detect_variance',
    'group_by_priority',
    'plan_one_time_bonus',
    'plan_one_time_reduction',
    'plan_permanent_change',
    'resolve_active_source',
    'suggest_reductions',
    'suggested_actions',
    'validate_reductions',
    # Balance
    'BudgetBalance',
    'SourceBreakdown',
    'all_sources_balanced',
    'calculate_unallocated_by_source',
    'describe_balance',
    'total_envelope_targets',
    'total_income',
    'validate',
    'validate_budget',
    # Schedule
    'PaySchedule',
    'PaysUntilDue',
    'PayUrgency',
    'advance_pay_date',
    'envelope_pays_until_due',
    'pay_cycles_until_due',
    'pays_until_due',
    'primary_pay_schedule',
    'suggested_opening_balance',
]
