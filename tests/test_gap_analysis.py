from datetime import date
from decimal import Decimal

import pytest

from envelope_budget.lib.budgets.gap_analysis import (
    analyze_gap,
    analyze_gaps,
    classify_gap,
    count_by_status,
    expected_balance,
    filter_by_status,
    gap_label,
    gap_status_symbol,
    gap_status_text,
)
from envelope_budget.models import Envelope, GapStatus

MID_JUNE = date(2024, 6, 16)
SEVERITY = {GapStatus.ON_TRACK: 0, GapStatus.SLIGHT_DEVIATION: 1, GapStatus.NEEDS_ATTENTION: 2}


def _rent(current, opening=0, target=400):
    return Envelope(
        'rent', 'Rent', 'essential', 'bill', target, 'monthly',
        due_date=date(2024, 7, 1), current_amount=current, opening_balance=opening,
    )


def test_halfway_through_cycle_slightly_behind():
    result = analyze_gap(_rent(150), MID_JUNE)

    assert result.expected_balance == Decimal('200.00')
    assert result.gap == Decimal('-50.00')
    assert result.status is GapStatus.SLIGHT_DEVIATION
    assert result.gap_ratio == Decimal('-0.125')


def test_well_behind_needs_attention():
    result = analyze_gap(_rent(100), MID_JUNE)

    assert result.gap == Decimal('-100.00')
    assert result.status is GapStatus.NEEDS_ATTENTION


def test_ahead_of_schedule_is_on_track():
    result = analyze_gap(_rent(260), MID_JUNE)

    assert result.is_ahead
    assert result.status is GapStatus.ON_TRACK


def test_opening_balance_shifts_expectation():
    result = analyze_gap(_rent(250, opening=50), MID_JUNE)

    assert result.expected_balance == Decimal('250.00')
    assert result.gap == Decimal('0.00')
    assert result.status is GapStatus.ON_TRACK


def test_day_of_month_due_date_resolves_forward():
    env = Envelope('phone', 'Phone', 'essential', 'bill', 70, 'monthly', due_date=1, current_amount=35)

    assert expected_balance(env, MID_JUNE) == Decimal('35.00')


def test_after_due_date_full_target_expected():
    env = _rent(400)

    assert expected_balance(env, date(2024, 7, 1)) == Decimal('400.00')


def test_envelope_without_schedule_is_on_track():
    env = Envelope('fun', 'Fun', 'discretionary', 'spending', 100, 'fortnightly', current_amount=-20)
    result = analyze_gap(env, MID_JUNE)

    assert result.status is GapStatus.ON_TRACK
    assert result.gap == Decimal('0')
    assert result.actual_balance == Decimal('-20')


def test_negative_balance_is_a_valid_state():
    result = analyze_gap(_rent(-30), MID_JUNE)

    assert result.actual_balance == Decimal('-30')
    assert result.status is GapStatus.NEEDS_ATTENTION


def test_increasing_balance_never_worsens_status():
    previous = None
    for current in range(-100, 450, 10):
        severity = SEVERITY[analyze_gap(_rent(current), MID_JUNE).status]
        if previous is not None:
            assert severity <= previous
        previous = severity


def test_zero_target_uses_absolute_band():
    assert classify_gap(Decimal('-3'), Decimal('0')) is GapStatus.SLIGHT_DEVIATION
    assert classify_gap(Decimal('-5'), Decimal('0')) is GapStatus.NEEDS_ATTENTION


def test_gap_within_epsilon_is_on_track():
    assert classify_gap(Decimal('-0.005'), Decimal('400')) is GapStatus.ON_TRACK


@pytest.mark.parametrize('current, label', [(100, 'attention'), (205, 'on_schedule'), (230, 'surplus')])
def test_gap_label(current, label):
    assert gap_label(analyze_gap(_rent(current), MID_JUNE)) == label


def test_status_helpers():
    results = analyze_gaps([_rent(150), _rent(100), _rent(300)], MID_JUNE)
    counts = count_by_status(results)

    assert counts == {
        GapStatus.ON_TRACK: 1,
        GapStatus.SLIGHT_DEVIATION: 1,
        GapStatus.NEEDS_ATTENTION: 1,
    }
    assert len(filter_by_status(results, 'needs_attention')) == 1
    assert count_by_status([])[GapStatus.ON_TRACK] == 0


def test_status_text_and_symbols():
    assert gap_status_text('slight_deviation') == 'Slight deviation'
    assert gap_status_symbol(GapStatus.ON_TRACK) == '🟢'


def test_expected_balance_never_decreases_toward_due_date():
    env = _rent(0, opening=25)
    previous = None
    for day in range(1, 31):
        current = expected_balance(env, date(2024, 6, day))
        if previous is not None:
            assert current >= previous
        previous = current
    assert expected_balance(env, date(2024, 7, 1)) == Decimal('425.00')


def test_before_cycle_start_expects_opening_balance():
    env = Envelope(
        'rego', 'Rego', 'essential', 'bill', 400, 'monthly',
        due_date=date(2024, 9, 1), current_amount=50, opening_balance=50,
    )
    result = analyze_gap(env, MID_JUNE)

    assert result.expected_balance == Decimal('50')
    assert result.gap == Decimal('0.00')
    assert result.status is GapStatus.ON_TRACK


def test_exactly_twenty_percent_behind_needs_attention():
    result = analyze_gap(_rent(120), MID_JUNE)

    assert result.gap == Decimal('-80.00')
    assert result.status is GapStatus.NEEDS_ATTENTION


def test_unscheduled_expected_balance_matches_analysis():
    env = Envelope('fun', 'Fun', 'discretionary', 'spending', 100, 'fortnightly', current_amount=42, opening_balance=10)

    assert expected_balance(env, MID_JUNE) == analyze_gap(env, MID_JUNE).expected_balance == Decimal('42')


def test_gap_analysis_is_idempotent():
    envelopes = [_rent(150), _rent(100)]

    assert analyze_gaps(envelopes, MID_JUNE) == analyze_gaps(envelopes, MID_JUNE)
