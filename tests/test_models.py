from datetime import date, datetime
from decimal import Decimal

import pytest

from envelope_budget.cycles import cycle_start, cycle_window, resolve_due_date
from envelope_budget.exceptions import InvalidAmount, InvalidFrequency, InvalidRecord
from envelope_budget.lib.common import format_currency, format_percentage, format_signed_currency, to_money
from envelope_budget.models import (
    AllocationMap,
    Envelope,
    Frequency,
    allocation_map_from_records,
    envelope_from_record,
    income_source_from_record,
    index_by_id,
)


def _record(**overrides):
    record = {
        'id': 'rent',
        'name': 'Rent',
        'priority': 'essential',
        'subtype': 'bill',
        'targetAmount': '1500',
        'frequency': 'monthly',
        'dueDate': 1,
    }
    record.update(overrides)
    return record


def test_envelope_from_camel_case_record():
    env = envelope_from_record(_record(currentAmount=250.5))

    assert env.target_amount == Decimal('1500')
    assert env.current_amount == Decimal('250.5')
    assert env.frequency is Frequency.MONTHLY
    assert env.due_date == 1
    assert env.has_schedule


def test_envelope_from_snake_case_record_with_iso_due_date():
    record = _record(dueDate=None, due_date='2024-07-01T00:00:00', target_amount=10)
    del record['targetAmount']

    env = envelope_from_record(record)

    assert env.due_date == date(2024, 7, 1)
    assert env.target_amount == Decimal('10')


def test_missing_target_rejected():
    record = _record()
    del record['targetAmount']

    with pytest.raises(InvalidRecord):
        envelope_from_record(record)


@pytest.mark.parametrize('overrides, error', [
    ({'frequency': 'biweekly'}, InvalidFrequency),
    ({'priority': 'critical'}, InvalidRecord),
    ({'subtype': 'loan'}, InvalidRecord),
    ({'dueDate': 32}, InvalidRecord),
    ({'targetAmount': '-5'}, InvalidAmount),
    ({'targetAmount': None}, InvalidAmount),
])
def test_malformed_records_rejected(overrides, error):
    with pytest.raises(error):
        envelope_from_record(_record(**overrides))


def test_income_source_requires_cadence():
    with pytest.raises(InvalidFrequency):
        income_source_from_record({'id': 's', 'name': 'S', 'typicalAmount': 100, 'frequency': 'none'})


def test_income_source_parses_pay_date():
    source = income_source_from_record({
        'id': 's', 'name': 'S', 'typicalAmount': 100, 'frequency': 'weekly',
        'nextPayDate': '2024-06-07', 'isActive': False,
    })

    assert source.next_pay_date == date(2024, 6, 7)
    assert not source.is_active


def test_allocation_rows_are_summed():
    allocations = allocation_map_from_records([
        {'envelopeId': 'rent', 'incomeSourceId': 'salary', 'amount': 700},
        {'envelope_id': 'rent', 'income_source_id': 'salary', 'amount': 800},
        {'envelopeId': 'rent', 'incomeSourceId': 'side', 'amount': 100},
    ])

    assert allocations.amount_for('rent', 'salary') == Decimal('1500')
    assert allocations.total_for_envelope('rent') == Decimal('1600')
    assert allocations.from_source('side') == {'rent': Decimal('100')}
    assert allocations.amount_for('dining', 'salary') == Decimal('0')


def test_allocation_map_rejects_negative_amounts():
    with pytest.raises(InvalidAmount):
        AllocationMap({'rent': {'salary': -1}})


def test_index_by_id_rejects_duplicates():
    env = envelope_from_record(_record())

    with pytest.raises(InvalidRecord):
        index_by_id([env, env])


@pytest.mark.parametrize('value', [float('nan'), float('inf'), True, None, 'abc', [1]])
def test_to_money_rejects_non_numbers(value):
    with pytest.raises(InvalidAmount):
        to_money(value)


def test_to_money_converts_floats_exactly():
    assert to_money(0.1) == Decimal('0.1')


def test_resolve_due_date():
    assert resolve_due_date(15, date(2024, 6, 20)) == date(2024, 7, 15)
    assert resolve_due_date(15, date(2024, 6, 15)) == date(2024, 6, 15)
    assert resolve_due_date(31, date(2024, 2, 10)) == date(2024, 2, 29)
    assert resolve_due_date(5, date(2024, 12, 20)) == date(2025, 1, 5)
    assert resolve_due_date(None, date(2024, 1, 1)) is None


def test_cycle_start_uses_calendar_months():
    assert cycle_start(date(2024, 3, 31), Frequency.MONTHLY) == date(2024, 2, 29)
    assert cycle_start(date(2024, 7, 1), Frequency.QUARTERLY) == date(2024, 4, 1)
    assert cycle_start(date(2024, 6, 14), Frequency.FORTNIGHTLY) == date(2024, 5, 31)


def test_cycle_window_accepts_datetime():
    env = Envelope('w', 'Weekly', 'essential', 'bill', 70, 'weekly', due_date=date(2024, 6, 10))
    window = cycle_window(env, datetime(2024, 6, 6, 18, 30))

    assert window.start == date(2024, 6, 3)
    assert window.progress(date(2024, 6, 6)) == Decimal(3) / Decimal(7)


def test_formatting():
    assert format_currency(Decimal('1234.5')) == '$1,234.50'
    assert format_currency(-50) == '-$50.00'
    assert format_signed_currency(Decimal('300')) == '+$300.00'
    assert format_percentage(Decimal('0.1')) == '10.0%'
    assert format_percentage(None) == 'n/a'


@pytest.mark.parametrize('raw, expected', [(False, False), ('false', False), ('No', False), (0, False), ('TRUE', True), (1, True)])
def test_income_source_active_flag_parsing(raw, expected):
    source = income_source_from_record({'id': 's', 'name': 'S', 'typicalAmount': 100, 'frequency': 'weekly', 'isActive': raw})

    assert source.is_active is expected


@pytest.mark.parametrize('raw', ['maybe', '', None, 2, 'inactive'])
def test_income_source_ambiguous_active_flag_rejected(raw):
    with pytest.raises(InvalidRecord):
        income_source_from_record({'id': 's', 'name': 'S', 'typicalAmount': 100, 'frequency': 'weekly', 'isActive': raw})
