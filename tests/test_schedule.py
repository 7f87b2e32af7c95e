from datetime import date
from decimal import Decimal

import pytest

from envelope_budget.exceptions import InvalidFrequency
from envelope_budget.lib.budgets.schedule import (
    PaySchedule,
    PayUrgency,
    advance_pay_date,
    envelope_pays_until_due,
    pay_cycles_until_due,
    pays_until_due,
    primary_pay_schedule,
    suggested_opening_balance,
)
from envelope_budget.models import Envelope, IncomeSource

AS_OF = date(2024, 6, 1)
SCHEDULE = PaySchedule(date(2024, 6, 7), 'fortnightly')


def test_advance_pay_date_rolls_forward_whole_cycles():
    assert advance_pay_date(date(2024, 5, 3), 'fortnightly', AS_OF) == date(2024, 6, 14)
    assert advance_pay_date(date(2024, 5, 25), 'weekly', AS_OF) == date(2024, 6, 1)


def test_future_pay_date_is_unchanged():
    assert advance_pay_date(date(2024, 6, 7), 'fortnightly', AS_OF) == date(2024, 6, 7)


def test_monthly_pay_date_does_not_drift():
    assert advance_pay_date(date(2024, 1, 31), 'monthly', date(2024, 3, 15)) == date(2024, 3, 31)


def test_schedule_requires_cadence():
    with pytest.raises(InvalidFrequency):
        PaySchedule(date(2024, 6, 7), 'none')


@pytest.mark.parametrize('due, pays, urgency, text', [
    (date(2024, 5, 30), -1, PayUrgency.OVERDUE, 'Overdue!'),
    (date(2024, 6, 5), 0, PayUrgency.HIGH, 'Due now!'),
    (date(2024, 6, 15), 1, PayUrgency.HIGH, '1 pay!'),
    (date(2024, 6, 30), 2, PayUrgency.MEDIUM, '2 pays'),
    (date(2024, 7, 19), 4, PayUrgency.LOW, '4 pays'),
    (date(2024, 9, 1), 7, PayUrgency.NONE, '7 pays'),
])
def test_unfunded_urgency(due, pays, urgency, text):
    result = pays_until_due(due, SCHEDULE, AS_OF)

    assert result.pays == pays
    assert result.urgency is urgency
    assert result.display_text == text


def test_funded_envelopes_have_no_urgency():
    overdue = pays_until_due(date(2024, 5, 30), SCHEDULE, AS_OF, is_funded=True)
    one_pay = pays_until_due(date(2024, 6, 15), SCHEDULE, AS_OF, is_funded=True)

    assert overdue.is_overdue and overdue.display_text == 'Overdue'
    assert one_pay.urgency is PayUrgency.NONE
    assert one_pay.display_text == '1 pay'
    assert one_pay.days_until_due == 14


def test_stale_schedule_is_rolled_forward():
    stale = PaySchedule(date(2024, 5, 10), 'fortnightly')

    assert pays_until_due(date(2024, 6, 30), stale, AS_OF).pays == 2


def test_envelope_pays_until_due():
    bill = Envelope('water', 'Water', 'essential', 'bill', 90, 'monthly', due_date=30)
    undated = Envelope('fun', 'Fun', 'discretionary', 'spending', 50, 'fortnightly')

    assert envelope_pays_until_due(bill, SCHEDULE, AS_OF).pays == 2
    assert envelope_pays_until_due(undated, SCHEDULE, AS_OF) is None


def test_primary_schedule_uses_soonest_active_source():
    sources = [
        IncomeSource('side', 'Side gig', 500, 'monthly', next_pay_date=date(2024, 5, 20), is_active=False),
        IncomeSource('salary', 'Salary', 3000, 'fortnightly', next_pay_date=date(2024, 5, 24)),
        IncomeSource('contract', 'Contract', 800, 'weekly'),
    ]

    schedule = primary_pay_schedule(sources, AS_OF)

    assert schedule == PaySchedule(date(2024, 6, 7), 'fortnightly')


def test_no_primary_schedule_without_pay_dates():
    assert primary_pay_schedule([IncomeSource('salary', 'Salary', 3000, 'fortnightly')], AS_OF) is None


def test_pay_cycles_until_due():
    assert pay_cycles_until_due(date(2024, 9, 1), 'fortnightly', AS_OF) == 7
    assert pay_cycles_until_due(date(2024, 9, 1), 'monthly', AS_OF) == 4
    assert pay_cycles_until_due(date(2024, 5, 1), 'weekly', AS_OF) == 0


def test_suggested_opening_balance():
    rego = Envelope('rego', 'Car rego', 'essential', 'bill', 780, 'annually', due_date=date(2024, 9, 1))

    assert suggested_opening_balance(rego, 'fortnightly', AS_OF) == Decimal('570.00')


def test_suggested_opening_balance_is_never_negative():
    phone = Envelope('phone', 'Phone', 'essential', 'bill', 100, 'monthly', due_date=30)
    undated = Envelope('fun', 'Fun', 'discretionary', 'spending', 50, 'fortnightly')

    assert suggested_opening_balance(phone, 'fortnightly', AS_OF) == Decimal('0')
    assert suggested_opening_balance(undated, 'fortnightly', AS_OF) == Decimal('0')
