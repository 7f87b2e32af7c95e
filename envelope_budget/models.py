"""Record types shared by every engine component.

Envelope and income source records are owned by the surrounding
application; the engine only reads them.  Records arrive as loosely shaped
dictionaries (camelCase from the web layer, snake_case from the database),
so this module also provides the boundary parsers that turn them into
closed, validated dataclasses.  Financial fields are never defaulted: a
missing target or an unknown frequency is rejected rather than guessed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Union

from .exceptions import InvalidFrequency, InvalidRecord
from .lib.common.money import ZERO, non_negative_money, sum_money, to_money

DueDate = Union[int, date, None]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Priority(str, Enum):
    ESSENTIAL = 'essential'
    IMPORTANT = 'important'
    DISCRETIONARY = 'discretionary'

    @classmethod
    def parse(cls, value: Any) -> 'Priority':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRecord(f"Unknown priority {value!r}") from None

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.ESSENTIAL: 0,
    Priority.IMPORTANT: 1,
    Priority.DISCRETIONARY: 2,
}


class Subtype(str, Enum):
    BILL = 'bill'
    SPENDING = 'spending'
    SAVINGS = 'savings'
    GOAL = 'goal'
    TRACKING = 'tracking'

    @classmethod
    def parse(cls, value: Any) -> 'Subtype':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRecord(f"Unknown envelope subtype {value!r}") from None


class Frequency(str, Enum):
    WEEKLY = 'weekly'
    FORTNIGHTLY = 'fortnightly'
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    ANNUALLY = 'annually'
    NONE = 'none'

    @classmethod
    def parse(cls, value: Any) -> 'Frequency':
        """Parse a frequency, accepting the legacy ``annual`` spelling.

        Raises:
            InvalidFrequency: For anything outside the enumeration
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidFrequency(value)
        text = value.strip().lower()
        text = _FREQUENCY_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise InvalidFrequency(value) from None

    @property
    def is_recurring(self) -> bool:
        return self is not Frequency.NONE


_FREQUENCY_ALIASES = {'annual': 'annually'}


def require_cadence(value: Any) -> Frequency:
    """Parse ``value`` and reject ``none``, for places that need a real cadence."""
    frequency = Frequency.parse(value)
    if not frequency.is_recurring:
        raise InvalidFrequency(value, "a concrete cadence is required")
    return frequency


class GapStatus(str, Enum):
    ON_TRACK = 'on_track'
    SLIGHT_DEVIATION = 'slight_deviation'
    NEEDS_ATTENTION = 'needs_attention'


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def _coerce_due_date(value: Any) -> DueDate:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidRecord(f"Invalid due date {value!r}")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int):
        day = value
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            day = int(text)
        else:
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                raise InvalidRecord(f"Invalid due date {value!r}") from None
    else:
        raise InvalidRecord(f"Invalid due date {value!r}")
    if not 1 <= day <= 31:
        raise InvalidRecord(f"Due day-of-month must be between 1 and 31, got {day}")
    return day


@dataclass(frozen=True)
class Envelope:
    """One named budget bucket."""

    id: str
    name: str
    priority: Priority
    subtype: Subtype
    target_amount: Decimal
    frequency: Frequency
    due_date: DueDate = None
    current_amount: Decimal = ZERO
    opening_balance: Decimal = ZERO
    per_pay_allocation: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'priority', Priority.parse(self.priority))
        object.__setattr__(self, 'subtype', Subtype.parse(self.subtype))
        object.__setattr__(self, 'frequency', Frequency.parse(self.frequency))
        object.__setattr__(self, 'target_amount', non_negative_money(self.target_amount))
        object.__setattr__(self, 'current_amount', to_money(self.current_amount))
        object.__setattr__(self, 'opening_balance', to_money(self.opening_balance))
        object.__setattr__(self, 'due_date', _coerce_due_date(self.due_date))
        if self.per_pay_allocation is not None:
            object.__setattr__(self, 'per_pay_allocation', non_negative_money(self.per_pay_allocation))

    @property
    def has_schedule(self) -> bool:
        """True when due-date driven calculations apply to this envelope."""
        return self.frequency.is_recurring and self.due_date is not None


@dataclass(frozen=True)
class IncomeSource:
    """One recurring inflow."""

    id: str
    name: str
    typical_amount: Decimal
    frequency: Frequency
    next_pay_date: Optional[date] = None
    is_active: bool = True
    replaced_by_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'typical_amount', non_negative_money(self.typical_amount))
        object.__setattr__(self, 'frequency', require_cadence(self.frequency))
        object.__setattr__(self, 'is_active', _coerce_flag(self.is_active, 'is_active'))
        pay_date = self.next_pay_date
        if isinstance(pay_date, datetime):
            object.__setattr__(self, 'next_pay_date', pay_date.date())
        elif isinstance(pay_date, str):
            try:
                object.__setattr__(self, 'next_pay_date', date.fromisoformat(pay_date[:10]))
            except ValueError:
                raise InvalidRecord(f"Invalid next pay date {pay_date!r}") from None


class AllocationMap(Mapping[str, Mapping[str, Decimal]]):
    """Read-only ``{envelope_id: {income_source_id: amount}}`` relation.

    Amounts are in the receiving income source's own frequency.
    """

    def __init__(self, entries: Optional[Mapping[str, Mapping[str, Any]]] = None):
        data: Dict[str, Dict[str, Decimal]] = {}
        for envelope_id, per_source in (entries or {}).items():
            data[str(envelope_id)] = {
                str(source_id): non_negative_money(amount)
                for source_id, amount in (per_source or {}).items()
            }
        self._data = data

    def __getitem__(self, envelope_id: str) -> Mapping[str, Decimal]:
        return dict(self._data[envelope_id])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"AllocationMap({self._data!r})"

    def amount_for(self, envelope_id: str, income_source_id: str) -> Decimal:
        return self._data.get(envelope_id, {}).get(income_source_id, ZERO)

    def from_source(self, income_source_id: str) -> Dict[str, Decimal]:
        """Envelope ids mapped to the amount each receives from ``income_source_id``."""
        return {
            envelope_id: per_source[income_source_id]
            for envelope_id, per_source in self._data.items()
            if income_source_id in per_source
        }

    def total_for_source(self, income_source_id: str) -> Decimal:
        return sum_money(self.from_source(income_source_id).values())

    def total_for_envelope(self, envelope_id: str) -> Decimal:
        return sum_money(self._data.get(envelope_id, {}).values())


@dataclass(frozen=True)
class GapAnalysisResult:
    envelope_id: str
    expected_balance: Decimal
    actual_balance: Decimal
    gap: Decimal
    status: GapStatus
    gap_ratio: Optional[Decimal] = None

    @property
    def is_ahead(self) -> bool:
        return self.gap > 0


@dataclass(frozen=True)
class IncomeVariance:
    income_source_id: str
    expected_amount: Decimal
    actual_amount: Decimal
    difference: Decimal
    percentage: Optional[Decimal]

    @property
    def variance_type(self) -> str:
        return 'bonus' if self.difference > 0 else 'shortfall'

    @property
    def is_surplus(self) -> bool:
        return self.difference > 0


# ---------------------------------------------------------------------------
# Boundary parsers
# ---------------------------------------------------------------------------


_MISSING = object()


def _field(record: Mapping[str, Any], *names: str, default: Any = _MISSING) -> Any:
    for name in names:
        if name in record:
            return record[name]
    if default is _MISSING:
        raise InvalidRecord(f"Record is missing required field {names[0]!r}")
    return default


_TRUE_STRINGS = {'true', 'yes', '1'}
_FALSE_STRINGS = {'false', 'no', '0'}


def _coerce_flag(value: Any, name: str) -> bool:
    """Accept real booleans, 0/1 and the usual true/false spellings only."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidRecord(f"Field {name!r} must be a boolean, got {value!r}")


def envelope_from_record(record: Mapping[str, Any]) -> Envelope:
    """Build an :class:`Envelope` from a snake_case or camelCase dictionary.

    Args:
        record: Raw envelope record from the application layer

    Returns:
        Validated envelope

    Raises:
        InvalidRecord: Missing identity/priority/subtype fields or bad dates
        InvalidAmount: Missing-but-present-as-null or malformed money values
        InvalidFrequency: Unknown frequency values

    Example:
        >>> env = envelope_from_record({
        ...     'id': 'rent', 'name': 'Rent', 'priority': 'essential',
        ...     'subtype': 'bill', 'targetAmount': '1500', 'frequency': 'monthly',
        ...     'dueDate': 1,
        ... })
        >>> env.target_amount
        Decimal('1500')
    """
    if not isinstance(record, Mapping):
        raise InvalidRecord(f"Envelope record must be a mapping, got {type(record).__name__}")
    return Envelope(
        id=str(_field(record, 'id')),
        name=str(_field(record, 'name')),
        priority=_field(record, 'priority'),
        subtype=_field(record, 'subtype'),
        target_amount=_field(record, 'target_amount', 'targetAmount'),
        frequency=_field(record, 'frequency'),
        due_date=_field(record, 'due_date', 'dueDate', default=None),
        current_amount=_field(record, 'current_amount', 'currentAmount', default=ZERO),
        opening_balance=_field(record, 'opening_balance', 'openingBalance', default=ZERO),
        per_pay_allocation=_field(record, 'per_pay_allocation', 'perPayAllocation', default=None),
    )


def income_source_from_record(record: Mapping[str, Any]) -> IncomeSource:
    """Build an :class:`IncomeSource` from a raw dictionary."""
    if not isinstance(record, Mapping):
        raise InvalidRecord(f"Income source record must be a mapping, got {type(record).__name__}")
    replaced_by = _field(record, 'replaced_by_id', 'replacedById', default=None)
    return IncomeSource(
        id=str(_field(record, 'id')),
        name=str(_field(record, 'name')),
        typical_amount=_field(record, 'typical_amount', 'typicalAmount'),
        frequency=_field(record, 'frequency'),
        next_pay_date=_field(record, 'next_pay_date', 'nextPayDate', default=None),
        is_active=_coerce_flag(_field(record, 'is_active', 'isActive', default=True), 'is_active'),
        replaced_by_id=str(replaced_by) if replaced_by is not None else None,
    )


def allocation_map_from_records(records: Union[Mapping[str, Mapping[str, Any]], Iterable[Mapping[str, Any]]]) -> AllocationMap:
    """Build an :class:`AllocationMap` from a nested mapping or a list of rows.

    Rows use ``envelope_id``/``envelopeId``, ``income_source_id``/
    ``incomeSourceId`` and ``amount``; duplicate pairs are summed.
    """
    if isinstance(records, AllocationMap):
        return records
    if isinstance(records, Mapping):
        return AllocationMap(records)

    nested: Dict[str, Dict[str, Decimal]] = {}
    for row in records:
        envelope_id = str(_field(row, 'envelope_id', 'envelopeId'))
        source_id = str(_field(row, 'income_source_id', 'incomeSourceId'))
        amount = non_negative_money(_field(row, 'amount'))
        per_source = nested.setdefault(envelope_id, {})
        per_source[source_id] = per_source.get(source_id, ZERO) + amount
    return AllocationMap(nested)


def index_by_id(records: Iterable[Any]) -> Dict[str, Any]:
    """Map records to their ``id``; duplicate ids are rejected."""
    indexed: Dict[str, Any] = {}
    for record in records:
        if record.id in indexed:
            raise InvalidRecord(f"Duplicate record id {record.id!r}")
        indexed[record.id] = record
    return indexed

