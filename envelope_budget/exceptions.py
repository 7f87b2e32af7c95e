"""Error types raised by the budget engine.

Every error is a local validation failure.  Legitimate financial states such
as negative available funds or an overdrawn envelope are never reported
through these classes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional


class BudgetEngineError(ValueError):
    """Base class for all engine validation failures."""


class InvalidAmount(BudgetEngineError):
    """Raised for a non-finite amount, or a negative one where positivity is required."""

    def __init__(self, value: Any, reason: str = "amount must be a finite, non-negative number"):
        self.value = value
        super().__init__(f"Invalid amount {value!r}: {reason}")


class InvalidFrequency(BudgetEngineError):
    """Raised for a frequency outside the closed enumeration, or ``none`` where a cadence is required."""

    def __init__(self, value: Any, reason: str = "unrecognised frequency"):
        self.value = value
        super().__init__(f"Invalid frequency {value!r}: {reason}")


class InvalidRecord(BudgetEngineError):
    """Raised when an input record is missing fields or carries malformed values."""


class NoVarianceDetected(BudgetEngineError):
    """Raised when reconciliation is requested for a variance below the tolerance."""


class InvalidReconciliationAction(BudgetEngineError):
    """Raised when an action does not apply to the variance (e.g. reducing on a surplus)."""


class UnbalancedReduction(BudgetEngineError):
    """Raised when proposed reductions do not add up to the shortfall."""

    def __init__(self, expected: Decimal, actual: Decimal):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Reductions total {actual} but the shortfall is {expected}"
        )


class ExceedsEnvelopeAllocation(BudgetEngineError):
    """Raised when a reduction is larger than the envelope's allocation from the source."""

    def __init__(self, envelope_id: str, requested: Decimal, available: Optional[Decimal]):
        self.envelope_id = envelope_id
        self.requested = requested
        self.available = available
        if available is None:
            message = f"Envelope {envelope_id!r} receives no allocation from this income source"
        else:
            message = (
                f"Reduction of {requested} for envelope {envelope_id!r} exceeds "
                f"its allocation of {available}"
            )
        super().__init__(message)
