"""Gap analysis: is an envelope on the trajectory it should be on?

The expected balance grows linearly from the opening balance at the start
of the funding cycle to ``opening + target`` on the due date.  The gap is
the live balance minus that expectation, and its size relative to the
target decides the health bucket.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ...config import GapThresholds, get_epsilon, get_gap_thresholds, get_labels
from ...cycles import as_date, cycle_window
from ...models import Envelope, GapAnalysisResult, GapStatus
from ..common.money import ZERO, quantize_cents

logger = logging.getLogger(__name__)


def expected_balance(envelope: Envelope, as_of: date) -> Decimal:
    """Balance ``envelope`` should hold at ``as_of``.

    Envelopes without a schedule are expected to hold whatever they hold,
    so their current amount is returned, matching :func:`analyze_gap`.
    """
    window = cycle_window(envelope, as_date(as_of))
    if window is None:
        return envelope.current_amount
    progress = window.progress(as_date(as_of))
    return quantize_cents(envelope.opening_balance + envelope.target_amount * progress)


def classify_gap(
    gap: Decimal,
    target_amount: Decimal,
    thresholds: Optional[GapThresholds] = None,
    epsilon: Optional[Decimal] = None,
) -> GapStatus:
    """Map a gap to a health bucket.

    Anything at or ahead of schedule is on track.  Behind schedule, the
    ratio ``gap / target`` is compared with the attention ratio (``-20%``
    by default): above it is a slight deviation, at or below it needs
    attention.  A zero target falls back to a fixed absolute band.
    """
    thresholds = thresholds or get_gap_thresholds()
    epsilon = get_epsilon() if epsilon is None else epsilon

    if abs(gap) < epsilon or gap >= 0:
        return GapStatus.ON_TRACK

    if target_amount > 0:
        if gap / target_amount > thresholds.attention_ratio:
            return GapStatus.SLIGHT_DEVIATION
        return GapStatus.NEEDS_ATTENTION

    if gap > -thresholds.absolute_band:
        return GapStatus.SLIGHT_DEVIATION
    return GapStatus.NEEDS_ATTENTION


def analyze_gap(envelope: Envelope, as_of: date) -> GapAnalysisResult:
    """Compare ``envelope``'s live balance with where it should be at ``as_of``.

    Args:
        envelope: Envelope to analyse
        as_of: Reference date; must be supplied explicitly

    Returns:
        GapAnalysisResult with expected/actual balance, gap and status

    Example:
        >>> rent = Envelope('rent', 'Rent', 'essential', 'bill', 400, 'monthly',
        ...                 due_date=date(2024, 7, 1), current_amount=150)
        >>> analyze_gap(rent, date(2024, 6, 16)).status
        <GapStatus.SLIGHT_DEVIATION: 'slight_deviation'>
    """
    actual = envelope.current_amount
    if not envelope.has_schedule:
        return GapAnalysisResult(
            envelope_id=envelope.id,
            expected_balance=expected_balance(envelope, as_of),
            actual_balance=actual,
            gap=ZERO,
            status=GapStatus.ON_TRACK,
        )

    expected = expected_balance(envelope, as_of)
    gap = quantize_cents(actual - expected)
    ratio = gap / envelope.target_amount if envelope.target_amount > 0 else None
    status = classify_gap(gap, envelope.target_amount)
    logger.debug("Envelope %s expected %s, gap %s -> %s", envelope.id, expected, gap, status.value)
    return GapAnalysisResult(
        envelope_id=envelope.id,
        expected_balance=expected,
        actual_balance=actual,
        gap=gap,
        status=status,
        gap_ratio=ratio,
    )


def gap_label(result: GapAnalysisResult, thresholds: Optional[GapThresholds] = None) -> str:
    """Direction label for display: ``surplus``, ``on_schedule`` or ``attention``.

    ``surplus`` needs the gap to reach the on-track ratio (``+5%``) so that
    a few cents ahead still reads as on schedule.
    """
    thresholds = thresholds or get_gap_thresholds()
    if result.gap < 0 and result.status is not GapStatus.ON_TRACK:
        return 'attention'
    if result.gap_ratio is not None and result.gap_ratio >= thresholds.on_track_ratio:
        return 'surplus'
    if result.gap_ratio is None and result.gap >= thresholds.absolute_band:
        return 'surplus'
    return 'on_schedule'


def analyze_gaps(envelopes: Iterable[Envelope], as_of: date) -> List[GapAnalysisResult]:
    """Run :func:`analyze_gap` over ``envelopes`` in input order."""
    return [analyze_gap(envelope, as_of) for envelope in envelopes]


def analyze_gaps_today(envelopes: Iterable[Envelope]) -> List[GapAnalysisResult]:
    return analyze_gaps(envelopes, date.today())


def filter_by_status(results: Iterable[GapAnalysisResult], status: Any) -> List[GapAnalysisResult]:
    wanted = GapStatus(status)
    return [result for result in results if result.status is wanted]


def count_by_status(results: Iterable[GapAnalysisResult]) -> Dict[GapStatus, int]:
    """Number of results in each bucket; every bucket is present."""
    counts = Counter(result.status for result in results)
    return {status: counts.get(status, 0) for status in GapStatus}


def gap_status_text(status: Any) -> str:
    labels = get_labels('gap_analysis', 'status_labels')
    value = GapStatus(status).value
    return labels.get(value, value.replace('_', ' ').capitalize())


def gap_status_symbol(status: Any) -> str:
    return get_labels('gap_analysis', 'status_symbols').get(GapStatus(status).value, '')
