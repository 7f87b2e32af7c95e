"""Tabular reports built from engine results.

Engine results carry exact Decimals; these helpers flatten them into
pandas DataFrames (float columns) for display, export and charting.
"""

from __future__ import annotations

from typing import Iterable, List

import numpy as np
import pandas as pd

from ...models import GapAnalysisResult, GapStatus, Priority
from ..budgets.balance import SourceBreakdown
from ..budgets.gap_analysis import gap_label, gap_status_text
from ..budgets.waterfall import WaterfallResult

WATERFALL_COLUMNS = [
    'Envelope ID', 'Envelope', 'Priority', 'Subtype', 'Tier', 'Tier Name',
    'Suggested', 'Allocated', 'Shortfall', 'Funded %',
]

GAP_COLUMNS = [
    'Envelope ID', 'Expected', 'Actual', 'Gap', 'Gap %', 'Status', 'Status Label', 'Direction',
]

SOURCE_COLUMNS = ['Source ID', 'Source', 'Amount', 'Allocated', 'Remaining', 'Balanced']


def waterfall_dataframe(result: WaterfallResult) -> pd.DataFrame:
    """One row per envelope in waterfall order.

    ``Funded %`` is NaN for envelopes that needed nothing.

    Example:
        >>> df = waterfall_dataframe(allocate(500, envelopes, 'fortnightly', as_of=today))
        >>> df[['Envelope', 'Allocated']].head()
    """
    if not result.results:
        return pd.DataFrame(columns=WATERFALL_COLUMNS)

    df = pd.DataFrame([
        {
            'Envelope ID': row.envelope_id,
            'Envelope': row.envelope_name,
            'Priority': row.priority.value,
            'Subtype': row.subtype.value,
            'Tier': row.tier,
            'Tier Name': row.tier_name,
            'Suggested': float(row.suggested),
            'Allocated': float(row.allocated),
            'Shortfall': float(row.shortfall),
        }
        for row in result.results
    ])
    suggested = df['Suggested'].replace(0, np.nan)
    df['Funded %'] = (df['Allocated'] / suggested * 100.0).round(1)
    return df[WATERFALL_COLUMNS]


def priority_totals_dataframe(result: WaterfallResult) -> pd.DataFrame:
    """Suggested and allocated totals per priority, most important first.

    Every priority appears, with zeros when it has no envelopes.
    """
    totals = result.by_priority
    rows = []
    for priority in sorted(Priority, key=lambda p: p.rank):
        members = [row for row in result.results if row.priority is priority]
        rows.append({
            'Priority': priority.value,
            'Envelopes': len(members),
            'Suggested': float(sum(row.suggested for row in members)),
            'Allocated': float(totals[priority]),
        })
    df = pd.DataFrame(rows)
    df['Shortfall'] = (df['Suggested'] - df['Allocated']).clip(lower=0)
    return df


def gap_dataframe(results: Iterable[GapAnalysisResult]) -> pd.DataFrame:
    """One row per gap result, in input order."""
    rows = [
        {
            'Envelope ID': result.envelope_id,
            'Expected': float(result.expected_balance),
            'Actual': float(result.actual_balance),
            'Gap': float(result.gap),
            'Gap %': np.nan if result.gap_ratio is None else round(float(result.gap_ratio) * 100.0, 1),
            'Status': result.status.value,
            'Status Label': gap_status_text(result.status),
            'Direction': gap_label(result),
        }
        for result in results
    ]
    if not rows:
        return pd.DataFrame(columns=GAP_COLUMNS)
    return pd.DataFrame(rows)[GAP_COLUMNS]


def gap_status_summary(results: Iterable[GapAnalysisResult]) -> pd.DataFrame:
    """Count and total gap per status; every status has a row."""
    df = gap_dataframe(results)
    statuses: List[str] = [status.value for status in GapStatus]
    if df.empty:
        summary = pd.DataFrame({'Status': statuses, 'Envelopes': 0, 'Total Gap': 0.0})
    else:
        grouped = df.groupby('Status')['Gap'].agg(['count', 'sum']).reindex(statuses, fill_value=0)
        summary = pd.DataFrame({
            'Status': statuses,
            'Envelopes': grouped['count'].astype(int).to_numpy(),
            'Total Gap': grouped['sum'].astype(float).to_numpy(),
        })
    summary['Status Label'] = summary['Status'].map(gap_status_text)
    return summary


def source_breakdown_dataframe(breakdowns: Iterable[SourceBreakdown]) -> pd.DataFrame:
    rows = [
        {
            'Source ID': breakdown.source_id,
            'Source': breakdown.name,
            'Amount': float(breakdown.amount),
            'Allocated': float(breakdown.allocated),
            'Remaining': float(breakdown.remaining),
            'Balanced': breakdown.is_balanced,
        }
        for breakdown in breakdowns
    ]
    if not rows:
        return pd.DataFrame(columns=SOURCE_COLUMNS)
    return pd.DataFrame(rows)[SOURCE_COLUMNS]
