"""Plotly visualisation helpers for engine results.

Each function accepts an engine result (or a list of them), flattens it
with :mod:`envelope_budget.lib.analytics.reports` and returns a
`plotly.graph_objects.Figure`.  Empty inputs produce an empty figure
titled "No data to display" so callers can render unconditionally.
"""

from __future__ import annotations

from typing import Iterable

import plotly.express as px
import plotly.graph_objects as go

from .lib.analytics.reports import gap_status_summary, source_breakdown_dataframe, waterfall_dataframe
from .lib.budgets.balance import SourceBreakdown
from .lib.budgets.waterfall import WaterfallResult
from .models import GapAnalysisResult

STATUS_COLOURS = {
    'on_track': '#2ca02c',
    'slight_deviation': '#ffbf00',
    'needs_attention': '#d62728',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_waterfall_chart(result: WaterfallResult, title: str | None = None) -> go.Figure:
    """Grouped bars of suggested vs allocated amounts per envelope.

    Parameters
    ----------
    result : WaterfallResult
        Output of :func:`envelope_budget.lib.budgets.waterfall.allocate`.
    title : str, optional
        Chart title.  Defaults to a summary of the remaining funds.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart in waterfall order.
    """
    df = waterfall_dataframe(result)
    if df.empty:
        return _empty_figure()
    long = df.melt(
        id_vars=['Envelope', 'Tier Name'],
        value_vars=['Suggested', 'Allocated'],
        var_name='Amount Type',
        value_name='Amount',
    )
    fig = px.bar(
        long,
        x='Envelope',
        y='Amount',
        color='Amount Type',
        barmode='group',
        hover_data=['Tier Name'],
    )
    fig.update_layout(
        title=title or f"Waterfall allocation ({float(result.remaining):,.2f} remaining)",
        xaxis_title="Envelope",
        yaxis_title="Amount",
    )
    return fig


def create_gap_status_chart(results: Iterable[GapAnalysisResult], title: str | None = None) -> go.Figure:
    """Bar chart of envelope counts per gap status.

    Parameters
    ----------
    results : iterable of GapAnalysisResult
        Gap analysis results.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        One bar per status, coloured green/amber/red.
    """
    summary = gap_status_summary(results)
    if summary['Envelopes'].sum() == 0:
        return _empty_figure()
    fig = go.Figure(
        go.Bar(
            x=summary['Status Label'],
            y=summary['Envelopes'],
            marker_color=[STATUS_COLOURS.get(status, '#7f7f7f') for status in summary['Status']],
            customdata=summary['Total Gap'],
            hovertemplate="%{x}: %{y} envelopes<br>Total gap %{customdata:,.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        title=title or "Envelope health",
        xaxis_title="Status",
        yaxis_title="Envelopes",
    )
    return fig


def create_source_breakdown_chart(breakdowns: Iterable[SourceBreakdown], title: str | None = None) -> go.Figure:
    """Stacked bars of allocated and remaining income per source.

    Overspent sources show a negative ``Remaining`` segment.
    """
    df = source_breakdown_dataframe(breakdowns)
    if df.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(name='Allocated', x=df['Source'], y=df['Allocated']))
    fig.add_trace(go.Bar(name='Remaining', x=df['Source'], y=df['Remaining']))
    fig.update_layout(
        barmode='relative',
        title=title or "Income allocation by source",
        xaxis_title="Income source",
        yaxis_title="Amount",
    )
    return fig
