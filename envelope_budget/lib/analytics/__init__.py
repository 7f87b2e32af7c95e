"""Analytics helpers that turn engine results into pandas DataFrames."""

from .reports import (
    gap_dataframe,
    gap_status_summary,
    priority_totals_dataframe,
    source_breakdown_dataframe,
    waterfall_dataframe,
)

__all__ = [
    'gap_dataframe',
    'gap_status_summary',
    'priority_totals_dataframe',
    'source_breakdown_dataframe',
    'waterfall_dataframe',
]
