"""Aggregation, console summary and delimited export of search results."""

from .aggregator import (
    RepositoryGroup,
    SearchSummary,
    aggregate_results,
    render_summary,
)
from .csv_export import HEADER, escape_csv_field, export_results, format_csv_row

__all__ = [
    "RepositoryGroup",
    "SearchSummary",
    "aggregate_results",
    "render_summary",
    "HEADER",
    "escape_csv_field",
    "export_results",
    "format_csv_row",
]
