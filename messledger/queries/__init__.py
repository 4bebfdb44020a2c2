"""Reporting queries: month and category filters, share report."""

from messledger.queries.filters import (
    CategorySelection,
    MonthView,
    available_periods,
    chronological,
    filter_by_category,
    filter_by_month,
    month_view,
    most_recent_first,
)
from messledger.queries.report import MonthlyReport, build_report

__all__ = [
    "CategorySelection",
    "MonthView",
    "MonthlyReport",
    "available_periods",
    "build_report",
    "chronological",
    "filter_by_category",
    "filter_by_month",
    "month_view",
    "most_recent_first",
]
