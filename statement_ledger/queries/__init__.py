"""Queries package: aggregation and filtering over ledger snapshots."""

from statement_ledger.queries.aggregation import (
    PeriodComparison,
    PeriodMetrics,
    available_months,
    calculate_average,
    calculate_total,
    category_totals,
    compare_periods,
    count_by_category,
    percentage_delta,
    percentages,
)
from statement_ledger.queries.filters import TransactionFilter, filter_records, filtered_total

__all__ = [
    "PeriodComparison",
    "PeriodMetrics",
    "TransactionFilter",
    "available_months",
    "calculate_average",
    "calculate_total",
    "category_totals",
    "compare_periods",
    "count_by_category",
    "filter_records",
    "filtered_total",
    "percentage_delta",
    "percentages",
]
