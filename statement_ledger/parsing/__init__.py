"""
Parsing package: currency normalizer and date helpers.

The row parser lives in ``statement_ledger.parsing.rows``.
"""

from statement_ledger.parsing.currency import (
    ParsedAmount,
    detect_column_format,
    detect_currency_format,
    format_currency,
    parse_currency,
    sum_values,
    to_decimal,
)
from statement_ledger.parsing.dates import month_key, parse_date, to_iso_date

__all__ = [
    "ParsedAmount",
    "detect_column_format",
    "detect_currency_format",
    "format_currency",
    "month_key",
    "parse_currency",
    "parse_date",
    "sum_values",
    "to_decimal",
    "to_iso_date",
]
