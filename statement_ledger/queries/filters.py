"""
Record Filters

A TransactionFilter narrows committed transactions or staged records by
description text, category, tags, date range and value range.

The value range compares either the signed amount or its magnitude,
depending on ValueRangeMode. With SIGNED (the default) an expense of
-150 is below a minimum of 10; with ABSOLUTE it is above it.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from statement_ledger.config import get_settings
from statement_ledger.models.ledger import TextMatchMode, Transaction, ValueRangeMode
from statement_ledger.models.staging import StagingRecord
from statement_ledger.parsing.currency import sum_values
from statement_ledger.parsing.dates import parse_date

Record = TypeVar("Record", Transaction, StagingRecord)


class TransactionFilter(BaseModel):
    """Filter criteria. Unset criteria match everything."""
    model_config = ConfigDict(frozen=True)

    text: str = ""
    match_mode: TextMatchMode = TextMatchMode.CONTAINS
    category_ids: frozenset[str] = frozenset()
    include_uncategorized: bool = False
    tags: frozenset[str] = frozenset()
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    value_min: Optional[Decimal] = None
    value_max: Optional[Decimal] = None
    value_mode: Optional[ValueRangeMode] = Field(
        default=None,
        description="Settings default when None"
    )

    @model_validator(mode='after')
    def check_ranges(self) -> "TransactionFilter":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.value_min is not None
            and self.value_max is not None
            and self.value_min > self.value_max
        ):
            raise ValueError("value_min must not be greater than value_max")
        return self

    @property
    def is_active(self) -> bool:
        return self.active_count > 0

    @property
    def active_count(self) -> int:
        """Number of active filter groups (for filter chips)."""
        groups = (
            bool(self.text),
            bool(self.category_ids) or self.include_uncategorized,
            bool(self.tags),
            self.date_from is not None or self.date_to is not None,
            self.value_min is not None or self.value_max is not None,
        )
        return sum(groups)

    def _resolved_mode(self) -> ValueRangeMode:
        return self.value_mode or get_settings().value_range_mode

    def _matches_text(self, title: str) -> bool:
        if not self.text:
            return True
        search = self.text.lower()
        text = title.lower()
        if self.match_mode == TextMatchMode.EXACT:
            return text == search
        if self.match_mode == TextMatchMode.STARTS_WITH:
            return text.startswith(search)
        if self.match_mode == TextMatchMode.ENDS_WITH:
            return text.endswith(search)
        return search in text

    def _matches_category(self, category_id: Optional[str]) -> bool:
        if not self.category_ids and not self.include_uncategorized:
            return True
        if category_id is None:
            return self.include_uncategorized
        return category_id in self.category_ids

    def _matches_date(self, raw_date: str) -> bool:
        if self.date_from is None and self.date_to is None:
            return True
        parsed = parse_date(raw_date)
        if parsed is None:
            return False
        if self.date_from and parsed < self.date_from:
            return False
        if self.date_to and parsed > self.date_to:
            return False
        return True

    def _matches_value(self, amount: Decimal) -> bool:
        if self.value_min is None and self.value_max is None:
            return True
        value = abs(amount) if self._resolved_mode() == ValueRangeMode.ABSOLUTE else amount
        if self.value_min is not None and value < self.value_min:
            return False
        if self.value_max is not None and value > self.value_max:
            return False
        return True

    def matches(self, record: Union[Transaction, StagingRecord]) -> bool:
        if isinstance(record, StagingRecord):
            title, raw_date = record.raw_title, record.raw_date
        else:
            title, raw_date = record.title, record.date

        if self.tags and not self.tags.intersection(record.tags):
            return False

        return (
            self._matches_text(title)
            and self._matches_category(record.category_id)
            and self._matches_date(raw_date)
            and self._matches_value(record.amount)
        )


def filter_records(records: Iterable[Record], criteria: TransactionFilter) -> list[Record]:
    return [r for r in records if criteria.matches(r)]


def filtered_total(records: Iterable[Union[Transaction, StagingRecord]]) -> Decimal:
    return sum_values(r.amount for r in records)
