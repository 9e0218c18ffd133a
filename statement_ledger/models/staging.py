"""
Staging Models

A StagingRecord is a parsed row that has not been committed to the
ledger yet. It lives only while the user reviews an import and is
discarded on commit or cancel.

CRITICAL: A malformed row is never raised as an exception. It becomes a
record with ``is_valid=False`` and a RowError tag, and the rest of the
batch is parsed normally.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from statement_ledger.models.ledger import CurrencyFormat, new_id, normalize_tags
from statement_ledger.parsing.currency import sum_values


class RowError(str, Enum):
    """Why a staged row cannot be imported."""
    MISSING_DATE = "MissingDate"
    MISSING_TITLE = "MissingTitle"
    INVALID_AMOUNT = "InvalidAmount"


class FieldKind(str, Enum):
    """Logical columns the field detector knows about."""
    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    CATEGORY = "category"
    TAGS = "tags"


class ColumnMap(BaseModel):
    """Column index of each logical field, or None when absent."""
    model_config = ConfigDict(frozen=True)

    date: Optional[int] = Field(default=None, ge=0)
    description: Optional[int] = Field(default=None, ge=0)
    amount: Optional[int] = Field(default=None, ge=0)
    category: Optional[int] = Field(default=None, ge=0)
    tags: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def positional(cls) -> "ColumnMap":
        """Default layout for header-less exports: date, description, amount."""
        return cls(date=0, description=1, amount=2)

    def index_of(self, kind: FieldKind) -> Optional[int]:
        return getattr(self, kind.value)


class StagingRecord(BaseModel):
    """One parsed row awaiting review."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    line_number: int = Field(
        ...,
        ge=1,
        description="1-based position of the row in the raw row set"
    )
    raw_date: str = ""
    raw_title: str = ""
    raw_amount: str = ""
    amount: Decimal = Decimal("0")
    is_valid: bool
    error: Optional[RowError] = None
    category_id: Optional[str] = None
    tags: tuple[str, ...] = ()

    @field_validator('tags', mode='before')
    @classmethod
    def dedupe_tags(cls, v) -> tuple[str, ...]:
        return normalize_tags(v)


class StagingBatch(BaseModel):
    """
    The staged rows of one import plus running aggregates.

    ``valid_count``, ``invalid_count`` and ``total_amount`` are kept in step
    with ``records``; removing a record adjusts them without a rescan.
    """
    model_config = ConfigDict(frozen=True)

    records: tuple[StagingRecord, ...] = ()
    valid_count: int = Field(default=0, ge=0)
    invalid_count: int = Field(default=0, ge=0)
    total_amount: Decimal = Decimal("0")
    currency_format: CurrencyFormat = CurrencyFormat.PT_BR
    has_header: bool = False
    column_map: ColumnMap = Field(default_factory=ColumnMap.positional)

    @property
    def total_rows(self) -> int:
        return len(self.records)

    def get(self, record_id: str) -> Optional[StagingRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def valid_records(self) -> list[StagingRecord]:
        return [r for r in self.records if r.is_valid]

    def invalid_records(self) -> list[StagingRecord]:
        return [r for r in self.records if not r.is_valid]

    def without(self, record_id: str) -> "StagingBatch":
        """Return a batch without ``record_id``; unknown ids return self."""
        removed = self.get(record_id)
        if removed is None:
            return self

        remaining = tuple(r for r in self.records if r.id != record_id)
        if removed.is_valid:
            return self.model_copy(update={
                "records": remaining,
                "valid_count": self.valid_count - 1,
                "total_amount": sum_values((self.total_amount, -removed.amount)),
            })
        return self.model_copy(update={
            "records": remaining,
            "invalid_count": self.invalid_count - 1,
        })
