"""
Classified Transaction Export

Renders the categorized part of a ledger as JSON or CSV text for the
caller to save. Uncategorized transactions are left out.

JSON records keep the stored camelCase keys and add ``categoryName``.
CSV columns: ``id,date,title,amount,categoryId,categoryName,tags`` with
tags joined by ``;``.
"""

import csv
import io
import json
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from statement_ledger.categorization.catalog import CategoryCatalog
from statement_ledger.ledger import Ledger
from statement_ledger.models.ledger import Transaction

logger = structlog.get_logger(__name__)

CSV_COLUMNS = ("id", "date", "title", "amount", "categoryId", "categoryName", "tags")
TAG_SEPARATOR = ";"


class ExportedTransaction(BaseModel):
    """One categorized transaction as it appears in an export."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    date: str
    title: str
    amount: Decimal
    category_id: str = Field(..., alias="categoryId")
    category_name: Optional[str] = Field(None, alias="categoryName")
    tags: list[str] = Field(default_factory=list)
    import_batch_id: Optional[str] = Field(None, alias="importId")

    @field_serializer('amount', when_used='json')
    def amount_as_number(self, v: Decimal) -> float:
        return float(v)

    @classmethod
    def from_transaction(cls, t: Transaction, catalog: CategoryCatalog) -> "ExportedTransaction":
        category = catalog.get(t.category_id)
        return cls(
            id=t.id,
            date=t.date,
            title=t.title,
            amount=t.amount,
            category_id=t.category_id,
            category_name=category.name if category is not None else None,
            tags=list(t.tags),
            import_batch_id=t.import_batch_id,
        )


def classified_transactions(ledger: Ledger, catalog: CategoryCatalog) -> list[ExportedTransaction]:
    """Categorized transactions in ledger order."""
    return [
        ExportedTransaction.from_transaction(t, catalog)
        for t in ledger.transactions
        if t.is_categorized
    ]


def export_json(ledger: Ledger, catalog: CategoryCatalog) -> str:
    """
    Categorized transactions as an indented JSON array.

    An id whose category is gone from the catalog gets ``categoryName: null``.
    """
    records = classified_transactions(ledger, catalog)
    logger.info("ledger_exported", format="json", count=len(records))
    return json.dumps(
        [r.model_dump(mode="json", by_alias=True) for r in records],
        indent=2,
        ensure_ascii=False,
    )


def export_csv(ledger: Ledger, catalog: CategoryCatalog) -> str:
    """Categorized transactions as CSV with a header row."""
    records = classified_transactions(ledger, catalog)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in records:
        writer.writerow([
            r.id,
            r.date,
            r.title,
            str(r.amount),
            r.category_id,
            r.category_name or "",
            TAG_SEPARATOR.join(r.tags),
        ])

    logger.info("ledger_exported", format="csv", count=len(records))
    return buffer.getvalue()
