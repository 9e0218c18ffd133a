"""
Stored Transaction Shapes

The first ledger format kept a category *name* on each transaction
(``category: "Mercado"``). The current format keeps a category *id*
(``category_id: "mercado"``) plus tags. Both shapes can be found in a
key-value store, so loading reads them as a tagged union and migrates
every record exactly once, at load time.
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from statement_ledger.models.ledger import LEGACY_CATEGORY_MAP, Transaction


class LegacyStoredTransaction(BaseModel):
    """Format 1: category stored as a display name."""
    model_config = ConfigDict(extra="ignore")

    kind: Literal["legacy"] = "legacy"
    id: str
    date: str
    title: str
    amount: Decimal
    category: Optional[str] = None


class CurrentStoredTransaction(BaseModel):
    """Format 2+: category stored as an id."""
    model_config = ConfigDict(extra="ignore")

    kind: Literal["current"] = "current"
    id: str
    date: str
    title: str
    amount: Decimal
    category_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    import_batch_id: Optional[str] = None


StoredTransaction = Annotated[
    Union[LegacyStoredTransaction, CurrentStoredTransaction],
    Field(discriminator="kind"),
]

_stored_adapter: TypeAdapter = TypeAdapter(StoredTransaction)


def read_stored_transaction(raw: dict) -> Union[LegacyStoredTransaction, CurrentStoredTransaction]:
    """
    Read one raw stored record into its tagged shape.

    Records written before the ``kind`` tag existed are told apart by the
    presence of the old ``category`` key.
    """
    data = dict(raw)
    if "kind" not in data:
        data["kind"] = "legacy" if "category" in data and "category_id" not in data else "current"
    if "categoryId" in data and "category_id" not in data:
        data["category_id"] = data.pop("categoryId")
    if "importId" in data and "import_batch_id" not in data:
        data["import_batch_id"] = data.pop("importId")
    return _stored_adapter.validate_python(data)


def migrate_stored_transaction(
    stored: Union[LegacyStoredTransaction, CurrentStoredTransaction],
) -> Transaction:
    """Turn either stored shape into a current Transaction."""
    if isinstance(stored, LegacyStoredTransaction):
        category_id = LEGACY_CATEGORY_MAP.get(stored.category) if stored.category else None
        return Transaction(
            id=stored.id,
            date=stored.date,
            title=stored.title,
            amount=stored.amount,
            category_id=category_id,
            tags=(),
        )
    return Transaction(
        id=stored.id,
        date=stored.date,
        title=stored.title,
        amount=stored.amount,
        category_id=stored.category_id,
        tags=stored.tags,
        import_batch_id=stored.import_batch_id,
    )


def to_stored(transaction: Transaction) -> dict:
    """Serialize a Transaction in the current stored shape."""
    return CurrentStoredTransaction(
        id=transaction.id,
        date=transaction.date,
        title=transaction.title,
        amount=transaction.amount,
        category_id=transaction.category_id,
        tags=list(transaction.tags),
        import_batch_id=transaction.import_batch_id,
    ).model_dump(mode="json")
