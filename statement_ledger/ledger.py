"""
Ledger

The authoritative collection of committed transactions.

The Ledger is an immutable snapshot: every mutation returns a new Ledger
and leaves the receiver untouched. The history manager keeps earlier
snapshots and compares them structurally, so no operation may edit a
transaction in place.
"""

from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from statement_ledger.errors import UnknownTransactionError
from statement_ledger.models.ledger import Transaction
from statement_ledger.parsing.currency import sum_values


class Ledger(BaseModel):
    """Ordered, frozen collection of transactions."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()

    @property
    def count(self) -> int:
        return len(self.transactions)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def require(self, transaction_id: str) -> Transaction:
        transaction = self.get(transaction_id)
        if transaction is None:
            raise UnknownTransactionError(f"Unknown transaction: {transaction_id}")
        return transaction

    def uncategorized(self) -> list[Transaction]:
        return [t for t in self.transactions if t.category_id is None]

    def by_category(self, category_id: str) -> list[Transaction]:
        return [t for t in self.transactions if t.category_id == category_id]

    def by_import_batch(self, batch_id: str) -> list[Transaction]:
        return [t for t in self.transactions if t.import_batch_id == batch_id]

    def all_tags(self) -> list[str]:
        """Every tag in use, sorted."""
        return sorted({tag for t in self.transactions for tag in t.tags})

    def total(self) -> Decimal:
        return sum_values(t.amount for t in self.transactions)

    # =========================================================================
    # Mutations (each returns a new Ledger)
    # =========================================================================

    def _replace(self, transactions: Iterable[Transaction]) -> "Ledger":
        return Ledger(transactions=tuple(transactions))

    def _map(self, ids: set[str], **update) -> "Ledger":
        missing = ids - {t.id for t in self.transactions}
        if missing:
            raise UnknownTransactionError(
                f"Unknown transaction(s): {', '.join(sorted(missing))}"
            )
        return self._replace(
            t.model_copy(update=update) if t.id in ids else t
            for t in self.transactions
        )

    def add_transactions(self, transactions: Iterable[Transaction]) -> "Ledger":
        return self._replace(self.transactions + tuple(transactions))

    def categorize(self, transaction_id: str, category_id: str) -> "Ledger":
        """
        Assign a category to one transaction.

        Raises:
            UnknownTransactionError: If the id is not in the ledger
        """
        return self._map({transaction_id}, category_id=category_id)

    def categorize_many(self, transaction_ids: Iterable[str], category_id: str) -> "Ledger":
        return self._map(set(transaction_ids), category_id=category_id)

    def uncategorize(self, transaction_id: str) -> "Ledger":
        return self._map({transaction_id}, category_id=None)

    def add_tag(self, transaction_id: str, tag: str) -> "Ledger":
        """Add a tag; blank or already present tags leave the ledger equal."""
        current = self.require(transaction_id)
        cleaned = tag.strip()
        if not cleaned or cleaned in current.tags:
            return self
        return self._map({transaction_id}, tags=current.tags + (cleaned,))

    def remove_tag(self, transaction_id: str, tag: str) -> "Ledger":
        current = self.require(transaction_id)
        return self._map(
            {transaction_id},
            tags=tuple(t for t in current.tags if t != tag),
        )

    def remove_transactions(self, transaction_ids: Iterable[str]) -> "Ledger":
        """Remove transactions; unknown ids are ignored."""
        doomed = set(transaction_ids)
        return self._replace(t for t in self.transactions if t.id not in doomed)

    def remove_import_batch(self, batch_id: str) -> "Ledger":
        return self._replace(
            t for t in self.transactions if t.import_batch_id != batch_id
        )
