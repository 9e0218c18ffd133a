"""Import history: the newest-first log of import batches."""

from typing import Optional, Sequence

from statement_ledger.config import get_settings
from statement_ledger.models.ledger import ImportBatch, ImportStatus


class ImportHistory:
    """
    Newest-first list of import batches, capped at ``max_size``.

    The oldest batch is dropped when a new one pushes the list over the cap.
    """

    def __init__(
        self,
        batches: Optional[Sequence[ImportBatch]] = None,
        max_size: Optional[int] = None,
    ):
        self._max_size = max_size or get_settings().import_history_max_size
        self._batches: tuple[ImportBatch, ...] = tuple(batches or ())[:self._max_size]

    @property
    def batches(self) -> tuple[ImportBatch, ...]:
        return self._batches

    def __len__(self) -> int:
        return len(self._batches)

    def add(self, batch: ImportBatch) -> ImportBatch:
        self._batches = ((batch,) + self._batches)[:self._max_size]
        return batch

    def update_status(
        self,
        batch_id: str,
        status: ImportStatus,
        errors: Optional[Sequence[str]] = None,
    ) -> Optional[ImportBatch]:
        """Set the status (and optionally the errors) of a batch; None if unknown."""
        current = self.get(batch_id)
        if current is None:
            return None
        update: dict = {"status": status}
        if errors is not None:
            update["errors"] = tuple(errors)
        updated = current.model_copy(update=update)
        self._batches = tuple(updated if b.id == batch_id else b for b in self._batches)
        return updated

    def delete(self, batch_id: str) -> bool:
        remaining = tuple(b for b in self._batches if b.id != batch_id)
        deleted = len(remaining) != len(self._batches)
        self._batches = remaining
        return deleted

    def clear(self) -> None:
        self._batches = ()

    def get(self, batch_id: str) -> Optional[ImportBatch]:
        for batch in self._batches:
            if batch.id == batch_id:
                return batch
        return None

    def recent(self, limit: Optional[int] = None) -> list[ImportBatch]:
        return list(self._batches[:limit or get_settings().recent_imports_limit])

    def by_status(self, status: ImportStatus) -> list[ImportBatch]:
        return [b for b in self._batches if b.status == status]
