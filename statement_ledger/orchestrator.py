"""
Main Orchestrator for Statement Ledger

This module ties the components together and defines the end-to-end flows:
1. Import (raw rows -> staging batch -> review -> commit -> revert)
2. Workspace (ledger + undo/redo + selection + catalog + rules + limits)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger without an explicit commit
- A failing row source abandons the import; no staging state survives
- Every ledger change goes through the history manager
- Every step is audited

State is caller-owned. A Workspace is an explicit instance; there is no
module-level store.
"""

from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence
from uuid import UUID

import structlog

from statement_ledger.audit import AuditLogger, create_correlation_id
from statement_ledger.categorization import CategoryCatalog, RuleBook
from statement_ledger.errors import LedgerError, ParseAbortError, RowSourceError
from statement_ledger.history import HistoryManager, ImportHistory
from statement_ledger.ledger import Ledger
from statement_ledger.limits import LimitEvaluator
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.models.ledger import (
    CurrencyFormat,
    ImportBatch,
    ImportStatus,
    LimitAlert,
    LimitCheck,
    Transaction,
    new_id,
)
from statement_ledger.models.staging import StagingBatch
from statement_ledger.parsing.currency import format_currency, sum_values
from statement_ledger.parsing.dates import to_iso_date
from statement_ledger.parsing.rows import FieldDetector, RawRow, RowParser
from statement_ledger.queries.aggregation import category_totals, percentages
from statement_ledger.selection.controller import SelectionController, SelectionListener
from statement_ledger.services.storage.repositories import ColumnPreferenceRepository
from statement_ledger.validation import ERROR_MESSAGES

logger = structlog.get_logger(__name__)


class RowSource(Protocol):
    """
    Supplies the raw rows of one statement export.

    CSV splitting and file I/O happen on the source side. A source that
    cannot deliver its rows raises RowSourceError.
    """

    def read_rows(self) -> Sequence[RawRow]:
        ...


class ImportFlow:
    """
    Orchestrates one import.

    Flow:
    1. Load   -> read raw rows once from the source and parse them
    2. Review -> reparse with another currency format, drop records
    3. Commit -> append the valid (optionally selected) records as one batch
    4. Revert -> remove exactly the transactions of a committed batch

    The raw rows are kept until commit or cancel, so changing the
    currency format never re-reads the source.
    """

    def __init__(
        self,
        catalog: Optional[CategoryCatalog] = None,
        rule_book: Optional[RuleBook] = None,
        import_history: Optional[ImportHistory] = None,
        column_preferences: Optional[ColumnPreferenceRepository] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._catalog = catalog
        self._rule_book = rule_book
        self._import_history = import_history
        self._column_preferences = column_preferences
        self._audit_logger = audit_logger

        self._raw_rows: Optional[tuple[tuple[str, ...], ...]] = None
        self._batch: Optional[StagingBatch] = None
        self._correlation_id: Optional[UUID] = None

    @property
    def batch(self) -> Optional[StagingBatch]:
        return self._batch

    @property
    def is_loaded(self) -> bool:
        return self._batch is not None

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    # =========================================================================
    # Load & review
    # =========================================================================

    def load(
        self,
        source: RowSource,
        currency_format: Optional[CurrencyFormat] = None,
    ) -> StagingBatch:
        """
        Read and parse the rows of ``source``.

        Raises:
            ParseAbortError: If the source failed; any previous staging
                state is discarded
        """
        self.cancel()
        correlation_id = create_correlation_id()

        try:
            rows = source.read_rows()
        except (RowSourceError, OSError) as e:
            logger.error("row_source_failed", error=str(e))
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.import_aborted(str(e), correlation_id=correlation_id)
                )
            raise ParseAbortError("Import abandoned: the rows could not be read", str(e)) from e

        return self._start(rows, currency_format, correlation_id)

    def load_rows(
        self,
        rows: Iterable[RawRow],
        currency_format: Optional[CurrencyFormat] = None,
    ) -> StagingBatch:
        """Parse already materialized rows."""
        self.cancel()
        return self._start(rows, currency_format, create_correlation_id())

    def _start(
        self,
        rows: Iterable[RawRow],
        currency_format: Optional[CurrencyFormat],
        correlation_id: UUID,
    ) -> StagingBatch:
        self._raw_rows = tuple(tuple(row) for row in rows)
        self._correlation_id = correlation_id
        return self._parse(currency_format, reparsed=False)

    def reparse(self, currency_format: CurrencyFormat) -> StagingBatch:
        """
        Parse the retained raw rows again with another format.

        Raises:
            LedgerError: If nothing is loaded
        """
        if self._raw_rows is None:
            raise LedgerError("Nothing to reparse: no import is loaded")
        return self._parse(currency_format, reparsed=True)

    def remove_record(self, record_id: str) -> StagingBatch:
        if self._batch is None:
            raise LedgerError("No import is loaded")
        self._batch = self._batch.without(record_id)
        return self._batch

    def cancel(self) -> None:
        self._raw_rows = None
        self._batch = None
        self._correlation_id = None

    def remember_columns(self) -> None:
        """Save the detected header mapping as column preferences."""
        if not self._column_preferences or not self._batch or not self._batch.has_header:
            return
        mapping = FieldDetector().header_mapping(self._raw_rows[0], self._batch.column_map)
        saved = self._column_preferences.load()
        saved.update(mapping)
        self._column_preferences.save(saved)

    def _parse(self, currency_format: Optional[CurrencyFormat], reparsed: bool) -> StagingBatch:
        preferences = self._column_preferences.load() if self._column_preferences else None
        parser = RowParser(
            currency_format=currency_format,
            catalog=self._catalog,
            rules=self._rule_book.rules if self._rule_book else (),
            detector=FieldDetector(preferences),
        )
        self._batch = parser.parse(self._raw_rows)

        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.import_parsed(
                    total_rows=self._batch.total_rows,
                    valid_rows=self._batch.valid_count,
                    invalid_rows=self._batch.invalid_count,
                    currency_format=parser.currency_format.value,
                    correlation_id=self._correlation_id,
                    reparsed=reparsed,
                )
            )
        return self._batch

    # =========================================================================
    # Commit & revert
    # =========================================================================

    def commit(
        self,
        ledger: Ledger,
        filename: str = "",
        selected_ids: Optional[Iterable[str]] = None,
    ) -> tuple[Ledger, ImportBatch]:
        """
        Append the staged records to ``ledger`` as one import batch.

        Only valid records are imported. A non-empty ``selected_ids``
        restricts the import to those records.

        Returns:
            (new_ledger, batch). Status is ``partial`` when invalid rows
            were skipped and ``error`` when nothing could be imported (the
            ledger is then returned unchanged).

        Raises:
            LedgerError: If nothing is loaded
        """
        if self._batch is None:
            raise LedgerError("No import is loaded")

        staged = self._batch
        selected = set(selected_ids or ())
        records = [
            r for r in staged.valid_records()
            if not selected or r.id in selected
        ]

        batch_id = new_id()
        transactions = [
            Transaction(
                date=to_iso_date(r.raw_date),
                title=r.raw_title,
                amount=r.amount,
                category_id=r.category_id,
                tags=r.tags,
                import_batch_id=batch_id,
            )
            for r in records
        ]

        errors = tuple(
            f"Line {r.line_number}: {ERROR_MESSAGES[r.error]}"
            for r in staged.invalid_records()
            if r.error is not None
        )
        if not transactions:
            status = ImportStatus.ERROR
        elif staged.invalid_count:
            status = ImportStatus.PARTIAL
        else:
            status = ImportStatus.SUCCESS

        batch = ImportBatch(
            id=batch_id,
            filename=filename,
            item_count=len(transactions),
            total_value=sum_values(t.amount for t in transactions),
            status=status,
            errors=errors,
            transaction_ids=tuple(t.id for t in transactions),
        )

        new_ledger = ledger.add_transactions(transactions) if transactions else ledger

        if self._import_history is not None:
            self._import_history.add(batch)

        logger.info(
            "import_committed",
            batch_id=batch.id,
            item_count=batch.item_count,
            status=status.value,
        )
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.import_committed(
                    batch_id=batch.id,
                    filename=filename,
                    item_count=batch.item_count,
                    total_value=format_currency(batch.total_value, staged.currency_format),
                    status=status.value,
                    correlation_id=self._correlation_id,
                )
            )

        self.cancel()
        return new_ledger, batch

    def revert(self, ledger: Ledger, batch: ImportBatch) -> Ledger:
        """Remove exactly the transactions of ``batch`` and forget the batch."""
        new_ledger = ledger.remove_transactions(batch.transaction_ids)
        removed = ledger.count - new_ledger.count

        if self._import_history is not None:
            self._import_history.delete(batch.id)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.import_reverted(batch.id, removed))
        return new_ledger


class Workspace:
    """
    Caller-owned state container.

    Wires the ledger to its undo/redo history and selection, together
    with the category catalog, rule book, limits and import history.
    Every ledger change goes through ``apply``.
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        catalog: Optional[CategoryCatalog] = None,
        rule_book: Optional[RuleBook] = None,
        limits: Optional[LimitEvaluator] = None,
        import_history: Optional[ImportHistory] = None,
        column_preferences: Optional[ColumnPreferenceRepository] = None,
        audit_logger: Optional[AuditLogger] = None,
        history_max_size: Optional[int] = None,
        on_selection_change: Optional[SelectionListener] = None,
    ):
        initial = ledger if ledger is not None else Ledger()

        self.catalog = catalog if catalog is not None else CategoryCatalog(audit_logger=audit_logger)
        self.rule_book = rule_book if rule_book is not None else RuleBook()
        self.limits = limits if limits is not None else LimitEvaluator(audit_logger=audit_logger)
        self.import_history = import_history if import_history is not None else ImportHistory()
        self.history: HistoryManager[Ledger] = HistoryManager(initial, max_size=history_max_size)
        self.selection = SelectionController(
            (t.id for t in initial.transactions),
            on_selection_change=on_selection_change,
        )
        self._column_preferences = column_preferences
        self._audit_logger = audit_logger

    @property
    def ledger(self) -> Ledger:
        return self.history.present

    # -------------------------------------------------------------------------
    # Ledger changes
    # -------------------------------------------------------------------------

    def apply(self, ledger: Ledger) -> bool:
        """Make ``ledger`` the current state; False when nothing changed."""
        changed = self.history.push_state(ledger)
        if changed:
            self._sync_selection()
        return changed

    def undo(self) -> Optional[Ledger]:
        ledger = self.history.undo()
        if ledger is not None:
            self._sync_selection()
        return ledger

    def redo(self) -> Optional[Ledger]:
        ledger = self.history.redo()
        if ledger is not None:
            self._sync_selection()
        return ledger

    def _sync_selection(self) -> None:
        self.selection.set_items(t.id for t in self.ledger.transactions)

    def categorize_selected(self, category_id: str) -> int:
        """
        Assign ``category_id`` to every selected transaction still in the ledger.

        Returns:
            Number of transactions categorized; the selection is cleared
        """
        self.catalog.require(category_id)
        current_ids = {t.id for t in self.ledger.transactions}
        targets = [i for i in self.selection.selected if i in current_ids]
        if targets:
            self.apply(self.ledger.categorize_many(targets, category_id))
        self.selection.clear()
        return len(targets)

    def remove_selected(self) -> int:
        targets = list(self.selection.selected)
        before = self.ledger.count
        self.apply(self.ledger.remove_transactions(targets))
        self.selection.clear()
        return before - self.ledger.count

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def new_import(self) -> ImportFlow:
        return ImportFlow(
            catalog=self.catalog,
            rule_book=self.rule_book,
            import_history=self.import_history,
            column_preferences=self._column_preferences,
            audit_logger=self._audit_logger,
        )

    def commit_import(
        self,
        flow: ImportFlow,
        filename: str = "",
        selected_ids: Optional[Iterable[str]] = None,
    ) -> ImportBatch:
        ledger, batch = flow.commit(self.ledger, filename, selected_ids)
        self.apply(ledger)
        return batch

    def revert_import(self, batch_id: str) -> bool:
        batch = self.import_history.get(batch_id)
        if batch is None:
            return False
        self.apply(self.new_import().revert(self.ledger, batch))
        return True

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def category_totals(self) -> dict[str, Decimal]:
        return category_totals(self.ledger.transactions, self.catalog.categories)

    def category_percentages(self) -> dict[str, Decimal]:
        return percentages(self.category_totals())

    def limit_checks(self) -> list[LimitCheck]:
        return self.limits.evaluate(self.category_totals())

    def raise_limit_alerts(self) -> list[LimitAlert]:
        names = {c.id: c.name for c in self.catalog.categories}
        return self.limits.raise_alerts(self.category_totals(), names)
