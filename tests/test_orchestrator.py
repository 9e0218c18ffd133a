"""
Flow tests for import/commit/revert and the workspace.

All collaborators are in-memory; row sources are small fakes.
"""

import pytest
from decimal import Decimal

from statement_ledger.audit import AuditLogger
from statement_ledger.errors import LedgerError, ParseAbortError, RowSourceError, UnknownCategoryError
from statement_ledger.history import ImportHistory
from statement_ledger.ledger import Ledger
from statement_ledger.models import AuditEventType, CurrencyFormat, FieldKind, ImportStatus, LimitStatus, Transaction
from statement_ledger.orchestrator import ImportFlow, Workspace
from statement_ledger.services.storage import InMemoryAuditStorage, InMemoryKeyValueStore
from statement_ledger.services.storage.repositories import ColumnPreferenceRepository


STATEMENT_ROWS = [
    ["Data", "Descrição", "Valor"],
    ["2023-01-01", "Supermarket", "-150,00"],
    ["05/01/2023", "Salary", "5.000,00"],
    ["2023-01-07", "", "-10,00"],
]


class ListSource:
    def __init__(self, rows):
        self.rows = rows
        self.reads = 0

    def read_rows(self):
        self.reads += 1
        return self.rows


class BrokenSource:
    def read_rows(self):
        raise RowSourceError("unterminated quote at line 3")


@pytest.fixture
def storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def flow(storage) -> ImportFlow:
    return ImportFlow(import_history=ImportHistory(), audit_logger=AuditLogger(storage))


class TestImportLoad:
    """Tests for loading and reviewing an import."""

    def test_load_parses_rows(self, flow):
        """Test that a source is read once and staged."""
        source = ListSource(STATEMENT_ROWS)
        batch = flow.load(source, CurrencyFormat.PT_BR)
        assert source.reads == 1
        assert batch.has_header is True
        assert batch.valid_count == 2
        assert batch.invalid_count == 1
        assert flow.is_loaded is True
        assert flow.correlation_id is not None

    def test_broken_source_aborts(self, flow, storage):
        """Test that a failing source raises once and keeps no staging state."""
        flow.load(ListSource(STATEMENT_ROWS))
        with pytest.raises(ParseAbortError) as exc_info:
            flow.load(BrokenSource())
        assert "unterminated quote" in exc_info.value.source_error
        assert flow.is_loaded is False
        assert flow.batch is None
        events = [e.event_type for e in storage.get_recent_events()]
        assert events[0] == AuditEventType.IMPORT_ABORTED

    def test_reparse_uses_retained_rows(self, flow, storage):
        """Test that changing the format never re-reads the source."""
        source = ListSource([["2023-01-01", "A", "1.234"]])
        first = flow.load(source, CurrencyFormat.PT_BR)
        assert first.records[0].amount == Decimal("1234")
        second = flow.reparse(CurrencyFormat.EN_US)
        assert second.records[0].amount == Decimal("1.234")
        assert source.reads == 1
        assert storage.get_recent_events()[0].event_type == AuditEventType.IMPORT_REPARSED

    def test_reparse_without_load_raises(self, flow):
        """Test that reparse needs a loaded import."""
        with pytest.raises(LedgerError):
            flow.reparse(CurrencyFormat.EN_US)

    def test_remove_record(self, flow):
        """Test dropping a staged record before commit."""
        batch = flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        smaller = flow.remove_record(batch.records[0].id)
        assert smaller.valid_count == 1
        assert smaller.total_amount == Decimal("5000")

    def test_cancel(self, flow):
        """Test that cancel drops all staging state."""
        flow.load_rows(STATEMENT_ROWS)
        flow.cancel()
        assert flow.is_loaded is False
        with pytest.raises(LedgerError):
            flow.commit(Ledger())


class TestImportCommit:
    """Tests for committing and reverting an import."""

    def test_commit_partial(self, flow):
        """Test that invalid rows are skipped and reported."""
        flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        ledger, batch = flow.commit(Ledger(), filename="jan.csv")
        assert batch.status == ImportStatus.PARTIAL
        assert batch.item_count == 2
        assert batch.total_value == Decimal("4850")
        assert batch.errors == ("Line 4: Description is missing",)
        assert [t.date for t in ledger.transactions] == ["2023-01-01", "2023-01-05"]
        assert all(t.import_batch_id == batch.id for t in ledger.transactions)
        assert flow.is_loaded is False

    def test_commit_success(self, flow):
        """Test a clean import."""
        flow.load_rows(STATEMENT_ROWS[:3], CurrencyFormat.PT_BR)
        _, batch = flow.commit(Ledger())
        assert batch.status == ImportStatus.SUCCESS

    def test_commit_nothing_valid_is_error(self, flow):
        """Test that an import without valid rows leaves the ledger alone."""
        existing = Ledger(transactions=(
            Transaction(id="t0", date="2022-12-31", title="Old", amount=Decimal("1")),
        ))
        flow.load_rows([["", "", ""]])
        ledger, batch = flow.commit(existing)
        assert batch.status == ImportStatus.ERROR
        assert batch.item_count == 0
        assert ledger == existing

    def test_commit_only_selected(self, flow):
        """Test that a selection restricts the committed records."""
        batch = flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        salary = batch.records[1]
        ledger, committed = flow.commit(Ledger(), selected_ids=[salary.id])
        assert [t.title for t in ledger.transactions] == ["Salary"]
        assert committed.item_count == 1

    def test_commit_records_history(self, flow):
        """Test that the batch lands in the import history."""
        history = ImportHistory()
        flow = ImportFlow(import_history=history)
        flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        _, batch = flow.commit(Ledger())
        assert history.get(batch.id) == batch

    def test_revert_removes_exactly_the_batch(self, flow, storage):
        """Test that revert removes the batch's transactions and nothing else."""
        manual = Transaction(id="m1", date="2023-01-02", title="Manual", amount=Decimal("-5"))
        start = Ledger(transactions=(manual,))
        flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        ledger, batch = flow.commit(start)
        assert ledger.count == 3

        reverted = flow.revert(ledger, batch)
        assert reverted == start
        event = storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.IMPORT_REVERTED
        assert event.details == {"removed_count": 2}


class TestColumnPreferences:
    """Tests for remembered header mappings."""

    def test_remembered_columns_map_unknown_headers(self):
        """Test that a remembered mapping is used by the next import."""
        store = InMemoryKeyValueStore()
        prefs = ColumnPreferenceRepository(store)
        prefs.save({"quando": FieldKind.DATE})

        flow = ImportFlow(column_preferences=prefs)
        batch = flow.load_rows([
            ["Quando", "Descrição", "Valor"],
            ["2023-01-01", "A", "1,00"],
        ])
        assert batch.has_header is True
        assert batch.column_map.date == 0

        flow.remember_columns()
        assert prefs.load() == {
            "quando": FieldKind.DATE,
            "descrição": FieldKind.DESCRIPTION,
            "valor": FieldKind.AMOUNT,
        }


class TestWorkspace:
    """Tests for the caller-owned workspace."""

    def _workspace(self) -> Workspace:
        workspace = Workspace()
        flow = workspace.new_import()
        flow.load_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        workspace.commit_import(flow, "jan.csv")
        return workspace

    def test_commit_is_undoable(self):
        """Test that an import is one undo step."""
        workspace = self._workspace()
        assert workspace.ledger.count == 2
        workspace.undo()
        assert workspace.ledger.count == 0
        workspace.redo()
        assert workspace.ledger.count == 2

    def test_categorize_selected(self):
        """Test bulk categorization of the selection."""
        workspace = self._workspace()
        ids = [t.id for t in workspace.ledger.transactions]
        workspace.selection.click(ids[0], ids)
        assert workspace.categorize_selected("mercado") == 1
        assert workspace.ledger.get(ids[0]).category_id == "mercado"
        assert workspace.selection.has_selection is False

        workspace.undo()
        assert workspace.ledger.get(ids[0]).category_id is None

    def test_categorize_selected_unknown_category(self):
        """Test that an unknown category is rejected."""
        workspace = self._workspace()
        with pytest.raises(UnknownCategoryError):
            workspace.categorize_selected("ghost")

    def test_remove_selected(self):
        """Test bulk removal of the selection."""
        workspace = self._workspace()
        workspace.selection.select_all()
        assert workspace.remove_selected() == 2
        assert workspace.ledger.count == 0

    def test_revert_import(self):
        """Test reverting a committed batch through the import history."""
        workspace = self._workspace()
        batch = workspace.import_history.batches[0]
        assert workspace.revert_import(batch.id) is True
        assert workspace.ledger.count == 0
        assert workspace.revert_import(batch.id) is False

    def test_derived_views(self):
        """Test totals, percentages and limit checks from the present ledger."""
        workspace = self._workspace()
        ids = [t.id for t in workspace.ledger.transactions]
        workspace.selection.ctrl_click(ids[0])
        workspace.categorize_selected("mercado")
        workspace.limits.set_limit("mercado", Decimal("160"))

        assert workspace.category_totals()["mercado"] == Decimal("-150")
        assert workspace.category_percentages()["mercado"] == Decimal("100.00")
        checks = workspace.limit_checks()
        assert checks[0].status == LimitStatus.WARNING
        alerts = workspace.raise_limit_alerts()
        assert alerts[0].message.startswith("Mercado: 94%")

    def test_injected_empty_collaborators_are_kept(self):
        """Test that empty injected collaborators are used, not replaced."""
        history = ImportHistory()
        workspace = Workspace(import_history=history)
        assert workspace.import_history is history


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
