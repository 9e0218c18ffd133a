"""History package: undo/redo snapshots and the import batch log."""

from statement_ledger.history.imports import ImportHistory
from statement_ledger.history.manager import HistoryManager

__all__ = ["HistoryManager", "ImportHistory"]
