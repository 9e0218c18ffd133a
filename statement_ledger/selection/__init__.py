"""Selection package."""

from statement_ledger.selection.controller import SelectionController

__all__ = ["SelectionController"]
