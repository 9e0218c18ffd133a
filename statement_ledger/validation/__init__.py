"""Row validation package."""

from statement_ledger.validation.validator import ERROR_MESSAGES, RowCheck, RowValidator

__all__ = ["ERROR_MESSAGES", "RowCheck", "RowValidator"]
