"""
Error Taxonomy

Row-level problems are not exceptions: they are RowError tags on staged
records (see models.staging). A refused category deletion is a ``False``
return value. The exceptions below cover the cases that must reach the
caller.
"""


class LedgerError(Exception):
    """Base exception for ledger core errors."""
    pass


class RowSourceError(LedgerError):
    """Raised by a row source that could not deliver its rows."""
    pass


class ParseAbortError(LedgerError):
    """
    The whole import was abandoned because the row source failed.

    No staging state is kept. Raised once per aborted import.
    """

    def __init__(self, message: str, source_error: str = ""):
        self.source_error = source_error
        super().__init__(message)


class SyncFailure(LedgerError):
    """
    Opaque failure of the persistence collaborator.

    The core never retries; the caller decides whether to.
    """
    retryable = True

    def __init__(self, operation: str, message: str = "Sync failed"):
        self.operation = operation
        super().__init__(f"{message} ({operation})")


class UnknownTransactionError(LedgerError):
    """A transaction id is not present in the ledger."""
    pass


class UnknownCategoryError(LedgerError):
    """A category id is not present in the catalog."""
    pass
