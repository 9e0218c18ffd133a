"""
Data Models Package

This package contains all Pydantic models used by the Statement Ledger core.
All data flowing through the system must conform to these schemas.
"""

from statement_ledger.models.ledger import (
    DEFAULT_CATEGORY_SPECS,
    LEGACY_CATEGORY_MAP,
    AutoCategoryRule,
    Category,
    CategoryLimit,
    CurrencyFormat,
    ImportBatch,
    ImportStatus,
    LimitAlert,
    LimitCheck,
    LimitPeriod,
    LimitStatus,
    TextMatchMode,
    Transaction,
    ValueRangeMode,
    default_categories,
    new_id,
)
from statement_ledger.models.staging import (
    ColumnMap,
    FieldKind,
    RowError,
    StagingBatch,
    StagingRecord,
)
from statement_ledger.models.stored import (
    CurrentStoredTransaction,
    LegacyStoredTransaction,
    migrate_stored_transaction,
    read_stored_transaction,
    to_stored,
)
from statement_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AutoCategoryRule",
    "Category",
    "CategoryLimit",
    "CurrencyFormat",
    "DEFAULT_CATEGORY_SPECS",
    "ImportBatch",
    "ImportStatus",
    "LEGACY_CATEGORY_MAP",
    "LimitAlert",
    "LimitCheck",
    "LimitPeriod",
    "LimitStatus",
    "TextMatchMode",
    "Transaction",
    "ValueRangeMode",
    "default_categories",
    "new_id",
    # Staging models
    "ColumnMap",
    "FieldKind",
    "RowError",
    "StagingBatch",
    "StagingRecord",
    # Stored shapes
    "CurrentStoredTransaction",
    "LegacyStoredTransaction",
    "migrate_stored_transaction",
    "read_stored_transaction",
    "to_stored",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
