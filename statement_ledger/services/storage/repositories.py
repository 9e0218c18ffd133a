"""
Key-Value Repositories

Explicit repository instances over a host-supplied KeyValueStore. The
caller owns their lifetime; nothing here is a module-level store.

LedgerRepository runs the legacy migration exactly once, at load time.
ColumnPreferenceRepository remembers which field each header name was
mapped to, so the next import of the same export is pre-mapped.
"""

import json
from typing import Optional

import structlog

from statement_ledger.audit.logger import AuditLogger
from statement_ledger.ledger import Ledger
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.models.staging import FieldKind
from statement_ledger.models.stored import (
    LegacyStoredTransaction,
    migrate_stored_transaction,
    read_stored_transaction,
    to_stored,
)
from statement_ledger.services.storage.interface import KeyValueStore, StorageError

logger = structlog.get_logger(__name__)

LEDGER_KEY = "billing-transactions"
COLUMN_PREFERENCES_KEY = "csv-field-mapping-preferences"
LEDGER_FORMAT_VERSION = 2


class LedgerRepository:
    """
    Persists the ledger as JSON under a single key.

    Payload shape: ``{"version": 2, "transactions": [...]}``. A bare
    list (the first format) is also accepted on load.
    """

    def __init__(
        self,
        store: KeyValueStore,
        audit_logger: Optional[AuditLogger] = None,
        key: str = LEDGER_KEY,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._key = key

    def save(self, ledger: Ledger) -> None:
        payload = {
            "version": LEDGER_FORMAT_VERSION,
            "transactions": [to_stored(t) for t in ledger.transactions],
        }
        self._store.set(self._key, json.dumps(payload, ensure_ascii=False))

    def load(self) -> Ledger:
        """
        Load and migrate the stored ledger.

        Returns:
            The stored ledger, or an empty one when nothing is stored

        Raises:
            StorageError: If the stored payload cannot be read
        """
        raw = self._store.get(self._key)
        if raw is None:
            return Ledger()

        try:
            data = json.loads(raw)
            records = data if isinstance(data, list) else data.get("transactions", [])
            stored = [read_stored_transaction(r) for r in records]
            transactions = tuple(migrate_stored_transaction(s) for s in stored)
        except (ValueError, AttributeError, TypeError) as e:
            logger.error("ledger_load_failed", key=self._key, error=str(e))
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.system_error(
                        "ledger_load_failed",
                        str(e),
                        details={"key": self._key},
                    )
                )
            raise StorageError(f"Stored ledger is unreadable: {e}") from e

        migrated = sum(1 for s in stored if isinstance(s, LegacyStoredTransaction))
        ledger = Ledger(transactions=transactions)

        if migrated:
            logger.info("ledger_migrated", migrated=migrated, total=len(stored))
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.ledger_migrated(migrated, len(stored)))

        return ledger

    def clear(self) -> None:
        self._store.remove(self._key)


class ColumnPreferenceRepository:
    """Header name (lowercased) -> field kind."""

    def __init__(self, store: KeyValueStore, key: str = COLUMN_PREFERENCES_KEY):
        self._store = store
        self._key = key

    def load(self) -> dict[str, FieldKind]:
        """Saved preferences; unreadable or unknown entries are dropped."""
        raw = self._store.get(self._key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("column_preferences_unreadable", key=self._key)
            return {}
        if not isinstance(data, dict):
            return {}

        known = {kind.value for kind in FieldKind}
        return {
            str(header).lower(): FieldKind(value)
            for header, value in data.items()
            if value in known
        }

    def save(self, mapping: dict[str, FieldKind]) -> None:
        prefs = {
            header.lower(): FieldKind(kind).value
            for header, kind in mapping.items()
            if header and header.strip()
        }
        self._store.set(self._key, json.dumps(prefs))
