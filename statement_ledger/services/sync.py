"""
Settings Sync

Wraps the host's SettingsSyncInterface. Whatever goes wrong on the other
side (network, session, partial write) reaches the caller as a single
opaque SyncFailure.

IMPORTANT: There is NO automatic retry here. SyncFailure is marked
retryable and the caller decides whether and when to try again.
"""

from typing import Optional

import structlog

from statement_ledger.audit.logger import AuditLogger
from statement_ledger.categorization import CategoryCatalog, RuleBook
from statement_ledger.errors import SyncFailure
from statement_ledger.limits import LimitEvaluator
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.services.storage.interface import SettingsSyncInterface, SyncPayload

logger = structlog.get_logger(__name__)


class SyncService:
    """Save and load categories, rules and limits through the host collaborator."""

    def __init__(
        self,
        collaborator: SettingsSyncInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._collaborator = collaborator
        self._audit_logger = audit_logger

    def _fail(self, operation: str, error: str) -> SyncFailure:
        logger.error("sync_failed", operation=operation, error=error)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.sync_failed(operation, error))
        return SyncFailure(operation)

    def _completed(self, operation: str, payload: SyncPayload) -> None:
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.sync_completed(
                    operation,
                    categories=len(payload.categories),
                    rules=len(payload.rules),
                    limits=len(payload.limits),
                )
            )

    async def save(
        self,
        catalog: CategoryCatalog,
        rule_book: RuleBook,
        limits: LimitEvaluator,
    ) -> None:
        """
        Push the current settings.

        Raises:
            SyncFailure: If the collaborator raised or reported failure
        """
        payload = SyncPayload(
            categories=list(catalog.categories),
            rules=list(rule_book.rules),
            limits=list(limits.limits),
        )
        try:
            saved = await self._collaborator.save(payload.categories, payload.rules, payload.limits)
        except Exception as e:
            raise self._fail("save", str(e)) from e

        if not saved:
            raise self._fail("save", "collaborator reported failure")
        self._completed("save", payload)

    async def load(self) -> Optional[SyncPayload]:
        """
        Fetch the remote settings.

        Returns:
            The payload, or None when no identity/session is available

        Raises:
            SyncFailure: If the collaborator raised
        """
        try:
            payload = await self._collaborator.load()
        except Exception as e:
            raise self._fail("load", str(e)) from e

        if payload is not None:
            self._completed("load", payload)
        return payload

    async def pull(
        self,
        catalog: CategoryCatalog,
        rule_book: RuleBook,
        limits: LimitEvaluator,
    ) -> bool:
        """
        Load the remote settings and apply them locally.

        Categories are upserted; rules and limits are replaced when the
        remote side has any.

        Returns:
            False when no session is available (nothing applied)
        """
        payload = await self.load()
        if payload is None:
            return False

        if payload.categories:
            catalog.import_categories(payload.categories)
        if payload.rules:
            rule_book.set_rules(payload.rules)
        if payload.limits:
            limits.set_limits(payload.limits)
        return True
