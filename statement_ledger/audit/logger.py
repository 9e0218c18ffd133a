"""
Audit Logger

Every significant ledger action is logged. This provides:
1. Complete traceability of imports, reverts and sync attempts
2. Debugging capability
3. A history the user can review

The audit logger:
- Is synchronous, like the rest of the core
- Gracefully handles storage failures (the main flow never breaks on audit)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from statement_ledger.models.audit import AuditEvent
from statement_ledger.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("statement_ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        fields = event.to_log_dict()
        bound = self._logger.bind(
            event_type=fields.pop("event_type"),
            correlation_id=fields.pop("correlation_id"),
        )
        emit = getattr(bound, fields.pop("severity"))
        emit("audit_event", **fields)

        if self._storage is None:
            return True

        try:
            return self._storage.append_event(event)
        except Exception as e:
            # Storage problems never reach the ledger flow
            bound.error("audit_storage_failed", error=str(e), event_id=fields["event_id"])
            return False


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one import).
    Pass it through all subsequent operations.
    """
    return uuid4()
